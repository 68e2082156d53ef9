"""Authentication: passcode sign-in and credential propagation.

Responsibilities:
    - Identity provider boundary (request and verify one-time passcodes)
    - Session bookkeeping and sign-out
    - Republishing the access token for cross-origin backend calls
"""
