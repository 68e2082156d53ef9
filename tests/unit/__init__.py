"""Unit tests for individual components in isolation.

Coverage:
    - client/: frame decoding, streaming, error mapping, payload extraction
    - state/: fetch-once guard, timeline, directory, session orchestration
    - auth/: credential bridge and identity provider

External HTTP is replaced with httpx.MockTransport.
"""
