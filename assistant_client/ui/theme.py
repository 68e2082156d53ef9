"""Shared page styling.

Only the custom classes the pages use are defined here; layout and
spacing come from NiceGUI's bundled Tailwind utilities.
"""

CUSTOM_CSS = """
<style>
    :root {
        --accent: #0d9488;
        --accent-soft: rgba(13, 148, 136, 0.18);
        --surface: #f8fafc;
        --ink: #0f172a;
    }
    body {
        background: var(--ink);
        font-family: system-ui, -apple-system, 'Segoe UI', Roboto, sans-serif;
    }

    .app-container { background: var(--surface); border-radius: 10px; overflow: hidden; }
    .header { background: var(--accent); }
    .sidebar { background: #020617; color: #cbd5e1; }
    .chat-item-active { background: var(--accent-soft); color: white; }

    .message-user { background: var(--accent); color: white; border-radius: 14px 14px 2px 14px; }
    .message-assistant {
        background: white;
        color: var(--ink);
        border: 1px solid #e2e8f0;
        border-radius: 14px 14px 14px 2px;
    }

    .typing-dot {
        width: 7px;
        height: 7px;
        border-radius: 50%;
        background: var(--accent);
        animation: typing-pulse 1.2s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.15s; }
    .typing-dot:nth-child(3) { animation-delay: 0.3s; }
    @keyframes typing-pulse {
        0%, 100% { opacity: 0.25; }
        50% { opacity: 1; }
    }
</style>
"""
