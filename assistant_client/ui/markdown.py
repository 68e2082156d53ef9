"""Minimal markdown to HTML conversion for assistant messages.

Supports code blocks, inline code, bold, italic, links, and lists. Input is
HTML-escaped first, so message text can never inject markup.
"""

import html
import re

_INLINE_RULES = [
    (
        re.compile(r"```(\w*)\n?([\s\S]*?)```"),
        r'<pre class="bg-gray-800 text-gray-100 rounded-lg p-3 my-2 overflow-x-auto text-xs"><code>\2</code></pre>',
    ),
    (
        re.compile(r"`([^`]+)`"),
        r'<code class="bg-gray-200 text-pink-600 px-1.5 py-0.5 rounded text-xs">\1</code>',
    ),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"__(.+?)__"), r"<strong>\1</strong>"),
    (re.compile(r"\*(?!\s)([^*\n]+?)\*"), r"<em>\1</em>"),
    (re.compile(r"(?<!\w)_([^_]+)_(?!\w)"), r"<em>\1</em>"),
    (
        re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)"),
        r'<a href="\2" class="text-blue-600 underline" target="_blank">\1</a>',
    ),
]

_LISTS = [
    (re.compile(r"^[-*]\s+"), "ul", "list-disc"),
    (re.compile(r"^\d+\.\s+"), "ol", "list-decimal"),
]


def _wrap_lists(text: str, pattern: re.Pattern, tag: str, style: str) -> str:
    result = []
    in_list = False
    for line in text.split("\n"):
        stripped = line.strip()
        if pattern.match(stripped):
            if not in_list:
                result.append(f'<{tag} class="{style} list-inside my-2 space-y-1">')
                in_list = True
            result.append(f"<li>{pattern.sub('', stripped)}</li>")
            continue
        if in_list:
            result.append(f"</{tag}>")
            in_list = False
        result.append(line)
    if in_list:
        result.append(f"</{tag}>")
    return "\n".join(result)


def markdown_to_html(text: str) -> str:
    """Convert markdown to HTML for chat display."""
    text = html.escape(text)
    for pattern, replacement in _INLINE_RULES:
        text = pattern.sub(replacement, text)
    for pattern, tag, style in _LISTS:
        text = _wrap_lists(text, pattern, tag, style)
    return text.replace("\n", "<br>")
