"""HTML to plain-text conversion for job descriptions."""

import html
import re

_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_BLOCK_BREAKS = [
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</div>", re.IGNORECASE), "\n"),
    (re.compile(r"</li>", re.IGNORECASE), "\n"),
    (re.compile(r"</h[1-6]>", re.IGNORECASE), "\n\n"),
]


def clean_html(html_text: str) -> str:
    """Clean HTML tags and entities from text.

    Performs the following transformations:
    1. Decode HTML entities (&lt;p&gt; becomes <p>)
    2. Drop script and style blocks with their content
    3. Turn line and block-closing tags into newlines
    4. Strip remaining tags and non-breaking spaces
    5. Collapse 3+ newlines into a paragraph break
    6. Decode entities left over after tag removal

    Args:
        html_text: Text containing HTML formatting

    Returns:
        Plain text with HTML removed

    Example:
        >>> clean_html("<p>Build <b>Rails</b> apps</p><p>Remote</p>")
        'Build Rails apps\\n\\nRemote'
    """
    if not html_text or not html_text.strip():
        return ""

    text = html.unescape(html_text)
    text = _SCRIPT_STYLE.sub("", text)

    for pattern, replacement in _BLOCK_BREAKS:
        text = pattern.sub(replacement, text)

    text = re.sub(r"<[^>]+>", "", text)
    text = text.replace("&nbsp;", " ").replace("\xa0", " ")

    # Collapse horizontal whitespace, keep newlines
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n\s*\n", "\n\n", text)
    text = re.sub(r" *\n *", "\n", text)

    return html.unescape(text.strip()).strip()
