"""
Text helpers for mail bodies and model output.

Handles:
1. HTML → Plain Text conversion
2. Markdown code-fence stripping for model replies
3. Short previews for mail lists and notifications
"""

import re
from bs4 import BeautifulSoup

PREVIEW_CHARS = 120

CODE_FENCE_PATTERN = re.compile(r'^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$', re.DOTALL)

# Real markup, not placeholders like "<Recipient Name>"
HTML_TAG_PATTERN = re.compile(
    r"<\s*/?\s*(?:html|head|body|p|br|div|span|b|i|u|em|strong|a|ul|ol|li|h[1-6]|table|tr|td|th|blockquote|pre|code)(?:\s+[a-z-]+\s*=[^>]*)?\s*/?\s*>",
    re.IGNORECASE
)


def html_to_text(raw_html: str) -> str:
    """
    Convert HTML content to clean plain text.
    
    Plain text passes through unchanged apart from whitespace normalisation.
    
    Args:
        raw_html: HTML or plain text string
        
    Returns:
        Plain text with normalized whitespace
    """
    if not raw_html:
        return ""
    
    if '<' not in raw_html:
        return _normalize_whitespace(raw_html)
    
    soup = BeautifulSoup(raw_html, "html.parser")
    
    # Remove script, style, and head tags
    for tag in soup(['script', 'style', 'head', 'meta', 'link']):
        tag.decompose()
    
    # Convert links to text with URL
    for a in soup.find_all('a', href=True):
        href = a.get('href', '')
        text = a.get_text(strip=True)
        if href and text:
            a.replace_with(f"{text} ({href})")
        elif href:
            a.replace_with(href)
    
    # Convert <br> and </p> to newlines
    for br in soup.find_all('br'):
        br.replace_with('\n')
    for p in soup.find_all('p'):
        p.insert_after('\n')
    
    return _normalize_whitespace(soup.get_text(separator=' '))


def _normalize_whitespace(text: str) -> str:
    text = re.sub(r'[ \t]+', ' ', text)  # Multiple spaces to single
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)  # Max 2 newlines
    return text.strip()


def strip_code_fences(text: str) -> str:
    """Remove a ```lang ... ``` wrapper that models like to add around replies."""
    if not text:
        return ""
    match = CODE_FENCE_PATTERN.match(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def make_preview(body: str, max_chars: int = PREVIEW_CHARS) -> str:
    """Single-line preview of a mail body."""
    text = ' '.join(html_to_text(body).split())
    if len(text) <= max_chars:
        return text
    return text[:max_chars - 1].rstrip() + '…'


def looks_like_html(text: str) -> bool:
    return bool(text) and HTML_TAG_PATTERN.search(text) is not None


def clean_model_text(text: str) -> str:
    """
    Tidy a model reply for use as a mail body.

    Only replies containing real HTML tags go through BeautifulSoup;
    anything else keeps angle-bracket placeholders intact.
    """
    if looks_like_html(text):
        return html_to_text(text)
    return _normalize_whitespace(text or "")
