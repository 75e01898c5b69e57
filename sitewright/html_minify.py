"""
Whitespace and comment minifier for rendered HTML.

Contents of <pre>, <textarea>, <script> and <style> elements are left untouched.
Line-break formatting next to a block-level tag is dropped; between inline
tags it collapses to a single space.
"""

import re

PRESERVED_ELEMENTS = re.compile(r'<(pre|textarea|script|style)\b[^>]*>.*?</\1\s*>', re.IGNORECASE | re.DOTALL)
COMMENT = re.compile(r'<!--(?!\[if).*?-->', re.DOTALL)
# A tag, the line-break whitespace after it, and the name of the tag that follows.
# Stashed elements appear as <\x00N\x00> and take N as their name.
FORMATTING_BETWEEN_TAGS = re.compile(
    r'(?P<tag></?(?P<left>!?[a-zA-Z][a-zA-Z0-9]*|\x00\d+\x00)[^>]*>)'
    r'\s*\n\s*'
    r'(?=</?(?P<right>!?[a-zA-Z][a-zA-Z0-9]*|\x00\d+\x00))'
)
WHITESPACE = re.compile(r'\s+')
PLACEHOLDER = re.compile(r'<\x00(\d+)\x00>')

BLOCK_ELEMENTS = frozenset([
    'html', 'head', 'body', 'title', 'meta', 'link', 'base', 'style', 'script', 'noscript', 'template',
    'address', 'article', 'aside', 'blockquote', 'details', 'dialog', 'dd', 'div', 'dl', 'dt',
    'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'header', 'hgroup', 'hr', 'li', 'main', 'nav', 'ol', 'p', 'pre', 'section', 'summary',
    'table', 'caption', 'colgroup', 'col', 'thead', 'tbody', 'tfoot', 'tr', 'th', 'td', 'ul',
    'option', 'optgroup',
])


def minify_html(text):
    """Remove comments and collapse formatting whitespace."""
    preserved = []

    def stash(match):
        preserved.append((match.group(1).lower(), match.group(0)))
        return f'<\x00{len(preserved) - 1}\x00>'

    def is_block(name):
        if name.startswith('\x00'):
            name = preserved[int(name.strip('\x00'))][0]
        # <!DOCTYPE ...> never renders
        return name.startswith('!') or name.lower() in BLOCK_ELEMENTS

    def strip_gap(match):
        if is_block(match.group('left')) or is_block(match.group('right')):
            return match.group('tag')
        return match.group(0)

    text = PRESERVED_ELEMENTS.sub(stash, text)
    text = COMMENT.sub('', text)
    text = FORMATTING_BETWEEN_TAGS.sub(strip_gap, text)
    text = WHITESPACE.sub(' ', text).strip()
    return PLACEHOLDER.sub(lambda m: preserved[int(m.group(1))][1], text)
