"""
Stylesheet helpers used by the stylesheet task.
"""

import re
from pathlib import Path

import csscompressor

SASS_GLOB_IMPORT = re.compile(r'^@import\s+"(.+/\*\*)";$')
MEDIA_WIDTH = re.compile(r'(min|max)-width\s*:\s*([\d.]+)\s*(px|em|rem)?')


def expand_sass_globs(text, cwd='.'):
    """
    Expand glob imports such as ``@import "components/**";`` into one
    ``@import`` per matching .scss file, sorted, without the extension.
    Other lines are passed through unchanged.
    """
    line_break = '\r\n' if '\r\n' in text else '\n'
    base = Path(cwd)
    out = []
    for line in text.split(line_break):
        match = SASS_GLOB_IMPORT.match(line)
        if match:
            files = sorted(p.relative_to(base).as_posix() for p in base.glob(match.group(1) + '/*.scss'))
            for file in files:
                out.append(f'@import "{file[:-len(".scss")]}";{line_break}')
        else:
            out.append(f'{line}{line_break}')
    return ''.join(out)


def normalize_line_endings(text, line_break='\r\n'):
    """Convert every line ending in text to line_break."""
    return text.replace('\r\n', '\n').replace('\n', line_break)


def _top_level_blocks(css):
    """Split CSS into top-level statements and blocks, skipping comments and strings."""
    blocks = []
    depth = 0
    start = 0
    quote = None
    i = 0
    n = len(css)
    while i < n:
        ch = css[i]
        if quote:
            if ch == '\\':
                i += 2
                continue
            if ch == quote:
                quote = None
        elif css.startswith('/*', i):
            end = css.find('*/', i + 2)
            i = n if end < 0 else end + 2
            continue
        elif ch in '"\'':
            quote = ch
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                blocks.append(css[start:i + 1].strip())
                start = i + 1
        elif ch == ';' and depth == 0:
            blocks.append(css[start:i + 1].strip())
            start = i + 1
        i += 1
    rest = css[start:].strip()
    if rest:
        blocks.append(rest)
    return blocks


def _media_sort_key(query, position):
    # mobile-first: min-width ascending, then max-width descending, then the rest
    match = MEDIA_WIDTH.search(query)
    if not match:
        return (2, 0, position)
    value = float(match.group(2))
    if match.group(3) in ('em', 'rem'):
        value *= 16
    if match.group(1) == 'min':
        return (0, value, position)
    return (1, -value, position)


def sort_media_queries(css):
    """
    Move @media blocks after the plain rules, merging blocks with identical
    queries and ordering them mobile-first.
    """
    if '@media' not in css:
        return css

    line_break = '\r\n' if '\r\n' in css else '\n'
    plain = []
    media = {}
    for block in _top_level_blocks(css):
        if block.startswith('@media') and block.endswith('}'):
            head, _, tail = block.partition('{')
            query = head[len('@media'):].strip()
            media.setdefault(query, []).append(tail[:-1].strip('\r\n'))
        else:
            plain.append(block)

    ordered = sorted(enumerate(media.items()), key=lambda item: _media_sort_key(item[1][0], item[0]))
    for _, (query, bodies) in ordered:
        inner = line_break.join(bodies)
        plain.append(f'@media {query} {{{line_break}{inner}{line_break}}}')

    return (line_break * 2).join(plain) + line_break


def postprocess_css(css, release=False):
    """Sort media queries and, for release builds, compress the result."""
    css = sort_media_queries(css)
    if release:
        css = csscompressor.compress(css)
    return css
