"""
Path, glob and data helpers shared by the build tasks.
"""

import copy
import json
import os
import posixpath
from pathlib import Path
from typing import Any, Dict, Iterable, List


def posix_path(p: str) -> str:
    """Return the path with forward slashes only."""
    return str(p).replace('\\', '/')


def path_join(*paths: str) -> str:
    """
    Join path segments with "/", adding a separator only where the joined
    string does not already end with one.
    """
    sep = '/'
    joined = ''
    for p in paths:
        if joined and not joined.endswith(sep):
            joined += sep
        joined += str(p)
    return joined


def path_expand(p: str) -> str:
    """
    Expand $HOME, $CWD and a leading "~" in a configured root path.

    This is the only place where the build reads the process environment.
    """
    p = posix_path(p)
    home = posix_path(os.environ.get('HOME', os.path.expanduser('~')))
    p = p.replace('$HOME', home).replace('$CWD', posix_path(os.getcwd()))
    if p == '~' or p.startswith('~/'):
        p = home + p[1:]
    return p


def replace_ext(file: str, ext: str) -> str:
    """Replace the extension of file with ext (which includes the dot)."""
    root, _ = posixpath.splitext(posix_path(file))
    return root + ext


def glob_files(patterns: Iterable[str], base_dir: str) -> List[str]:
    """
    Expand glob patterns relative to base_dir.

    Patterns starting with "!" are exclusions; a match is dropped when it or
    one of its parent directories matches an exclusion. Returns sorted POSIX
    paths relative to base_dir.
    """
    base = Path(base_dir)
    included = set()
    excluded = set()
    for pattern in patterns:
        if pattern.startswith('!'):
            target = excluded
            pattern = pattern[1:]
        else:
            target = included
        for match in base.glob(pattern):
            target.add(match.relative_to(base).as_posix())

    def is_excluded(rel):
        parts = rel.split('/')
        return any('/'.join(parts[:i]) in excluded for i in range(1, len(parts) + 1))

    return sorted(rel for rel in included if rel != '.' and not is_excluded(rel))


def merge_objects(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge source into a copy of target and return the copy.

    Nested dicts are merged key by key; any other value in source replaces
    the value in target. Keys only present in target are kept.
    """
    merged = copy.deepcopy(target)
    for key, value in (source or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_objects(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def w3date_to_jp_style(w3date: str) -> str:
    """Format a "YYYY-MM-DD" date as "YYYY年M月D日"; other input is returned as is."""
    parts = str(w3date).split('-')
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return w3date
    year, month, day = (int(part) for part in parts)
    return f"{year}年{month}月{day}日"


def dump_object(obj: Any, indent: int = 4) -> str:
    """Render a data structure as indented JSON for debug logging."""
    return json.dumps(obj, indent=indent, ensure_ascii=False, default=str)
