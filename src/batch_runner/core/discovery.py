"""Recursive test file discovery."""

import fnmatch
import logging
import os
from pathlib import Path
from typing import List, Union

from ..errors import DiscoveryError

logger = logging.getLogger(__name__)


_FNMATCH_SPECIAL = "*?["


def _normalize_pattern(pattern: str) -> str:
    """Rewrite a glob with `[^...]` negation and backslash escapes for fnmatch.

    fnmatch has no escape character, so `\\*` outside a class becomes the
    one-character class `[*]`. Inside a class the backslash is dropped and an
    escaped `]` is moved to the front of the class, the only place fnmatch
    reads it as a member.
    """
    out: List[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "\\" and i + 1 < n:
            i += 1
            c = pattern[i]
            out.append(f"[{c}]" if c in _FNMATCH_SPECIAL else c)
        elif c == "[":
            i = _normalize_class(pattern, i + 1, out)
            continue
        else:
            out.append(c)
        i += 1
    return "".join(out)


def _normalize_class(pattern: str, i: int, out: List[str]) -> int:
    """Append the class starting after `[` at i; return the index after it."""
    n = len(pattern)
    start = i
    negate = i < n and pattern[i] in "^!"
    if negate:
        i += 1
    members: List[str] = []
    literal_bracket = False
    while i < n and pattern[i] != "]":
        c = pattern[i]
        if c == "\\" and i + 1 < n:
            i += 1
            c = pattern[i]
            if c == "]":
                literal_bracket = True
                i += 1
                continue
        members.append(c)
        i += 1

    if i >= n:
        # Unterminated class: a literal `[`, the rest is an ordinary pattern
        out.append("[[]")
        return start

    out.append("[" + ("!" if negate else "") + ("]" if literal_bracket else "") + "".join(members) + "]")
    return i + 1


def discover_test_files(root: Union[str, Path], pattern: str) -> List[Path]:
    """Find every non-directory under root whose base name matches a shell glob.

    Entries are visited in lexical order and a subdirectory is descended into
    at its position in that order, so `a_test.go, sub/c_test.go, z_test.go`
    comes out in exactly that sequence on every run. Symlinks are never
    followed; a symlink whose name matches is returned like a regular file.

    Args:
        root: Directory (or single file) to scan
        pattern: Glob matched against base names (`*`, `?`, `[...]`)

    Returns:
        Matching paths, each joined onto root

    Raises:
        DiscoveryError: If root is missing or any directory cannot be read
    """
    root = Path(root)
    glob = _normalize_pattern(pattern)

    if not os.path.lexists(root):
        raise DiscoveryError(root, "no such file or directory")

    if not root.is_dir():
        return [root] if fnmatch.fnmatchcase(root.name, glob) else []

    matches: List[Path] = []
    _walk(root, glob, matches)
    logger.debug(f"Discovered {len(matches)} files matching '{pattern}' under {root}")
    return matches


def _walk(directory: Path, glob: str, matches: List[Path]) -> None:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise DiscoveryError(directory, e.strerror or str(e)) from e

    for entry in entries:
        path = directory / entry.name
        if entry.is_dir(follow_symlinks=False):
            _walk(path, glob, matches)
        elif fnmatch.fnmatchcase(entry.name, glob):
            matches.append(path)
