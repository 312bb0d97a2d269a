"""
Corpus discovery - finds component source files to scan.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Sequence
from pathlib import Path

from chuk_mcp_tokens.constants import DEFAULT_CORPUS_EXCLUDE, DEFAULT_CORPUS_INCLUDE


def matches_any(relative: str, patterns: Sequence[str]) -> bool:
    """Glob match; a leading ``**/`` also matches at the root."""
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatch(relative, pattern[3:]):
            return True
    return False


def find_corpus_files(
    root: Path,
    include: Sequence[str] = DEFAULT_CORPUS_INCLUDE,
    exclude: Sequence[str] = DEFAULT_CORPUS_EXCLUDE,
) -> list[Path]:
    """
    List corpus files under root in a stable order.

    Args:
        root: Corpus root directory
        include: Glob patterns relative to root
        exclude: Glob patterns relative to root; excluded directories are not entered

    Returns:
        Sorted list of matching files
    """
    if not root.is_dir():
        return []

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root)
        dirnames[:] = sorted(
            d for d in dirnames if not matches_any((rel_dir / d).as_posix() + "/", exclude)
        )
        for name in sorted(filenames):
            relative = (rel_dir / name).as_posix()
            if matches_any(relative, exclude):
                continue
            if matches_any(relative, include):
                files.append(Path(dirpath) / name)

    return files
