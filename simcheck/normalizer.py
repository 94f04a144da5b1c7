# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Iterable, List

# Not a lexer: markers from HTML, C-family and shell/Python are applied to
# every file regardless of its language.
FULL_LINE_COMMENT_MARKERS = ("<!--", "//", "/*", "*", "#")


def read_lines(path: str) -> List[str]:
    """Read a file as text lines. Undecodable bytes are dropped, not fatal."""
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read().splitlines()


def _strip_inline_comments(line: str) -> str:
    idx = line.find("//")
    if idx != -1:
        line = line[:idx].strip()
        if not line:
            return ""

    idx = line.find("/*")
    if idx != -1:
        end = line.find("*/", idx)
        if end != -1:
            line = line[:idx] + line[end + 2:]
        else:
            # Block comment continues past this line
            line = line[:idx]
        line = line.strip()
        if not line:
            return ""

    idx = line.find("#")
    if idx != -1:
        line = line[:idx].strip()

    return line


def normalize_line(line: str) -> str:
    """Return the comparable form of one line, or "" when nothing survives."""
    line = line.strip()
    if not line:
        return ""
    if line.startswith(FULL_LINE_COMMENT_MARKERS):
        return ""

    line = _strip_inline_comments(line)
    if not line:
        return ""

    # Collapse whitespace runs
    return " ".join(line.split())


def normalize(lines: Iterable[str]) -> List[str]:
    """Normalize raw lines, dropping those that end up empty. Order is kept."""
    out: List[str] = []
    for line in lines:
        norm = normalize_line(line)
        if norm:
            out.append(norm)
    return out
