"""Infer a leveled outline from flat text.

Each non-blank line is matched against MARKER_PATTERNS in order; the index of
the first pattern that matches is the line's level. Lines without a marker
get `leading whitespace // 2`. Marker style therefore decides depth, so
"1. Intro" and an unindented heading both land on level 0.
"""

from __future__ import annotations

import re

from study_buddy.models.ingest_models import OutlineLine

MARKER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^(\d+\.)+\s"),  # 1. / 1.2.3.
    re.compile(r"^\s*[-•*]\s"),  # bullets at any indentation
    re.compile(r"^[IVXLCDMivxlcdm]+\.\s"),  # roman numerals
    re.compile(r"^[a-zA-Z]\.\s"),  # lettered lists
]

# Same markers, applied to the stripped line to build display text
_DISPLAY_MARKERS: list[re.Pattern[str]] = [
    re.compile(r"^(?:\d+\.)+\s+"),
    re.compile(r"^[-•*]\s+"),
    re.compile(r"^[IVXLCDMivxlcdm]+\.\s+"),
    re.compile(r"^[a-zA-Z]\.\s+"),
]


def _indent_width(line: str) -> int:
    """Return the index of the first non-whitespace character."""
    return len(line) - len(line.lstrip())


def line_level(line: str) -> int:
    for index, pattern in enumerate(MARKER_PATTERNS):
        if pattern.match(line):
            return index
    return _indent_width(line) // 2


def display_text(line: str) -> str:
    text = line.strip()
    for marker in _DISPLAY_MARKERS:
        stripped, count = marker.subn("", text, count=1)
        if count:
            return stripped.strip()
    return text


def segment_text(text: str) -> list[OutlineLine]:
    """Split text on "\\n" into OutlineLines, dropping blank lines.

    Only "\\n" ends a line: form feeds and other separators that PDF
    extraction leaves inside a line stay part of it. A trailing "\\r" is
    dropped from the raw line.
    """
    lines = (line.rstrip("\r") for line in text.split("\n"))
    return [
        OutlineLine(original=line, text=display_text(line), level=line_level(line))
        for line in lines
        if line.strip()
    ]


def group_by_level(lines: list[OutlineLine]) -> dict[int, list[OutlineLine]]:
    """Group lines by level, keeping document order within each level."""
    levels: dict[int, list[OutlineLine]] = {}
    for line in lines:
        levels.setdefault(line.level, []).append(line)
    return dict(sorted(levels.items()))


def main_topics(lines: list[OutlineLine]) -> list[OutlineLine]:
    """All lines sharing the smallest level present."""
    levels = group_by_level(lines)
    if not levels:
        return []
    return levels[min(levels)]
