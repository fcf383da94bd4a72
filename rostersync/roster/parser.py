"""Permissive CSV parsing for spreadsheet exports.

This is not a strict validator: unterminated quotes run to the end of the
line, and blank lines are dropped. A quoted field may not span lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_LINE_SPLIT = re.compile(r"\r?\n|\r")


@dataclass
class ParsedTable:
    """Header row plus data rows, every cell trimmed."""

    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)


def parse_line(line: str) -> list[str]:
    """Split one CSV line into trimmed cells.

    A ``"`` toggles quoting, ``""`` inside a quoted field is a literal quote,
    and only unquoted commas separate fields.
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '"':
            if in_quotes and line[i + 1 : i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current).strip())
    return cells


def parse_table(text: str) -> ParsedTable:
    """Parse CSV text; the first non-blank line is the header."""
    lines = [line for line in _LINE_SPLIT.split(text or "") if line.strip()]
    if not lines:
        return ParsedTable()
    return ParsedTable(
        header=parse_line(lines[0]),
        rows=[parse_line(line) for line in lines[1:]],
    )
