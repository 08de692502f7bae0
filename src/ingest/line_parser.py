"""Delimited line splitting.

This module implements the minimal quoting dialect used by uploads:
commas separate fields and every double quote toggles quoting.
"""

from __future__ import annotations

_DELIMITER = ","
_QUOTE = '"'


def parse_line(line: str) -> list[str]:
    """Split one raw line into fields.

    Commas inside a double-quoted span do not split. Quote characters are
    dropped from field values and cannot be escaped.

    Args:
        line: Raw text line without terminator.

    Returns:
        Ordered field values; at least one field.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == _QUOTE:
            in_quotes = not in_quotes
        elif char == _DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields
