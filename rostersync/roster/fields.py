"""Column selection for roster rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class FieldSelector:
    """Picks a column by header name or by 1-based index.

    A positive ``index`` always wins over ``name``.
    """

    name: str = ""
    index: int = 0

    @property
    def is_configured(self) -> bool:
        return bool(self.name) or self.index > 0


def resolve_field(row: Sequence[str], header: Sequence[str], selector: FieldSelector) -> str:
    """Return the selected cell of ``row``, or ``""`` when it cannot be found."""
    if selector.index > 0:
        position = selector.index - 1
        return row[position] if position < len(row) else ""
    if selector.name:
        try:
            position = list(header).index(selector.name)
        except ValueError:
            return ""
        return row[position] if position < len(row) else ""
    return ""
