"""Table printing, colouring and version text for the command line."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

VERSION = "0.0.0"
COMMIT = "local"
BUILT_BY = "local"
DATE = "local"

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def version_string() -> str:
    """Return the command's version line."""
    return f"mtcli version: {VERSION}, commit: {COMMIT}, builtBy: {BUILT_BY} ({DATE})"


def _color_enabled() -> bool:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _paint(codes: str, text: str) -> str:
    if not _color_enabled():
        return text
    return f"\x1b[{codes}m{text}\x1b[0m"


class TableStyle(str, Enum):
    """Supported table styles."""

    COMPACT_LITE = "compactLite"


class FieldColor(str, Enum):
    """Colours a table field may be printed in."""

    GREEN = "green"
    RED = "red"
    INTENSELY_BOLD_RED = "intenselyBoldRed"

    def apply(self, text: str) -> str:
        """Return ``text`` coloured, or unchanged when output is not a terminal."""
        return _paint(_COLOR_CODES[self], text)


_COLOR_CODES = {
    FieldColor.GREEN: "32",
    FieldColor.RED: "31",
    FieldColor.INTENSELY_BOLD_RED: "1;91",
}


@dataclass(frozen=True)
class Field:
    """A table cell value and its optional colour."""

    value: str
    color: FieldColor | None = None

    def render(self) -> str:
        return self.value if self.color is None else self.color.apply(self.value)


def _width(text: str) -> int:
    return len(_ANSI.sub("", text))


def _pad(text: str, width: int, center: bool) -> str:
    gap = width - _width(text)
    if center:
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


class Table:
    """A plain-text table with an optional centred header."""

    def __init__(
        self,
        headers: Sequence[str] | None = None,
        style: TableStyle | str = TableStyle.COMPACT_LITE,
    ) -> None:
        try:
            self.style = TableStyle(style)
        except ValueError:
            raise ValueError(
                f"parsing table style {style!r}: invalid table style"
            ) from None
        self.headers = list(headers) if headers is not None else None
        self._rows: list[list[str]] = []

    def write_row(self, row: Iterable[Field]) -> None:
        """Append a row of fields."""
        self._rows.append([field.render() for field in row])

    def __str__(self) -> str:
        all_rows = ([self.headers] if self.headers else []) + self._rows
        columns = max((len(row) for row in all_rows), default=0)
        widths = [0] * columns
        for row in all_rows:
            for column, text in enumerate(row):
                widths[column] = max(widths[column], _width(text))

        def line(cells: list[str], center: bool) -> str:
            padded = cells + [""] * (columns - len(cells))
            return " ".join(
                f" {_pad(text, width, center)} " for text, width in zip(padded, widths)
            )

        lines = []
        if self.headers:
            lines.append(line(self.headers, center=True))
            lines.append(" ".join("-" * (width + 2) for width in widths))
        lines.extend(line(row, center=False) for row in self._rows)
        return "\n".join(lines)


def print_validation_errors(
    errors: Iterable[BaseException | str], stream: TextIO | None = None
) -> None:
    """Print a failure banner followed by one error per line."""
    out = sys.stdout if stream is None else stream
    out.write(f"\n{FieldColor.RED.apply('Failed with the following errors:')}\n")
    for error in errors:
        out.write(f"{error}\n")