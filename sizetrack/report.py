from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Protocol

from rich.markup import escape
from rich.text import Text

from sizetrack.models import DisplayItem, FilenameSizeMap, RawSizes, ReportData, SizeRecord

KB = 1024
SEPARATOR = " ⏤  "
BYTE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")

# (exclusive lower bound in bytes, colour), checked in order.
SEVERITY_TIERS: tuple[tuple[int, str], ...] = (
    (100 * KB, "red"),
    (40 * KB, "yellow"),
    (20 * KB, "cyan"),
)
OK_COLOR = "green"

# Deltas with an absolute value at or below this are not shown.
DELTA_NOISE_BYTES = 1
DELTA_CRITICAL_BYTES = 1024
DELTA_IMPROVEMENT_BYTES = -10


def format_bytes(value: int | float) -> str:
    """Human readable size using decimal units and three significant digits."""
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value < 1:
        return f"{sign}{value:g} B"
    exponent = min(int(math.log10(value) // 3), len(BYTE_UNITS) - 1)
    scaled = value / 1000**exponent
    return f"{sign}{float(f'{scaled:.3g}'):g} {BYTE_UNITS[exponent]}"


def render_plain(markup: str) -> str:
    """Drop the colour markup from report text."""
    return Text.from_markup(markup).plain


def severity_color(size: int) -> str:
    for threshold, color in SEVERITY_TIERS:
        if size > threshold:
            return color
    return OK_COLOR


def _styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


def build_item(record: SizeRecord, width: int) -> DisplayItem:
    name = record.filename
    size = record.current_size
    delta = record.delta
    msg = escape(name.rjust(width + 1)) + SEPARATOR
    color = severity_color(size)

    size_text = _styled(format_bytes(size), color)
    delta_text = ""
    if abs(delta) > DELTA_NOISE_BYTES:
        delta_text = ("+" if delta > 0 else "") + format_bytes(delta)
        if delta > DELTA_CRITICAL_BYTES:
            size_text = _styled(size_text, "bold")
            delta_text = _styled(delta_text, "red")
        elif delta < DELTA_IMPROVEMENT_BYTES:
            delta_text = _styled(delta_text, "green")
        size_text += f" ({delta_text})"

    return DisplayItem(
        name=name,
        size_before=record.previous_size,
        size=size,
        delta=delta,
        size_text=size_text,
        delta_text=delta_text,
        msg=msg,
        color=color,
    )


class ReportFormatter(Protocol):
    def decorate_item(self, text: str, item: DisplayItem) -> str | None:
        ...

    def decorate_after(self, data: ReportData) -> str | None:
        ...


@dataclass(frozen=True, slots=True)
class HookFormatter:
    """ReportFormatter that delegates to optional plain callables."""

    item_hook: Callable[[str, DisplayItem], str | None] | None = None
    after_hook: Callable[[ReportData], str | None] | None = None

    def decorate_item(self, text: str, item: DisplayItem) -> str | None:
        return self.item_hook(text, item) if self.item_hook else None

    def decorate_after(self, data: ReportData) -> str | None:
        return self.after_hook(data) if self.after_hook else None


DEFAULT_FORMATTER = HookFormatter()


def build_report(
    records: list[SizeRecord],
    sizes_before: FilenameSizeMap,
    sizes_after: FilenameSizeMap,
    formatter: ReportFormatter = DEFAULT_FORMATTER,
) -> tuple[list[DisplayItem], str]:
    width = max((len(record.filename) for record in records), default=0)
    output = ""
    items: list[DisplayItem] = []

    for record in records:
        item = build_item(record, width)
        items.append(item)
        text = item.msg + item.size_text + "\n"
        output += formatter.decorate_item(text, item) or text

    extra = formatter.decorate_after(
        ReportData(
            sizes=items,
            raw=RawSizes(sizes_before=sizes_before, sizes=sizes_after),
            output=output,
        )
    )
    if extra:
        output += "\n" + extra.removeprefix("\n")

    return items, output
