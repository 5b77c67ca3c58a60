"""
Report Renderer
===============
Turns an aggregated Report into console text.

STRICT CONTRACT:
  - This module NEVER writes to the console; it returns a string.
  - This module NEVER reads environment variables or global state.
    Colour and verbosity come only from the RenderStyle argument.
  - Given the same Report and RenderStyle, output is byte-identical.

Layout (labels right-aligned to LABEL_WIDTH, like cargo's own output):

       Error Leak (definite): 2 occurrences, 192 B
        Info at malloc (vg_replace_malloc.c:380)
             at main (main.c:5)
     Summary 1 group, 2 occurrences, 192 B leaked

A clean report renders a single line:

    Finished no errors detected
"""
from dataclasses import dataclass
from enum import Enum

from vgreport.core.constants import LABEL_WIDTH
from vgreport.models.report import GroupedFinding, Report


# ---------------------------------------------------------------------------
# ANSI Styling
# ---------------------------------------------------------------------------
_BOLD = "\x1b[1m"
_RED = "\x1b[31;1m"
_GREEN = "\x1b[32;1m"
_YELLOW = "\x1b[33;1m"
_CYAN = "\x1b[36;1m"
_RESET = "\x1b[0m"


class Verbosity(str, Enum):
    SUMMARY = "summary"
    FULL = "full"


@dataclass(frozen=True)
class RenderStyle:
    """
    Rendering options.

    Fields
    ------
    colorize : bool
        Wrap status and kind labels in ANSI escapes.
    verbosity : Verbosity
        SUMMARY prints one line per group; FULL adds the representative stack.
    """
    colorize: bool = False
    verbosity: Verbosity = Verbosity.FULL

    def paint(self, text: str, color: str) -> str:
        if not self.colorize:
            return text
        return f"{color}{text}{_RESET}"


# ---------------------------------------------------------------------------
# Formatting Helpers
# ---------------------------------------------------------------------------
_SIZE_UNITS = ["KiB", "MiB", "GiB", "TiB"]


def format_size(num_bytes: int) -> str:
    """
    Format a byte count with binary prefixes.

    Examples: 0 → "0 B", 192 → "192 B", 1536 → "1.5 KiB", 3145728 → "3.0 MiB".
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"
    value = float(num_bytes)
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _label(text: str, color: str, style: RenderStyle) -> str:
    # Pad before painting so escapes do not break alignment
    return style.paint(f"{text:>{LABEL_WIDTH}}", color)


def status_line(label: str, message: str, style: RenderStyle, error: bool = False) -> str:
    """One cargo-style status line, e.g. "   Analyzing `target/debug/demo`"."""
    return f"{_label(label, _RED if error else _GREEN, style)} {message}"


# ---------------------------------------------------------------------------
# Section Renderers
# ---------------------------------------------------------------------------
def render_group(group: GroupedFinding, style: RenderStyle) -> list[str]:
    """Render one GroupedFinding as a headline plus optional stack lines."""
    color = _YELLOW if group.kind.is_leak else _RED
    headline = f"{style.paint(group.kind.label, _BOLD)}: {_plural(group.count, 'occurrence')}"
    if group.kind.tracks_bytes:
        headline += f", {format_size(group.total_bytes)}"

    lines = [f"{_label('Error', color, style)} {headline}"]
    if style.verbosity is Verbosity.SUMMARY:
        return lines

    info = _label("Info", _CYAN, style)
    blank = " " * LABEL_WIDTH
    if not group.representative_stack:
        lines.append(f"{info} {group.representative_message or 'no stack trace available'}")
        return lines

    for position, frame in enumerate(group.representative_stack):
        prefix = info if position == 0 else blank
        lines.append(f"{prefix} at {frame.describe()}")
    return lines


def render_summary(report: Report, style: RenderStyle) -> str:
    """Trailing line: distinct groups, total occurrences, leaked bytes."""
    text = (
        f"{_plural(len(report.groups), 'group')}, "
        f"{_plural(report.total_occurrences, 'occurrence')}, "
        f"{format_size(report.leaked_bytes)} leaked"
    )
    if report.degraded_count:
        text += f" ({report.degraded_count} with incomplete detail)"
    return f"{_label('Summary', _BOLD, style)} {text}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def render(report: Report, style: RenderStyle = RenderStyle()) -> str:
    """
    Render a Report as text.

    Parameters
    ----------
    report : Report
        Aggregated result.
    style : RenderStyle
        Colour and verbosity options.

    Returns
    -------
    str
        Rendered text without a trailing newline.
    """
    if report.clean:
        return status_line("Finished", "no errors detected", style)

    lines: list[str] = []
    for group in report.groups:
        lines.extend(render_group(group, style))
    lines.append(render_summary(report, style))
    return "\n".join(lines)
