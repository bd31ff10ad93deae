from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import TimelineEntry
from .timeline import IDLE


def render_gantt(entries: List[TimelineEntry]) -> str:
    """
    Plain-text Gantt chart, used for non-terminal output and in tests.
    """
    if not entries:
        return "(no execution)"

    line = "|"
    labels = ""
    time_marks = str(entries[0].start)

    for entry in entries:
        width = max(1, entry.duration)
        line += ("." if entry.name == IDLE else "=") * width
        labels += entry.name[:width].ljust(width)
        time_marks += f"{entry.end:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def build_rich_gantt(entries: List[TimelineEntry]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not entries:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    name_to_color: Dict[str, str] = {}

    def name_color(name: str) -> str:
        if name not in name_to_color:
            idx = len(name_to_color) % len(colors)
            name_to_color[name] = colors[idx]
        return name_to_color[name]

    timeline = Text()
    labels = Text()
    time_marks = str(entries[0].start)

    for entry in entries:
        width = max(1, entry.duration)
        if entry.name == IDLE:
            timeline.append("." * width, style="dim")
            labels.append(entry.name[:width].ljust(width), style="dim")
        else:
            timeline.append(" " * width, style=f"on {name_color(entry.name)}")
            labels.append(entry.name[:width].ljust(width), style="bold")
        time_marks += f"{entry.end:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
