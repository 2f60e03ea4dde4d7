# padwatch/ui.py
# Presentation-only utilities for CLI output.
from __future__ import annotations

from typing import IO, Iterable

from padwatch.models import CycleReport, Link


def _writeln(text: str = "", *, file: IO[str]) -> None:
    file.write(text + "\n")


def human_bytes(n: int) -> str:
    # Compact human-readable bytes
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    v = float(n)
    while v >= 1024 and i < len(units) - 1:
        v /= 1024.0
        i += 1
    # max 2 decimals, strip trailing zeros
    s = f"{v:.2f}".rstrip("0").rstrip(".")
    return f"{s} {units[i]}"


def render_links(links: Iterable[Link], *, file: IO[str]) -> None:
    for url in sorted(link.to_url() for link in links):
        _writeln(url, file=file)


def render_cycle_report(report: CycleReport, *, file: IO[str]) -> None:
    _writeln(
        f"Visited {len(report.visited)} pads, discovered {len(report.discovered)}, "
        f"settled {len(report.settled)}.",
        file=file,
    )
    if report.discovered:
        _writeln("\n--- Discovered ---", file=file)
        for link in report.discovered:
            _writeln(f"- {link}", file=file)
    if report.settled:
        _writeln("\n--- Settled ---", file=file)
        for link in report.settled:
            _writeln(f"- {link}", file=file)
    render_errors_section(report.errors, file=file)


def render_errors_section(errors: Iterable[str], *, file: IO[str]) -> None:
    errs = list(errors)
    if not errs:
        return
    _writeln("\n--- Errors Encountered ---", file=file)
    for e in errs:
        _writeln(f"- {e}", file=file)
