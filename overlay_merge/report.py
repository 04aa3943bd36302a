"""
Markdown report of the merge decisions taken for a tree.
"""

from __future__ import annotations

from pathlib import Path

import jinja2

from .merger import MergeOutcome
from .walker import FileReport

CURRENT_DIR = Path(__file__).parent.resolve().absolute()


def outcome_totals(reports: list[FileReport]) -> list[tuple[str, int]]:
    """Number of records per outcome, in outcome declaration order."""
    return [(outcome.value, sum(1 for r in reports for record in r.records if record.outcome == outcome)) for outcome in MergeOutcome]


def render_report(reports: list[FileReport], command_line: str) -> str:
    jinja_env = jinja2.Environment(lstrip_blocks=True, trim_blocks=True)
    with open(CURRENT_DIR / "templates/report.md.jinja2", encoding="utf-8") as f:
        template = jinja_env.from_string(f.read())
    return template.render(reports=reports, totals=outcome_totals(reports), command_line=command_line)
