"""Score and scorecard computation commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..registry.client import ArtifactClient
from ..scoring.batch import BatchReport, compute_score_cards, compute_scores
from ..scoring.models import Score, ScoreCard, Severity

_SEVERITY_STYLE = {
    Severity.OK: "green",
    Severity.WARNING: "yellow",
    Severity.ALERT: "bold red",
    Severity.SEVERITY_UNSPECIFIED: "dim",
}


def _summary(result: object) -> tuple[str, str]:
    if isinstance(result, Score):
        return result.display(), result.severity.value
    if isinstance(result, ScoreCard):
        return f"{len(result.scores)} score(s)", ""
    return "", ""


def _render(report: BatchReport, title: str, *, dry_run: bool, output_json: bool) -> int:
    if output_json:
        data = [
            {
                "definition": o.definition,
                "resource": o.resource,
                "status": "failed" if o.failed else ("updated" if o.result is not None else "current"),
                "error": o.error or None,
                "result": o.result.to_dict() if isinstance(o.result, (Score, ScoreCard)) else None,
            }
            for o in report.outcomes
        ]
        print(json.dumps(data, indent=2, sort_keys=True))
        return 1 if report.failures else 0

    console = Console()
    table = Table(title=title)
    table.add_column("resource", style="cyan")
    table.add_column("definition", style="magenta")
    table.add_column("status")
    table.add_column("value")
    table.add_column("severity")

    for o in sorted(report.outcomes, key=lambda o: (o.resource, o.definition)):
        definition = o.definition.rsplit("/", 1)[-1]
        if o.failed:
            table.add_row(o.resource, definition, "[bold red]failed[/]", escape(o.error), "")
            continue
        if o.result is None:
            table.add_row(o.resource, definition, "current", "", "")
            continue
        value, severity = _summary(o.result)
        style = _SEVERITY_STYLE.get(Severity(severity), "") if severity else ""
        status = "would update" if dry_run else "updated"
        table.add_row(o.resource, definition, status, value, f"[{style}]{severity}[/]" if style else severity)

    console.print(table)
    console.print(
        f"{len(report.updated)} updated, {len(report.current)} current, {len(report.failures)} failed",
        style="bold red" if report.failures else "dim",
    )
    return 1 if report.failures else 0


def run_compute_scores(
    client: ArtifactClient,
    pattern: str,
    *,
    filter: str = "",
    jobs: int = 10,
    dry_run: bool = False,
    output_json: bool = False,
) -> int:
    report = compute_scores(client, pattern, filter=filter, jobs=jobs, dry_run=dry_run)
    return _render(report, "Scores", dry_run=dry_run, output_json=output_json)


def run_compute_score_cards(
    client: ArtifactClient,
    pattern: str,
    *,
    filter: str = "",
    jobs: int = 10,
    dry_run: bool = False,
    output_json: bool = False,
) -> int:
    report = compute_score_cards(client, pattern, filter=filter, jobs=jobs, dry_run=dry_run)
    return _render(report, "ScoreCards", dry_run=dry_run, output_json=output_json)
