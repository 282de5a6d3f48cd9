"""
Fan-out of score and scorecard computation over many resources.

Every (definition, resource) pair is an independent task run on a thread
pool. A failing task is logged and reported; it never stops its siblings.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

from ..cel import ExpressionEngine
from ..errors import PatternError
from ..names import ResourceInstance, parse_resource_pattern
from ..registry.artifact import Artifact
from ..registry.client import ArtifactClient
from .definitions import (
    fetch_score_card_definitions,
    fetch_score_definitions,
    generate_combined_pattern,
    load_score_card_definition,
    load_score_definition,
)
from .models import ResourcePattern
from .score import calculate_score
from .scorecard import calculate_score_card

logger = logging.getLogger(__name__)

DEFAULT_JOBS = 10


@dataclass(frozen=True)
class TaskOutcome:
    definition: str
    resource: str
    result: object | None = None
    error: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error)


@dataclass
class BatchReport:
    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def updated(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if not o.failed and o.result is not None]

    @property
    def current(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if not o.failed and o.result is None]

    @property
    def failures(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.failed]


Task = tuple[Artifact, ResourceInstance]


def _plan(
    client: ArtifactClient,
    definitions: list[Artifact],
    target_of: Callable[[Artifact], ResourcePattern],
    pattern: str,
    filter: str,
    report: BatchReport,
) -> list[Task]:
    input_pattern = parse_resource_pattern(pattern)
    tasks: list[Task] = []
    for artifact in definitions:
        try:
            target = target_of(artifact)
            merged_pattern, merged_filter = generate_combined_pattern(target, input_pattern, filter)
        except PatternError as exc:
            logger.debug("skipping %s: %s", artifact.name, exc)
            continue
        except ValueError as exc:
            logger.warning("unusable definition %s: %s", artifact.name, exc)
            report.outcomes.append(TaskOutcome(definition=artifact.name, resource=pattern, error=str(exc)))
            continue
        for resource in client.list_resources(merged_pattern, merged_filter):
            tasks.append((artifact, resource))
    return tasks


def _run(tasks: list[Task], fn: Callable[[Artifact, ResourceInstance], object], jobs: int, report: BatchReport) -> BatchReport:
    def run_one(task: Task) -> TaskOutcome:
        artifact, resource = task
        try:
            result = fn(artifact, resource)
        except Exception as exc:
            logger.warning("failed %s on %s: %s", artifact.name, resource, exc, exc_info=not isinstance(exc, ValueError))
            return TaskOutcome(definition=artifact.name, resource=str(resource), error=str(exc) or type(exc).__name__)
        return TaskOutcome(definition=artifact.name, resource=str(resource), result=result)

    with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
        report.outcomes.extend(pool.map(run_one, tasks))
    return report


def compute_scores(
    client: ArtifactClient,
    pattern: str,
    filter: str = "",
    jobs: int = DEFAULT_JOBS,
    dry_run: bool = False,
    engine: ExpressionEngine | None = None,
) -> BatchReport:
    """Compute every applicable score for resources matching ``pattern``."""
    report = BatchReport()
    project = parse_resource_pattern(pattern).project()
    definitions = fetch_score_definitions(client, project)
    tasks = _plan(client, definitions, lambda a: load_score_definition(a).target_resource, pattern, filter, report)
    logger.info("computing %d score(s) from %d definition(s)", len(tasks), len(definitions))
    return _run(tasks, lambda a, r: calculate_score(client, a, r, dry_run=dry_run, engine=engine), jobs, report)


def compute_score_cards(
    client: ArtifactClient,
    pattern: str,
    filter: str = "",
    jobs: int = DEFAULT_JOBS,
    dry_run: bool = False,
) -> BatchReport:
    """Compute every applicable scorecard for resources matching ``pattern``."""
    report = BatchReport()
    project = parse_resource_pattern(pattern).project()
    definitions = fetch_score_card_definitions(client, project)
    tasks = _plan(client, definitions, lambda a: load_score_card_definition(a).target_resource, pattern, filter, report)
    logger.info("computing %d scorecard(s) from %d definition(s)", len(tasks), len(definitions))
    return _run(tasks, lambda a, r: calculate_score_card(client, a, r, dry_run=dry_run), jobs, report)
