"""Validate and apply definition files."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..errors import DefinitionError
from ..registry.client import ArtifactClient
from ..scoring.definitions import Definition, definition_artifact, load_definition_file, project_location
from ..scoring.models import ScoreDefinition
from ..scoring.validate import validate_score_card_definition, validate_score_definition


def check_definition(project: str, definition: Definition) -> list[DefinitionError]:
    parent = project_location(project)
    if isinstance(definition, ScoreDefinition):
        return validate_score_definition(parent, definition)
    return validate_score_card_definition(parent, definition)


def _load_all(paths: list[Path], err: Console) -> list[tuple[Path, Definition]] | None:
    loaded: list[tuple[Path, Definition]] = []
    for path in paths:
        try:
            loaded.extend((path, d) for d in load_definition_file(path))
        except (OSError, ValueError) as exc:
            err.print(f"{path}: {escape(str(exc))}", style="bold red")
            return None
    return loaded


def run_validate(paths: list[Path], project: str) -> int:
    console = Console()
    err = Console(stderr=True)
    loaded = _load_all(paths, err)
    if loaded is None:
        return 1

    failed = 0
    for path, definition in loaded:
        problems = check_definition(project, definition)
        if not problems:
            console.print(f"[green]ok[/] {path}: {definition.kind} {definition.id}")
            continue
        failed += 1
        console.print(f"[bold red]invalid[/] {path}: {definition.kind} {definition.id}")
        for problem in problems:
            console.print(f"  - {escape(str(problem))}")

    return 1 if failed else 0


def run_apply(client: ArtifactClient, paths: list[Path], project: str) -> int:
    """Validate every definition, then store them all (or none)."""
    console = Console()
    err = Console(stderr=True)
    loaded = _load_all(paths, err)
    if loaded is None:
        return 1

    invalid = False
    for path, definition in loaded:
        for problem in check_definition(project, definition):
            err.print(f"{path}: {definition.id}: {escape(str(problem))}", style="bold red")
            invalid = True
    if invalid:
        err.print("nothing applied", style="bold red")
        return 1

    for _, definition in loaded:
        stored = client.set_artifact(definition_artifact(f"projects/{project}", definition))
        console.print(f"applied {stored.name}")
    return 0
