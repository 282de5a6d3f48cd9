"""Artifact and resource inspection commands."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..errors import NotFoundError, PatternError
from ..registry.artifact import Artifact, kind_for_mime_type
from ..registry.local import LocalRegistry
from ..scoring.schemas import decode_message


def run_artifact_list(client: LocalRegistry, pattern: str, *, filter: str = "") -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        artifacts = client.list_artifacts(pattern, filter=filter)
    except ValueError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1

    table = Table(title="Artifacts")
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("kind", style="magenta")
    table.add_column("updated", style="dim")
    for a in artifacts:
        table.add_row(a.name, kind_for_mime_type(a.mime_type) or a.mime_type, a.update_time.isoformat() if a.update_time else "")
    console.print(table)
    return 0


def run_artifact_get(client: LocalRegistry, name: str, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        artifact = client.get_artifact(name)
    except NotFoundError:
        err.print(f"Artifact not found: {name}", style="bold red")
        return 1

    try:
        _, contents = decode_message(artifact.mime_type, artifact.contents)
    except ValueError:
        contents = None

    if output_json:
        data = {
            "name": artifact.name,
            "mime_type": artifact.mime_type,
            "update_time": artifact.update_time.isoformat() if artifact.update_time else None,
            "contents": contents,
        }
        print(json.dumps(data, indent=2, sort_keys=True))
    elif contents is not None:
        print(json.dumps(contents, indent=2, sort_keys=True))
    else:
        print(artifact.contents.decode("utf-8", errors="replace"))
    return 0


def run_artifact_put(client: LocalRegistry, name: str, path: Path, *, mime_type: str) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        stored = client.set_artifact(Artifact(name=name, mime_type=mime_type, contents=path.read_bytes()))
    except (OSError, PatternError) as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1
    console.print(f"stored {stored.name}")
    return 0


def run_resource_add(client: LocalRegistry, names: list[str]) -> int:
    console = Console()
    err = Console(stderr=True)
    for name in names:
        try:
            instance = client.add_resource(name)
        except PatternError as exc:
            err.print(escape(str(exc)), style="bold red")
            return 1
        console.print(f"added {instance.name.kind.value} {instance.name}")
    return 0
