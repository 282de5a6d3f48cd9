"""CLI entrypoint for regscore."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import Config, find_config, load_config, qualify


def _setup_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _registry(ctx: click.Context):
    from .registry.local import LocalRegistry

    config: Config = ctx.obj["config"]
    return LocalRegistry(config.registry_root)


def _pattern(ctx: click.Context, pattern: str) -> str:
    try:
        return qualify(pattern, ctx.obj["config"].project)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="PATTERN") from exc


def _project(ctx: click.Context) -> str:
    project = ctx.obj["config"].project
    if not project:
        raise click.ClickException("No project configured. Pass --project or set registry.project in regscore.toml.")
    return project


@click.group()
@click.version_option(__version__, prog_name="regscore")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to regscore.toml (defaults to the nearest one above the working directory)",
)
@click.option(
    "--registry",
    "-r",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Local registry directory (overrides registry.root)",
)
@click.option("--project", "-p", default=None, help="Project id for project-relative patterns")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, registry: Path | None, project: str | None, verbose: bool) -> None:
    """regscore - quality scores and scorecards for API registry resources.

    Definitions declare how to reduce artifacts (lint reports, complexity
    metrics, ...) to a score; compute commands evaluate them against every
    matching resource and store the results as artifacts.
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path or find_config(Path.cwd()))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    overrides = {}
    if registry is not None:
        overrides["registry_root"] = registry
    if project is not None:
        overrides["project"] = project
    if overrides:
        from dataclasses import replace

        config = replace(config, **overrides)
    ctx.obj["config"] = config


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, files: tuple[Path, ...]) -> None:
    """Check definition files and report every problem found.

    Example:

        regscore -p demo validate definitions/lint-errors.yaml
    """
    from .commands.definition_cmd import run_validate

    sys.exit(run_validate(list(files), _project(ctx)))


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def apply(ctx: click.Context, files: tuple[Path, ...]) -> None:
    """Validate definition files and store them in the registry."""
    from .commands.definition_cmd import run_apply

    sys.exit(run_apply(_registry(ctx), list(files), _project(ctx)))


@cli.group()
def compute() -> None:
    """Compute scores and scorecards."""


def _compute_options(fn):
    fn = click.option("--json", "output_json", is_flag=True, help="Output results as JSON")(fn)
    fn = click.option("--dry-run", is_flag=True, help="Compute but do not store results")(fn)
    fn = click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Number of concurrent workers")(fn)
    fn = click.option("--filter", "filter_expr", default="", help="CEL filter over resource fields (name, kind, update_time)")(fn)
    fn = click.argument("pattern")(fn)
    return fn


@compute.command("score")
@_compute_options
@click.pass_context
def compute_score(
    ctx: click.Context, pattern: str, filter_expr: str, jobs: int | None, dry_run: bool, output_json: bool
) -> None:
    """Compute scores for resources matching PATTERN.

    Example:

        regscore -p demo compute score apis/-/versions/-/specs/-
    """
    from .commands.compute_cmd import run_compute_scores
    config: Config = ctx.obj["config"]
    try:
        exit_code = run_compute_scores(
            _registry(ctx),
            _pattern(ctx, pattern),
            filter=filter_expr,
            jobs=jobs or config.jobs,
            dry_run=dry_run or config.dry_run,
            output_json=output_json,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@compute.command("scorecard")
@_compute_options
@click.pass_context
def compute_scorecard(
    ctx: click.Context, pattern: str, filter_expr: str, jobs: int | None, dry_run: bool, output_json: bool
) -> None:
    """Compute scorecards for resources matching PATTERN."""
    from .commands.compute_cmd import run_compute_score_cards
    config: Config = ctx.obj["config"]
    try:
        exit_code = run_compute_score_cards(
            _registry(ctx),
            _pattern(ctx, pattern),
            filter=filter_expr,
            jobs=jobs or config.jobs,
            dry_run=dry_run or config.dry_run,
            output_json=output_json,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@cli.group()
def resource() -> None:
    """Manage registry resources."""


@resource.command("add")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def resource_add(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Register APIs, versions, specs or deployments."""
    from .commands.artifact_cmd import run_resource_add

    sys.exit(run_resource_add(_registry(ctx), [_pattern(ctx, n) for n in names]))


@cli.group()
def artifact() -> None:
    """Inspect and store artifacts."""


@artifact.command("list")
@click.argument("pattern")
@click.option("--filter", "filter_expr", default="", help="CEL filter over artifact fields (name, mime_type, update_time)")
@click.pass_context
def artifact_list(ctx: click.Context, pattern: str, filter_expr: str) -> None:
    """List artifacts matching PATTERN."""
    from .commands.artifact_cmd import run_artifact_list

    sys.exit(run_artifact_list(_registry(ctx), _pattern(ctx, pattern), filter=filter_expr))


@artifact.command("get")
@click.argument("name")
@click.option("--json", "output_json", is_flag=True, help="Include metadata as JSON")
@click.pass_context
def artifact_get(ctx: click.Context, name: str, output_json: bool) -> None:
    """Print one artifact's decoded contents."""
    from .commands.artifact_cmd import run_artifact_get

    sys.exit(run_artifact_get(_registry(ctx), _pattern(ctx, name), output_json=output_json))


@artifact.command("put")
@click.argument("name")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mime-type", required=True, help="e.g. application/octet-stream;type=google.cloud.apigeeregistry.v1.style.Lint")
@click.pass_context
def artifact_put(ctx: click.Context, name: str, file: Path, mime_type: str) -> None:
    """Store FILE as artifact NAME."""
    from .commands.artifact_cmd import run_artifact_put

    sys.exit(run_artifact_put(_registry(ctx), _pattern(ctx, name), file, mime_type=mime_type))


if __name__ == "__main__":
    cli()
