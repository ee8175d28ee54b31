"""
Command-line interface for popest.

`popest fetch` resolves the latest local-authority population estimate and
writes it to data/data.json; `popest describe` shows what the resolver would
pick without querying observations.
"""

import dataclasses
import json
import logging
import pathlib
import sys
import typing

import click
import requests
from stairval.notepad import Notepad, create_notepad

from .client import DEFAULT_PAGE_SIZE, OnsClient
from .errors import DimensionNotFoundError, PopEstError
from .matcher import ROLE_MATCHERS
from .pipeline import PipelineConfig, PopulationPipeline
from .resolver import TITLE_PREDICATES
from .writer import DEFAULT_OUTPUT_PATH, write_output_record


@click.group()
def main():
    """popest: fetch a local-authority population estimate from the ONS API."""
    pass


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _report_issues(notepad: Notepad) -> None:
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found during resolution:", err=True)
        for err in notepad.errors():
            click.echo(f"- {err.message}", err=True)
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found during resolution:", err=True)
        for w in notepad.warnings():
            click.echo(f"- {w.message}", err=True)


def _fail(error: Exception) -> typing.NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


_pipeline_options = [
    click.option(
        "--dimension-strategy",
        type=click.Choice(sorted(ROLE_MATCHERS)),
        default="heuristic",
        show_default=True,
        help="how sex/age/time/geography dimensions are identified",
    ),
    click.option(
        "--title-match",
        type=click.Choice(sorted(TITLE_PREDICATES)),
        default="loose",
        show_default=True,
        help="dataset title predicate: 'population'+'estimate' or the canonical title",
    ),
    click.option("--page-size", type=click.IntRange(min=1), default=DEFAULT_PAGE_SIZE, show_default=True,
                 help="page size used when listing datasets and options"),
    click.option("--timeout", type=float, default=None, help="per-request timeout in seconds (default: none)"),
    click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr"),
    click.option(
        "--log-file-path",
        type=click.Path(dir_okay=False, writable=True),
        help="Append timestamped logs to this file",
    ),
]


def pipeline_options(func):
    for option in reversed(_pipeline_options):
        func = option(func)
    return func


@main.command(name="fetch")
@click.option(
    "-o",
    "--output-path",
    "output_path",
    default=str(DEFAULT_OUTPUT_PATH),
    show_default=True,
    type=click.Path(dir_okay=False),
    help="where to write the JSON record",
)
@click.option("--strict-aggregate/--allow-summation", default=False,
              help="Require an 'all ages' option instead of summing single-year ages (default: allow summation).")
@pipeline_options
def fetch(
    output_path: str,
    strict_aggregate: bool,
    dimension_strategy: str,
    title_match: str,
    page_size: int,
    timeout: typing.Optional[float],
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """
    Resolve dataset, edition, version, dimensions and options, query the
    latest population estimate and write it as JSON.
    """
    _configure_logging(verbose_logging, log_file_path)
    config = PipelineConfig(
        dimension_strategy=dimension_strategy,
        strict_aggregate=strict_aggregate,
        title_match=title_match,
    )
    notepad = create_notepad("popest")

    try:
        with OnsClient(timeout=timeout, page_size=page_size) as client:
            record = PopulationPipeline(client, config).run(notepad)
    except (PopEstError, requests.RequestException) as e:
        _report_issues(notepad)
        _fail(e)

    _report_issues(notepad)
    try:
        out = write_output_record(record, pathlib.Path(output_path))
    except (OSError, ValueError) as e:
        _fail(e)
    click.echo(f"Wrote {out}: population {record.to_dict()['population']} ({record.period_label})")


@main.command(name="describe")
@click.option("-r", "--raw", is_flag=True, help="print JSON instead of a table")
@pipeline_options
def describe(
    raw: bool,
    dimension_strategy: str,
    title_match: str,
    page_size: int,
    timeout: typing.Optional[float],
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """
    Show the dataset, edition and version that would be used, and the role
    assigned to each dimension.
    """
    _configure_logging(verbose_logging, log_file_path)
    config = PipelineConfig(dimension_strategy=dimension_strategy, title_match=title_match)
    notepad = create_notepad("popest")

    try:
        with OnsClient(timeout=timeout, page_size=page_size) as client:
            pipeline = PopulationPipeline(client, config)
            resolved = pipeline.resolve_version()
            try:
                roles = pipeline.match_roles(resolved, notepad)
                role_by_dim = {dim_id: role for role, dim_id in dataclasses.asdict(roles).items()}
            except DimensionNotFoundError as e:
                notepad.add_error(str(e))
                role_by_dim = {}
    except (PopEstError, requests.RequestException) as e:
        _fail(e)

    rows = [
        {"id": d.id, "label": d.label, "role": role_by_dim.get(d.id, "")}
        for d in resolved.dimensions
    ]
    if raw:
        click.echo(json.dumps({
            "dataset_id": resolved.dataset.id,
            "dataset_title": resolved.dataset.title,
            "edition": resolved.edition.name,
            "version": resolved.version.id,
            "dimensions": rows,
        }, indent=2))
    else:
        click.echo(f"Dataset: {resolved.dataset.id} ({resolved.dataset.title})")
        click.echo(f"Edition: {resolved.edition.name}  Version: {resolved.version.id}")
        click.echo(f"{'DIMENSION':30}  {'LABEL':40}  ROLE")
        for row in rows:
            click.echo(f"{row['id']:30}  {row['label']:40}  {row['role']}")
    _report_issues(notepad)


if __name__ == "__main__":
    main()
