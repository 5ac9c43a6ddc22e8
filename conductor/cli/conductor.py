"""Command line interface: compile, diff and apply score packages."""

from __future__ import annotations

import sys
from typing import List, Optional

import click

from ..apply import ApplyError, CommitError, Stage, commit
from ..catalog import Catalog, CatalogError, Namespace
from ..config import Config, load_config
from ..diff import DiffError, Edit, diff
from ..ensemble import open_ensemble
from ..score import Score, ScoreError
from ..utils.logging import get_contextual_logger, setup_logging

# Failures reported as "error: ..." instead of a traceback
USER_ERRORS = (
    ScoreError,
    CatalogError,
    DiffError,
    ApplyError,
    CommitError,
    FileNotFoundError,
    ValueError,
)


class CatalogPrinter:
    """Prints a compiled catalog in a readable format."""

    def __init__(self, emit):
        self.emit = emit

    def display_catalog(self, catalog: Catalog) -> None:
        if not catalog.namespaces:
            self.emit("Catalog is empty.")
            return
        for name in sorted(catalog.namespaces):
            self._print_namespace(catalog.namespaces[name])

    def _print_namespace(self, namespace: Namespace) -> None:
        header = f"Namespace: {namespace.name}"
        self.emit(header)
        self.emit("-" * len(header))
        for name in sorted(namespace.tables):
            table = namespace.tables[name]
            self.emit(f"Table: {table.fully_qualified_name()} UUID {table.uuid}")
            for column in table.columns:
                self.emit(
                    f"  - {column.name}: {column.data_type.value} UID {column.uid}"
                )
        for name in sorted(namespace.http_handlers):
            handler = namespace.http_handlers[name]
            self.emit(
                f"HTTP handler: {handler.fully_qualified_name()} "
                f"POLICY {handler.policy}"
            )
            self.emit(f"  {handler.body}")
        for name in sorted(namespace.authentication_policies):
            policy = namespace.authentication_policies[name]
            self.emit(
                f"Authentication policy: {policy.fully_qualified_name()} "
                f"TYPE = {policy.type.value}"
            )
        for name in sorted(namespace.authorization_policies):
            policy = namespace.authorization_policies[name]
            self.emit(
                f"Authorization policy: {policy.fully_qualified_name()} "
                f"permissive_expr = {policy.permissive_expr}"
            )
        self.emit("")


def _print_edits(edits: List[Edit]) -> None:
    if not edits:
        click.echo("No changes.")
        return
    for edit in edits:
        click.echo(str(edit))


def _load_score(config: Config, path: str) -> Catalog:
    score = Score(path, dialect=config.score.dialect, file_suffix=config.score.file_suffix)
    return score.catalog()


def _fail(error: Exception) -> None:
    click.echo(f"error: {error}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Overrides the level from the config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """Compile score packages and apply them to a storage ensemble."""
    config = load_config(config_path) if config_path else Config()
    setup_logging(
        level=log_level or config.logging.level,
        structured=config.logging.structured,
        log_file=config.logging.log_file,
    )
    ctx.obj = config


@cli.command("compile")
@click.argument("path")
@click.pass_obj
def compile_command(config: Config, path: str) -> None:
    """Compile the score package at PATH and print its catalog."""
    try:
        catalog = _load_score(config, path)
    except USER_ERRORS as e:
        _fail(e)
    CatalogPrinter(click.echo).display_catalog(catalog)


@cli.command("diff")
@click.argument("path_a")
@click.argument("path_b")
@click.pass_obj
def diff_command(config: Config, path_a: str, path_b: str) -> None:
    """Print the edits that turn package PATH_A into package PATH_B."""
    try:
        edits = diff(_load_score(config, path_a), _load_score(config, path_b))
    except USER_ERRORS as e:
        _fail(e)
    _print_edits(edits)


@cli.command("apply")
@click.argument("path")
@click.option(
    "--data-path",
    help="Data directory of the ensemble. Defaults to ensemble.path from the config.",
)
@click.option("--commit", "do_commit", is_flag=True, help="Execute the changes.")
@click.pass_obj
def apply_command(
    config: Config, path: str, data_path: Optional[str], do_commit: bool
) -> None:
    """Bring the ensemble at the data path in line with the package at PATH.

    Without --commit the edits are only staged and printed.
    """
    data_path = data_path or config.ensemble.path
    if not data_path:
        _fail(ValueError("no data path given (use --data-path or ensemble.path)"))

    logger = get_contextual_logger(__name__, {"score": path, "data_path": data_path})
    try:
        storage, store = open_ensemble(
            config.ensemble.type, data_path, config.ensemble.catalog_key
        )
        current = store.load()
        target = _load_score(config, path)
        edits = diff(current, target)
        stage = Stage(current)
        stage.apply_all(edits)
    except USER_ERRORS as e:
        _fail(e)

    _print_edits(edits)
    if not do_commit:
        logger.info("Dry run, nothing committed")
        click.echo(
            f"Dry run: {len(edits)} edits, {len(stage.pending)} storage actions. "
            "Re-run with --commit to apply."
        )
        return

    try:
        with storage:
            executed = commit(stage, storage, store)
    except USER_ERRORS as e:
        _fail(e)
    logger.info(f"Applied {len(edits)} edits")
    click.echo(f"Committed {len(edits)} edits, {executed} storage actions.")


if __name__ == "__main__":
    cli()
