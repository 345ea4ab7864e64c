import logging
from typing import Any

import click
import yaml

from tssync import records, report, status
from tssync.classes import Status
from tssync.config import Config, configure_logging, load_config
from tssync.errors import TranslationCatalogError
from tssync.merge import merge
from tssync.resolver import Resolver
from tssync.store import Catalog

logger = logging.getLogger(__name__)

_existing_file = click.Path(exists=True, dir_okay=False)


def _read_document(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as file:
            return yaml.safe_load(file)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Cannot parse {path}: {exc}") from exc


def _write_document(path: str, document: Any) -> None:
    with open(path, "w", encoding="utf-8") as file:
        yaml.safe_dump(document, file, allow_unicode=True, sort_keys=False)


def _load_catalog(config: Config, path: str, locale: str | None) -> Catalog:
    document = _read_document(path) or {}
    if isinstance(document, dict):
        locale = locale or document.get("locale")
    if not locale:
        raise click.ClickException(f"{path} does not name a locale, pass --locale")
    policy = config.locale_policy(locale)
    return records.catalog_from_records(
        document, locale, case_insensitive=policy.case_insensitive
    )


@click.group()
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.version_option()
@click.pass_context
def cli(ctx: click.Context, config_folder: str) -> None:
    try:
        config = load_config(config_folder)
        configure_logging(config)
    except TranslationCatalogError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = config


@cli.command("merge")
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=_existing_file,
    help="Existing catalog records.",
)
@click.option(
    "--candidates",
    "candidates_path",
    required=True,
    type=_existing_file,
    help="Extracted strings.",
)
@click.option("--output", "output_path", help="Where to write the merged catalog.")
@click.option(
    "--locale", help="Locale of the catalog, when the records do not name it."
)
@click.pass_obj
def merge_command(
    config: Config,
    catalog_path: str,
    candidates_path: str,
    output_path: str | None,
    locale: str | None,
) -> None:
    try:
        catalog = _load_catalog(config, catalog_path, locale)
        candidates = records.candidates_from_records(_read_document(candidates_path) or [])
        result = merge(catalog, candidates, config.merge_policy)
    except (TranslationCatalogError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    _write_document(output_path or catalog_path, records.catalog_to_records(result.catalog))
    click.echo(f"{result.catalog.locale}: {result.summary()}")


@cli.command("check")
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=_existing_file,
    help="Catalog records to check.",
)
@click.option(
    "--locale", help="Locale of the catalog, when the records do not name it."
)
@click.option("--markdown", "markdown_path", help="Write the report as markdown.")
@click.option("--strict", is_flag=True, help="Exit with an error when issues are found.")
@click.pass_obj
def check(
    config: Config,
    catalog_path: str,
    locale: str | None,
    markdown_path: str | None,
    strict: bool,
) -> None:
    try:
        catalog = _load_catalog(config, catalog_path, locale)
    except (TranslationCatalogError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    plurals = config.locale_policy(catalog.locale).plurals
    reports = report.check(catalog, plurals)
    counts = report.statistics(catalog)
    click.echo(
        f"{catalog.locale}: "
        + ", ".join(f"{count} {state}" for state, count in counts.items())
    )
    for context, problems in reports.items():
        for problem in problems:
            if problem.context_warning:
                click.echo(f"  {context}: {problem.context_warning}")
            if problem.entry_warning:
                click.echo(f'  {context}: "{problem.source}" -> {problem.entry_warning}')

    if markdown_path:
        with open(markdown_path, "w", encoding="utf-8") as file:
            file.write(report.to_markdown(catalog.locale, reports))

    if strict and reports:
        raise click.ClickException(f"Found issues in {len(reports)} contexts")


@cli.command("resolve")
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=_existing_file,
    help="Catalog records.",
)
@click.option(
    "--locale", help="Locale of the catalog, when the records do not name it."
)
@click.option("--disambiguation", default="", help="Disambiguation comment.")
@click.option("--count", type=int, help="Count selecting the plural form.")
@click.argument("context")
@click.argument("source")
@click.pass_obj
def resolve(
    config: Config,
    catalog_path: str,
    locale: str | None,
    disambiguation: str,
    count: int | None,
    context: str,
    source: str,
) -> None:
    try:
        catalog = _load_catalog(config, catalog_path, locale)
    except (TranslationCatalogError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    resolver = Resolver(catalog, config.locale_policy(catalog.locale).plurals)
    click.echo(resolver.resolve(context, source, disambiguation, count))


@cli.command("prune")
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=_existing_file,
    help="Catalog records.",
)
@click.option(
    "--locale", help="Locale of the catalog, when the records do not name it."
)
@click.option(
    "--obsolete", "drop_obsolete", is_flag=True, help="Also drop obsolete entries."
)
@click.pass_obj
def prune(config: Config, catalog_path: str, locale: str | None, drop_obsolete: bool) -> None:
    """Remove vanished entries from a catalog.

    Catalogs written by `tssync merge` never hold vanished entries, so on
    those only --obsolete has anything to remove. Without it, prune cleans
    catalogs produced by other tools.
    """
    try:
        catalog = _load_catalog(config, catalog_path, locale)
    except (TranslationCatalogError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    if drop_obsolete:
        for entry in catalog.all_entries():
            if entry.status is Status.OBSOLETE:
                status.vanish(entry)
    removed = catalog.prune()
    _write_document(catalog_path, records.catalog_to_records(catalog))
    click.echo(f"{catalog.locale}: removed {len(removed)} entries")
