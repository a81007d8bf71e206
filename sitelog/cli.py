import json

import click
from flask import current_app
from flask.cli import with_appcontext

from sitelog.extensions import db
from sitelog.services.catalog import KINDS, import_catalog, set_site_name
from sitelog.services.errors import ServiceError
from sitelog.services.reports import build_report_assembler, build_weather_sync
from sitelog.services.row_budget import PAGE_DEFAULTS, all_row_limits, set_max_rows
from sitelog.services.stores import SqlRowLimitStore
from sitelog.services.weather import issuance_window
from sitelog.utils.helpers import local_today, utcnow
from sitelog.utils.validators import parse_report_date


def _report_date(value):
    if not value:
        return local_today(offset_hours=current_app.config["REPORT_UTC_OFFSET_HOURS"])
    try:
        return parse_report_date(value)
    except ServiceError as e:
        raise click.BadParameter(str(e), param_hint="--date")


@click.group()
def weather():
    """Daily weather snapshot."""


@weather.command("sync")
@with_appcontext
def weather_sync():
    """Fetch and store today's forecast unless it is already stored."""
    snapshot = build_weather_sync(db.session, current_app.config).ensure_today()
    click.echo(json.dumps(snapshot.to_dict(), ensure_ascii=False))


@weather.command("window")
@with_appcontext
def weather_window():
    base_date, base_time = issuance_window(utcnow(), current_app.config["REPORT_UTC_OFFSET_HOURS"])
    click.echo(f"{base_date} {base_time}")


@click.group()
def reports():
    """Report view-models as JSON."""


@reports.command("show")
@click.argument("kind", type=click.Choice(["manpower", "work-status", "work-status-smaty", "combined", "submissions"]))
@click.option("--date", "date_str", default=None, help="YYYY-MM-DD (default: today)")
@with_appcontext
def reports_show(kind, date_str):
    d = _report_date(date_str)
    assembler = build_report_assembler(db.session, current_app.config)
    build = {
        "manpower": assembler.manpower,
        "work-status": assembler.work_status,
        "work-status-smaty": assembler.work_status_smaty,
        "combined": assembler.combined,
        "submissions": assembler.submission_status,
    }[kind]
    click.echo(json.dumps(build(d).to_dict(), ensure_ascii=False, indent=2))


@click.group()
def rows():
    """Per-page printable row limits."""


@rows.command("set")
@click.argument("page_name", type=click.Choice(sorted(PAGE_DEFAULTS)))
@click.argument("max_rows", type=int)
@with_appcontext
def rows_set(page_name, max_rows):
    try:
        n = set_max_rows(SqlRowLimitStore(db.session), page_name, max_rows)
    except ServiceError as e:
        raise click.ClickException(str(e))
    click.echo(f"{page_name} max_rows={n}")


@rows.command("list")
@with_appcontext
def rows_list():
    for page, n in all_row_limits(SqlRowLimitStore(db.session)).items():
        click.echo(f"{page} {n}")


@click.group()
def site():
    """Site shown on report headers."""


@site.command("set")
@click.argument("name")
@with_appcontext
def site_set(name):
    try:
        s = set_site_name(db.session, name)
    except ServiceError as e:
        raise click.ClickException(str(e))
    click.echo(f"Site name set: {s.name}")


@click.group()
def catalog():
    """Catalog seeding."""


@catalog.command("import")
@click.argument("kind", type=click.Choice(list(KINDS)))
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def catalog_import(kind, path):
    try:
        inserted, skipped = import_catalog(db.session, kind, path)
    except ServiceError as e:
        raise click.ClickException(str(e))
    click.echo(f"Imported {kind}: inserted={inserted} skipped={skipped}")


def register_cli(app):
    app.cli.add_command(weather)
    app.cli.add_command(reports)
    app.cli.add_command(rows)
    app.cli.add_command(site)
    app.cli.add_command(catalog)
