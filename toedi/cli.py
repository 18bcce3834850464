"""
Command-line interface for Toedi.

Provides schema creation, local ingestion of a FIT file, preference updates,
a dry-run of the load curve fit and the Celery worker.
"""

import json
import sys
from typing import Optional

import click

from .analytics import curve_fit
from .config import load_settings
from .exceptions import ToediError
from .pipeline import FitIngestionPipeline
from .storage import create_engine_from_config, create_session_factory, init_db, update_user_preferences
from .utils.logging import setup_logging


@click.group()
@click.option("--env-file", type=click.Path(dir_okay=False), help="Path to a .env file")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[str], debug: bool) -> None:
    """Toedi command-line interface."""
    try:
        settings = load_settings(env_file, debug=debug)
    except ToediError as e:
        raise click.ClickException(str(e))
    if debug:
        settings.logging.level = "DEBUG"
    setup_logging(settings.logging)
    ctx.obj = settings


def _session_factory(settings):
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    return create_session_factory(engine)


@cli.command("init-db")
@click.pass_obj
def init_db_command(settings) -> None:
    """Create all tables."""
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    click.echo(f"✅ Database initialized at {engine.url.render_as_string(hide_password=True)}")


@cli.command()
@click.argument("fit_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--user-id", "-u", required=True, type=int, help="Owner of the activity")
@click.pass_obj
def ingest(settings, fit_file: str, user_id: int) -> None:
    """Ingest a FIT file into the database."""
    with open(fit_file, "rb") as f:
        data = f.read()

    pipeline = FitIngestionPipeline(settings, _session_factory(settings))
    result = pipeline.process(data, user_id)
    click.echo(json.dumps(result.to_dict(), indent=2))
    if not result.succeeded:
        sys.exit(1)


@cli.command("set-preferences")
@click.option("--user-id", "-u", required=True, type=int)
@click.option("--aerobic", required=True, type=int, help="Aerobic threshold in bpm")
@click.option("--anaerobic", required=True, type=int, help="Anaerobic threshold in bpm")
@click.option("--max-hr", "max_heartrate", required=True, type=int, help="Maximum heart rate in bpm")
@click.pass_obj
def set_preferences(settings, user_id: int, aerobic: int, anaerobic: int, max_heartrate: int) -> None:
    """Store new heart rate thresholds for a user."""
    try:
        preferences = update_user_preferences(
            _session_factory(settings), user_id, aerobic, anaerobic, max_heartrate
        )
    except ToediError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    click.echo(f"✅ Preferences stored for user {user_id}: tau={preferences.tau:.7f} c={preferences.c:.6e}")


@cli.command("fit-curve")
@click.option("--aerobic", required=True, type=int)
@click.option("--anaerobic", required=True, type=int)
@click.option("--max-hr", "max_heartrate", required=True, type=int)
def fit_curve(aerobic: int, anaerobic: int, max_heartrate: int) -> None:
    """Fit the load curve without storing anything."""
    try:
        tau, c = curve_fit(aerobic, anaerobic, max_heartrate)
    except ToediError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps({'tau': tau, 'c': c}))


@cli.command()
@click.option("--concurrency", "-c", type=int, help="Number of worker processes")
@click.option("--loglevel", "-l", default="info", help="Logging level")
@click.option("--queues", "-Q", help="Comma-separated list of queues to consume")
@click.pass_obj
def worker(settings, concurrency: Optional[int], loglevel: str, queues: Optional[str]) -> None:
    """Start Celery worker."""
    from .celery_app import create_celery_app

    app = create_celery_app(settings)
    args = ["worker", "--loglevel", loglevel,
            "--concurrency", str(concurrency or settings.celery.worker_concurrency)]
    if queues:
        args.extend(["--queues", queues])

    click.echo(f"Starting Celery worker with args: {' '.join(args)}")
    app.worker_main(args)


if __name__ == "__main__":
    cli()
