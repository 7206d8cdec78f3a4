import asyncio
import json
from pathlib import Path
import subprocess
from typing import Annotated, Optional

from rich import print
import typer

from app.core.config import settings

app = typer.Typer()


def _build_monitor():
    from app.core.db import AsyncSessionLocal
    from app.core.services import AlertDispatcher, HealthMonitor

    return HealthMonitor(
        alerts=AlertDispatcher(session_factory=AsyncSessionLocal),
        session_factory=AsyncSessionLocal,
    )


async def init_db_task() -> None:
    """Create all tables on the configured database."""
    from app.core.db import dispose_db, init_db

    print("[yellow]Creating database tables[/yellow]")
    try:
        await init_db()
    finally:
        await dispose_db()
    print("[green]Database tables created[/green]")


async def send_report_task() -> dict:
    """
    Build and emit one health report outside the API process.

    Request and error counters start empty in a fresh process, so the
    report mostly reflects connectivity (outbound IP, store, SMS).
    """
    from app.core.db import dispose_db
    from app.core.services import NotificationService

    await NotificationService.init()
    try:
        report = await _build_monitor().emit_hourly_report()
    finally:
        await NotificationService.aclose()
        await dispose_db()
    return report


async def purge_logs_task(retention_days: int | None = None) -> int:
    """Run one health log purge cycle and return the number of rows deleted."""
    from app.core.db import dispose_db

    try:
        return await _build_monitor().purge_old_logs(retention_days)
    finally:
        await dispose_db()


@app.command()
def initdb():
    """
    Creates the database tables by running the asynchronous init_db_task function.

    Usage:
        python manage.py initdb
    """
    asyncio.run(init_db_task())


@app.command()
def sendreport():
    """
    Build, send and store a health report now.

    Usage:
        python manage.py sendreport
    """
    report = asyncio.run(send_report_task())
    print(f"[green]Health report sent[/green] (store: {report['services']['store']})")


@app.command()
def purgelogs(
    days: Annotated[
        Optional[int],
        typer.Option(
            "--days",
            "-d",
            help="Retention window in days (defaults to LOG_RETENTION_DAYS)",
        ),
    ] = None,
):
    """
    Delete one batch of health logs older than the retention window.

    Examples:
        python manage.py purgelogs
        python manage.py purgelogs --days 30
    """
    purged = asyncio.run(purge_logs_task(days))
    if purged:
        print(f"[green]Purged {purged} health log(s)[/green]")
    else:
        print("[cyan]No old logs to purge[/cyan]")


@app.command()
def runserver():
    try:
        server_command = (
            "uvicorn app.main:app --host 127.0.0.1 --port 8000 --reload"
            if settings.DEBUG
            else "uvicorn app.main:app --host 0.0.0.0 --port 8000"
        )
        print(f"Running FastAPI server: {server_command}")
        subprocess.run(server_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def generateopenapi():
    """
    Generates the OpenAPI schema for the FastAPI application and saves it to openapi.json.
    """
    from app.main import app as fastapi_app

    openapi_path = Path("openapi.json")
    with openapi_path.open("w", encoding="utf-8") as f:
        json.dump(fastapi_app.openapi(), f, ensure_ascii=False, indent=2)
    print(f"[green]OpenAPI schema generated at {openapi_path.name}[/green]")


@app.callback()
def main(ctx: typer.Context):
    print(f"Executing the command: {ctx.invoked_subcommand}")


if __name__ == "__main__":
    app()
