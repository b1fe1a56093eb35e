"""Command-line interface for the Submission Publisher."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from submission_publisher.config.settings import settings
from submission_publisher.core.admission_guard import AdmissionGuard
from submission_publisher.core.errors import AdmissionDeniedError, SubmissionError
from submission_publisher.core.notices import SUCCESS_NOTICE, notice_for
from submission_publisher.core.orchestrator import SubmissionOrchestrator
from submission_publisher.integrations.reddit_client import RedditClient
from submission_publisher.integrations.resource_service import RedditResourceService
from submission_publisher.models import Base, CandidatePayload, SubmissionRequest
from submission_publisher.monitoring.metrics import PrometheusExporter
from submission_publisher.scheduler.client import DatabaseJobScheduler
from submission_publisher.scheduler.handlers import JobContext
from submission_publisher.scheduler.runner import JobRunner
from submission_publisher.storage.guard_store import create_guard_store
from submission_publisher.storage.record_store import SQLAlchemyRecordStore
from submission_publisher.utils.db_session import get_async_engine
from submission_publisher.utils.logging_utils import setup_logging

app = typer.Typer(help="Submission Publisher - publish drawings and run their deferred jobs")
logger = logging.getLogger(__name__)


def _prometheus_exporter() -> Optional[PrometheusExporter]:
    if not settings.ENABLE_PROMETHEUS:
        return None
    exporter = PrometheusExporter(port=settings.PROMETHEUS_PORT)
    exporter.start_server()
    return exporter


def _read_content(content_file: Optional[Path]) -> Any:
    if content_file is None:
        return None
    text = content_file.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


async def run_submission(request: SubmissionRequest) -> int:
    """
    Run one submission against the configured backends.

    Returns:
        Process exit code: 0 on success or duplicate, 1 on any other failure.
    """
    guard_store = create_guard_store(settings)
    reddit_client = RedditClient(settings)
    exporter = _prometheus_exporter()
    orchestrator = SubmissionOrchestrator(
        guard=AdmissionGuard(guard_store),
        resource_service=RedditResourceService(reddit_client),
        scheduler=DatabaseJobScheduler(prometheus_exporter=exporter),
        record_store=SQLAlchemyRecordStore(),
        prometheus_exporter=exporter,
    )
    try:
        result = await orchestrator.submit(request)
    except SubmissionError as e:
        notice = notice_for(e)
        typer.echo(f"[{notice.severity.value}] {notice.text}", err=True)
        return 0 if isinstance(e, AdmissionDeniedError) else 1
    finally:
        await reddit_client.close()
        await guard_store.close()
        await get_async_engine().dispose()

    typer.echo(f"[{SUCCESS_NOTICE.severity.value}] {SUCCESS_NOTICE.text} {result.resource_id}")
    return 0


async def run_worker(once: bool) -> int:
    reddit_client = RedditClient(settings)
    context = JobContext(
        resource_service=RedditResourceService(reddit_client),
        record_store=SQLAlchemyRecordStore(),
        announcement_text=settings.ANNOUNCEMENT_TEXT,
    )
    runner = JobRunner(context, prometheus_exporter=_prometheus_exporter())
    try:
        if once:
            completed = await runner.run_once()
            typer.echo(f"Completed {completed} jobs")
        else:
            await runner.run_forever()
    finally:
        await reddit_client.close()
        await get_async_engine().dispose()
    return 0


async def create_tables() -> None:
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@app.command()
def submit(
    label: Annotated[str, typer.Option("--label", help="Word the drawing shows")],
    category: Annotated[str, typer.Option("--category", help="Dictionary the word came from")],
    actor: Annotated[Optional[str], typer.Option("--actor", help="Username of the submitting actor")] = None,
    content_file: Annotated[
        Optional[Path], typer.Option("--content-file", exists=True, dir_okay=False, help="File with the drawing data")
    ] = None,
    flair_id: Annotated[Optional[str], typer.Option("--flair-id", help="Flair template id for the post")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """Publish one submission."""
    setup_logging(Path(settings.LOGGING_CONFIG_PATH), level=loglevel)
    request = SubmissionRequest(
        actor_id=actor,
        candidate=CandidatePayload(label=label, category=category, content=_read_content(content_file)),
        attribute_id=flair_id,
    )
    raise typer.Exit(code=asyncio.run(run_submission(request)))


@app.command()
def worker(
    once: Annotated[bool, typer.Option("--once", help="Run a single batch and exit")] = False,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """Run the deferred job worker."""
    setup_logging(Path(settings.LOGGING_CONFIG_PATH), level=loglevel)
    try:
        raise typer.Exit(code=asyncio.run(run_worker(once)))
    except KeyboardInterrupt:
        logger.info("Job worker stopped by user")


@app.command("init-db")
def init_db(
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """Create the database tables (use Alembic migrations in production)."""
    setup_logging(Path(settings.LOGGING_CONFIG_PATH), level=loglevel)
    try:
        asyncio.run(create_tables())
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        sys.exit(1)
    typer.echo("Database tables created")


if __name__ == "__main__":
    app()
