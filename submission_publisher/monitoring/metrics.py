"""Prometheus metrics for monitoring the Submission Publisher."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
SUBMISSIONS = Counter(
    "submission_publisher_submissions_total",
    "Number of submission attempts by outcome",
    ["outcome"],
)

FANOUT_STEP_FAILURES = Counter(
    "submission_publisher_fanout_step_failures_total",
    "Number of failed fan-out steps after post creation",
    ["step"],
)

JOBS_SCHEDULED = Counter(
    "submission_publisher_jobs_scheduled_total",
    "Number of deferred jobs scheduled",
    ["job_name"],
)

JOBS_EXECUTED = Counter(
    "submission_publisher_jobs_executed_total",
    "Number of deferred jobs executed by the job runner",
    ["job_name", "status"],
)

SUBMIT_DURATION = Histogram(
    "submission_publisher_submit_duration_seconds",
    "Duration of submission attempts in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the Submission Publisher."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except Exception as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_submission(self, outcome: str) -> None:
        """
        Record the outcome of a submission attempt.

        Args:
            outcome: "completed" or an error kind such as "admission_denied"
        """
        SUBMISSIONS.labels(outcome=outcome).inc()

    def record_fanout_failure(self, step: str) -> None:
        FANOUT_STEP_FAILURES.labels(step=step).inc()

    def record_job_scheduled(self, job_name: str) -> None:
        JOBS_SCHEDULED.labels(job_name=job_name).inc()

    def record_job_executed(self, job_name: str, status: str) -> None:
        JOBS_EXECUTED.labels(job_name=job_name, status=status).inc()

    def time_submission(self) -> "SubmissionTimer":
        """
        Create a context manager for timing submission attempts.

        Returns:
            SubmissionTimer context manager
        """
        return SubmissionTimer()


class SubmissionTimer:
    """Context manager for timing submission attempts."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "SubmissionTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            SUBMIT_DURATION.observe(time.time() - self.start_time)
