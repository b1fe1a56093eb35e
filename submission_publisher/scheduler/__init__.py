"""Deferred job scheduling and execution."""

from .client import DatabaseJobScheduler, InMemoryJobScheduler, JobScheduler

__all__ = ["DatabaseJobScheduler", "InMemoryJobScheduler", "JobScheduler"]
