"""
Submission publisher service.

Turns a user's "publish" action into exactly one Reddit post, a persisted
submission record, and the deferred jobs that follow it.
"""

__version__ = "0.1.0"
