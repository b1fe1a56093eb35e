"""Maps workflow outcomes onto the lightweight notices shown to the user."""

from typing import NamedTuple, Optional

from submission_publisher.core.errors import NoticeSeverity, SubmissionError


class Notice(NamedTuple):
    text: str
    severity: NoticeSeverity


SUCCESS_NOTICE = Notice("Drawing posted!", NoticeSeverity.INFO)


def notice_for(error: Optional[SubmissionError]) -> Notice:
    """
    Build the notice for a submission outcome.

    Args:
        error: The workflow error, or None on success.

    Returns:
        The notice text and how it should be displayed.
    """
    if error is None:
        return SUCCESS_NOTICE
    return Notice(error.user_notice, error.severity)
