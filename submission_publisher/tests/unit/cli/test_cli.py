import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from submission_publisher import cli
from submission_publisher.core.errors import AdmissionDeniedError, ResourceCreationFailedError
from submission_publisher.models.dtos import CandidatePayload, SubmissionRequest

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(mocker):
    return mocker.patch("submission_publisher.cli.setup_logging")


@pytest.fixture
def request_dto():
    return SubmissionRequest(actor_id="u1", candidate=CandidatePayload(label="cat", category="animals"))


def test_submit_builds_request_from_options(mocker, tmp_path):
    mock_run = mocker.patch("submission_publisher.cli.run_submission", new=AsyncMock(return_value=0))
    content_file = tmp_path / "drawing.json"
    content_file.write_text(json.dumps([0, 1, 1, 0]))

    result = runner.invoke(cli.app, [
        "submit", "--actor", "u1", "--label", "cat", "--category", "animals",
        "--content-file", str(content_file), "--flair-id", "flair-123",
    ])

    assert result.exit_code == 0
    request = mock_run.call_args[0][0]
    assert request.actor_id == "u1"
    assert request.candidate.label == "cat"
    assert request.candidate.content == [0, 1, 1, 0]
    assert request.attribute_id == "flair-123"


def test_submit_propagates_exit_code(mocker):
    mocker.patch("submission_publisher.cli.run_submission", new=AsyncMock(return_value=1))

    result = runner.invoke(cli.app, ["submit", "--actor", "u1", "--label", "cat", "--category", "animals"])

    assert result.exit_code == 1


def test_worker_once(mocker):
    mock_worker = mocker.patch("submission_publisher.cli.run_worker", new=AsyncMock(return_value=0))

    result = runner.invoke(cli.app, ["worker", "--once"])

    assert result.exit_code == 0
    mock_worker.assert_awaited_once_with(True)


@pytest.fixture
def patched_backends(mocker):
    mocker.patch("submission_publisher.cli.create_guard_store", return_value=MagicMock(close=AsyncMock()))
    mocker.patch("submission_publisher.cli.RedditClient", return_value=MagicMock(close=AsyncMock()))
    mocker.patch("submission_publisher.cli.get_async_engine", return_value=MagicMock(dispose=AsyncMock()))
    mocker.patch("submission_publisher.cli.SQLAlchemyRecordStore")
    mocker.patch("submission_publisher.cli.DatabaseJobScheduler")
    orchestrator_cls = mocker.patch("submission_publisher.cli.SubmissionOrchestrator")
    return orchestrator_cls.return_value


@pytest.mark.asyncio
async def test_run_submission_treats_duplicate_as_success(patched_backends, request_dto):
    patched_backends.submit = AsyncMock(side_effect=AdmissionDeniedError("u1"))

    assert await cli.run_submission(request_dto) == 0


@pytest.mark.asyncio
async def test_run_submission_reports_failure(patched_backends, request_dto):
    patched_backends.submit = AsyncMock(side_effect=ResourceCreationFailedError("u1", "reddit is down"))

    assert await cli.run_submission(request_dto) == 1


@pytest.mark.asyncio
async def test_run_submission_success(patched_backends, request_dto):
    patched_backends.submit = AsyncMock(return_value=MagicMock(resource_id="abc123"))

    assert await cli.run_submission(request_dto) == 0
