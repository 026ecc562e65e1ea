"""
Unit tests for the review, comment and metadata API endpoints.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

# Skip tests if fastapi is not installed
pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from auditor.api.dependencies import get_review_service
from auditor.main import create_app
from auditor.models.api_response import FileInfo
from auditor.models.comment import Comment
from auditor.models.metadata import Priority
from auditor.models.review import FileReviewState, LineRange, ReviewState, ReviewStateResponse
from auditor.services.git_diff import GitError
from auditor.services.review_service import ReviewService, UnknownCommentError
from auditor.services.snapshot_store import UnknownFileError


@pytest.fixture
def mock_service():
    """Mock review service with real file name normalization."""
    service = MagicMock(spec=ReviewService)
    service.normalize_file_name.side_effect = lambda name: name.replace("/repo/", "")
    return service


@pytest.fixture
def client(mock_service):
    """Create test client with the review service overridden."""
    app = create_app()
    app.dependency_overrides[get_review_service] = lambda: mock_service
    return TestClient(app)


STATE = FileReviewState(
    reviewed=[LineRange.of(0, 2)],
    modified=[LineRange.line(5)],
    total_lines=10,
)


class TestReviewEndpoints:
    """Test /reviews, /transform and /info."""

    def test_get_review_state(self, client, mock_service):
        """Test reading the review state of a file."""
        mock_service.get_review_state = AsyncMock(return_value=STATE)

        response = client.get("/reviews", params={"file_name": "/repo/src/main.c"})

        assert response.status_code == 200
        assert response.json() == {"reviewed": [[0, 2]], "modified": [[5, 5]], "ignored": []}
        mock_service.get_review_state.assert_awaited_once_with("src/main.c")

    def test_get_review_state_requires_file_name(self, client):
        """Test that file_name is mandatory."""
        response = client.get("/reviews")
        assert response.status_code == 400

    def test_update_review_state(self, client, mock_service):
        """Test marking lines through the API."""
        mock_service.update_review_state = AsyncMock(return_value=STATE)

        response = client.post(
            "/reviews",
            json={
                "file_name": "/repo/src/main.c",
                "start_line": 0,
                "end_line": 2,
                "review_state": "Reviewed",
                "total_lines": 10,
            },
        )

        assert response.status_code == 201
        assert response.json()["reviewed"] == [[0, 2]]
        request = mock_service.update_review_state.await_args.args[0]
        assert request.file_name == "src/main.c"
        assert request.review_state is ReviewState.REVIEWED

    def test_update_rejects_reversed_range(self, client, mock_service):
        """Test that a range with start after end is refused."""
        mock_service.update_review_state = AsyncMock()

        response = client.post(
            "/reviews",
            json={
                "file_name": "a.c",
                "start_line": 4,
                "end_line": 2,
                "review_state": "Reviewed",
                "total_lines": 10,
            },
        )

        assert response.status_code == 422
        mock_service.update_review_state.assert_not_awaited()

    def test_update_rejects_lines_beyond_file(self, client, mock_service):
        """Test that a range past the last line of the file is refused."""
        mock_service.update_review_state = AsyncMock()

        response = client.post(
            "/reviews",
            json={
                "file_name": "a.c",
                "start_line": 5,
                "end_line": 9,
                "review_state": "Reviewed",
                "total_lines": 3,
            },
        )

        assert response.status_code == 422
        mock_service.update_review_state.assert_not_awaited()

    def test_update_git_failure(self, client, mock_service, caplog):
        """Test that a git failure becomes a logged server error."""
        mock_service.update_review_state = AsyncMock(side_effect=GitError("not a repository"))

        response = client.post(
            "/reviews",
            json={
                "file_name": "a.c",
                "start_line": 0,
                "end_line": 0,
                "review_state": "Cleared",
                "total_lines": 1,
            },
        )

        assert response.status_code == 500
        errors = [record for record in caplog.records if record.levelname == "ERROR"]
        assert errors[-1].file_name == "a.c"
        assert errors[-1].error_type == "GitError"

    def test_transform(self, client, mock_service):
        """Test transforming a file's review state."""
        mock_service.transform_review_state = AsyncMock(return_value=STATE)

        response = client.post("/transform", json={"file_name": "/repo/src/main.c"})

        assert response.status_code == 201
        assert response.json()["modified"] == [[5, 5]]
        mock_service.transform_review_state.assert_awaited_once_with("src/main.c")

    def test_info(self, client, mock_service):
        """Test listing tracked files."""
        mock_service.latest_info = AsyncMock(
            return_value=[
                FileInfo(
                    file_name="src/main.c",
                    line_reviews=ReviewStateResponse.from_state(STATE),
                    comments={3: [Comment(id="c1", body="hm", author="ana")]},
                    priority=Priority.HIGH,
                )
            ]
        )

        response = client.get("/info")

        assert response.status_code == 200
        info = response.json()[0]
        assert info["file_name"] == "src/main.c"
        assert info["priority"] == "High"
        assert info["comments"]["3"][0]["body"] == "hm"


class TestCommentEndpoints:
    """Test /comments."""

    def test_create_comment(self, client, mock_service):
        """Test adding a comment."""
        mock_service.add_comment = AsyncMock(return_value="c-123")

        response = client.post(
            "/comments",
            json={"file_name": "/repo/a.c", "line_number": 4, "body": "why?", "author": "ana"},
        )

        assert response.status_code == 201
        assert response.json() == {"comment_id": "c-123"}
        mock_service.add_comment.assert_awaited_once_with("a.c", 4, "why?", "ana")

    def test_get_comments(self, client, mock_service):
        """Test reading the comments of a file."""
        mock_service.get_comments = AsyncMock(
            return_value={4: [Comment(id="c1", body="why?", author="ana")]}
        )

        response = client.get("/comments", params={"file_name": "a.c"})

        assert response.status_code == 200
        assert response.json() == {"4": [{"id": "c1", "body": "why?", "author": "ana"}]}

    def test_get_comments_unknown_file(self, client, mock_service):
        """Test reading comments of an unknown file."""
        mock_service.get_comments = AsyncMock(side_effect=UnknownFileError("a.c"))

        response = client.get("/comments", params={"file_name": "a.c"})

        assert response.status_code == 404

    def test_update_comment(self, client, mock_service):
        """Test rewriting a comment."""
        mock_service.update_comment = AsyncMock()

        response = client.put(
            "/comments",
            json={
                "file_name": "a.c",
                "line_number": 4,
                "comment_id": "c1",
                "body": "edited",
                "author": "ana",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "success"

    def test_delete_unknown_comment(self, client, mock_service):
        """Test deleting a comment that does not exist."""
        mock_service.delete_comment = AsyncMock(side_effect=UnknownCommentError("c9"))

        response = client.request(
            "DELETE",
            "/comments",
            json={"file_name": "a.c", "line_number": 4, "comment_id": "c9"},
        )

        assert response.status_code == 404

    def test_delete_comment(self, client, mock_service):
        """Test deleting a comment."""
        mock_service.delete_comment = AsyncMock()

        response = client.request(
            "DELETE",
            "/comments",
            json={"file_name": "a.c", "line_number": 4, "comment_id": "c1"},
        )

        assert response.status_code == 200
        mock_service.delete_comment.assert_awaited_once_with("a.c", 4, "c1")


class TestMetadataEndpoint:
    """Test /metadata."""

    def test_update_metadata(self, client, mock_service):
        """Test setting a file's priority."""
        mock_service.set_metadata = AsyncMock()

        response = client.post(
            "/metadata",
            json={"file_name": "a.c", "metadata": {"priority": "Medium"}},
        )

        assert response.status_code == 201
        metadata = mock_service.set_metadata.await_args.args[1]
        assert metadata.priority is Priority.MEDIUM

    def test_update_metadata_unknown_file(self, client, mock_service):
        """Test setting the priority of an untracked file."""
        mock_service.set_metadata = AsyncMock(side_effect=UnknownFileError("a.c"))

        response = client.post(
            "/metadata",
            json={"file_name": "a.c", "metadata": {"priority": "Low"}},
        )

        assert response.status_code == 404

    def test_invalid_priority(self, client, mock_service):
        """Test that unknown priorities are rejected."""
        response = client.post(
            "/metadata",
            json={"file_name": "a.c", "metadata": {"priority": "Urgent"}},
        )

        assert response.status_code == 422


def test_service_not_ready():
    """Test requests before startup built the service."""
    client = TestClient(create_app())
    response = client.get("/reviews", params={"file_name": "a.c"})
    assert response.status_code == 503
