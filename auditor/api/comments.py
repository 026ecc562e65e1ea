"""
Line comment REST API endpoints.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from auditor.api.dependencies import get_review_service
from auditor.models.api_response import CommentCreated, StatusResponse
from auditor.models.comment import (
    Comment,
    CreateCommentRequest,
    DeleteCommentRequest,
    UpdateCommentRequest,
)
from auditor.services.review_service import ReviewService, UnknownCommentError, UnknownLineError
from auditor.services.snapshot_store import UnknownFileError
from auditor.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", response_model=CommentCreated, status_code=201)
async def create_comment(
    request: CreateCommentRequest,
    service: ReviewService = Depends(get_review_service),
) -> CommentCreated:
    """
    Add a comment to a line of a file.

    Returns:
        Id of the new comment
    """
    file_name = service.normalize_file_name(request.file_name)
    try:
        comment_id = await service.add_comment(
            file_name, request.line_number, request.body, request.author
        )
        return CommentCreated(comment_id=comment_id)

    except Exception as e:
        log_error_with_context(
            logger, f"Error adding comment to {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[int, List[Comment]])
async def get_comments(
    file_name: str = Query(...),
    service: ReviewService = Depends(get_review_service),
) -> Dict[int, List[Comment]]:
    """
    Get all comments of a file keyed by line number.

    Raises:
        HTTPException: If the file has no record
    """
    file_name = service.normalize_file_name(file_name)
    try:
        return await service.get_comments(file_name)

    except UnknownFileError as e:
        logger.warning(f"Comments requested for unknown file: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log_error_with_context(
            logger, f"Error reading comments of {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("", response_model=StatusResponse)
async def update_comment(
    request: UpdateCommentRequest,
    service: ReviewService = Depends(get_review_service),
) -> StatusResponse:
    """
    Rewrite an existing comment.

    Raises:
        HTTPException: If the file, line or comment is unknown
    """
    file_name = service.normalize_file_name(request.file_name)
    try:
        await service.update_comment(
            file_name, request.line_number, request.comment_id, request.body, request.author
        )
        return StatusResponse(status="success", message=f"Comment {request.comment_id} updated")

    except (UnknownFileError, UnknownLineError, UnknownCommentError) as e:
        logger.warning(f"Comment not found: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log_error_with_context(
            logger, f"Error updating comment on {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("", response_model=StatusResponse)
async def delete_comment(
    request: DeleteCommentRequest,
    service: ReviewService = Depends(get_review_service),
) -> StatusResponse:
    """
    Delete a comment from a line.

    Raises:
        HTTPException: If the file, line or comment is unknown
    """
    file_name = service.normalize_file_name(request.file_name)
    try:
        await service.delete_comment(file_name, request.line_number, request.comment_id)
        return StatusResponse(status="success", message=f"Comment {request.comment_id} deleted")

    except (UnknownFileError, UnknownLineError, UnknownCommentError) as e:
        logger.warning(f"Comment not found: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log_error_with_context(
            logger, f"Error deleting comment on {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")
