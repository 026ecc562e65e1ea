"""
Review state REST API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from auditor.api.dependencies import get_review_service
from auditor.models.api_response import FileInfo
from auditor.models.review import ReviewStateResponse, TransformRequest, UpdateReviewRequest
from auditor.services.review_service import ReviewService
from auditor.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

router = APIRouter(tags=["reviews"])


@router.get("/reviews", response_model=ReviewStateResponse)
async def get_review_state(
    file_name: Optional[str] = Query(None),
    service: ReviewService = Depends(get_review_service),
) -> ReviewStateResponse:
    """
    Get the latest review state of a file.

    Args:
        file_name: Absolute or repository-relative file path

    Returns:
        Reviewed, modified and ignored line ranges

    Raises:
        HTTPException: If file_name is missing or the state cannot be read
    """
    if not file_name:
        raise HTTPException(status_code=400, detail="file_name is required")

    file_name = service.normalize_file_name(file_name)
    try:
        state = await service.get_review_state(file_name)
        return ReviewStateResponse.from_state(state)

    except Exception as e:
        log_error_with_context(
            logger, f"Error reading review state of {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/reviews", response_model=ReviewStateResponse, status_code=201)
async def update_review_state(
    request: UpdateReviewRequest,
    service: ReviewService = Depends(get_review_service),
) -> ReviewStateResponse:
    """
    Mark a line range of a file as reviewed, modified, ignored or cleared.

    The new state is stored under the repository's current commit.

    Args:
        request: File, line range, review state and line count

    Returns:
        New review state of the file

    Raises:
        HTTPException: If the update cannot be stored
    """
    request = request.model_copy(
        update={"file_name": service.normalize_file_name(request.file_name)}
    )
    try:
        logger.info(
            f"Marking lines {request.start_line}-{request.end_line} of "
            f"{request.file_name} as {request.review_state.value}"
        )
        state = await service.update_review_state(request)
        return ReviewStateResponse.from_state(state)

    except Exception as e:
        log_error_with_context(
            logger,
            f"Error updating review state of {request.file_name}",
            e,
            file_name=request.file_name,
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/transform", response_model=ReviewStateResponse, status_code=201)
async def transform_review_state(
    request: TransformRequest,
    service: ReviewService = Depends(get_review_service),
) -> ReviewStateResponse:
    """
    Carry a file's review state over to the current commit.

    Lines changed since the state was stored become modified.

    Args:
        request: File to transform

    Returns:
        Review state of the file at the current commit

    Raises:
        HTTPException: If the diff cannot be computed or stored
    """
    file_name = service.normalize_file_name(request.file_name)
    try:
        state = await service.transform_review_state(file_name)
        return ReviewStateResponse.from_state(state)

    except Exception as e:
        log_error_with_context(
            logger, f"Error transforming review state of {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/info", response_model=List[FileInfo])
async def get_all_info(service: ReviewService = Depends(get_review_service)) -> List[FileInfo]:
    """
    List the latest review state, comments and priority of all tracked files.
    """
    try:
        infos = await service.latest_info()
        logger.info(f"Found {len(infos)} tracked files")
        return infos

    except Exception as e:
        log_error_with_context(logger, "Error listing tracked files", e)
        raise HTTPException(status_code=500, detail="Internal server error")
