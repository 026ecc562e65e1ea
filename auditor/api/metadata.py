"""
File metadata REST API endpoints.
"""


from fastapi import APIRouter, Depends, HTTPException

from auditor.api.dependencies import get_review_service
from auditor.models.api_response import StatusResponse
from auditor.models.metadata import UpdateMetadataRequest
from auditor.services.review_service import ReviewService
from auditor.services.snapshot_store import UnknownFileError
from auditor.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

router = APIRouter(prefix="/metadata", tags=["metadata"])


@router.post("", response_model=StatusResponse, status_code=201)
async def update_metadata(
    request: UpdateMetadataRequest,
    service: ReviewService = Depends(get_review_service),
) -> StatusResponse:
    """
    Set the review priority of a tracked file.

    Raises:
        HTTPException: If the file has no record
    """
    file_name = service.normalize_file_name(request.file_name)
    try:
        await service.set_metadata(file_name, request.metadata)
        logger.info(f"Priority of {file_name} set to {request.metadata.priority.value}")
        return StatusResponse(status="success", message=f"Metadata of {file_name} updated")

    except UnknownFileError as e:
        logger.warning(f"Metadata update for unknown file: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log_error_with_context(
            logger, f"Error updating metadata of {file_name}", e, file_name=file_name
        )
        raise HTTPException(status_code=500, detail="Internal server error")
