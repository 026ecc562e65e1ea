"""
Shared FastAPI dependencies.
"""

from fastapi import HTTPException, Request

from auditor.services.review_service import ReviewService


def get_review_service(request: Request) -> ReviewService:
    """
    Return the review service built at application startup.

    Raises:
        HTTPException: If the application has not finished starting
    """
    service = getattr(request.app.state, "review_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return service
