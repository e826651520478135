"""Metadata router - page title/description lookup for bookmark pre-fill."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from config import get_settings
from exceptions import ExternalServiceError
from middleware.rate_limit import limiter
from services.metadata_service import fetch_url_metadata, validate_url

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/metadata", tags=["metadata"])


class MetadataResponse(BaseModel):
    title: str
    description: str
    url: str


@router.get("", response_model=MetadataResponse)
@limiter.limit(lambda: get_settings().metadata_rate_limit)
async def get_url_metadata(
    request: Request,  # Required for rate limiting - must be named 'request'
    url: Optional[str] = None,
):
    """Fetch a page and return its title and description."""
    try:
        url = validate_url(url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await fetch_url_metadata(url)
    except ExternalServiceError as e:
        if e.status_code:
            raise HTTPException(status_code=e.status_code, detail="Failed to fetch URL")
        raise HTTPException(status_code=500, detail="Failed to fetch metadata from URL")
