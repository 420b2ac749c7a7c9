"""Directory scan API endpoint."""

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException

from ..context import AppContext
from ..models.records import ScanOutcome
from ..models.request import ScanRequest
from .dependencies import get_context

router = APIRouter(tags=["scan"])
logger = structlog.get_logger(__name__)


@router.post(
    "/api/scan",
    response_model=List[ScanOutcome],
    response_model_exclude_none=True,
    summary="Scan a folder",
    description="Recognize and catalog every new image under a folder"
)
def scan_folder(
    request: ScanRequest,
    context: AppContext = Depends(get_context),
) -> List[ScanOutcome]:
    """
    Walk the folder and ingest new images.
    
    Already cataloged paths are reported with ``existed: true``; images
    whose recognition failed are left out. Runs to completion before
    responding.
    """
    try:
        return context.scan(request.folder)
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.warning("Scan rejected", folder=request.folder, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
