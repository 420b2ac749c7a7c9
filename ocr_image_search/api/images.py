"""Image retrieval API endpoints."""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from ..context import AppContext
from ..models.records import ImageRecord
from .dependencies import get_context

router = APIRouter(tags=["images"])


@router.get(
    "/api/image",
    response_class=FileResponse,
    summary="Fetch image bytes",
    description="Return the original image file for a record id"
)
def get_image(
    id: int = Query(..., description="Image record id"),
    context: AppContext = Depends(get_context),
) -> FileResponse:
    """Stream the image file, or 404 if the id is unknown or the file is gone."""
    record = context.store.find_by_id(id)
    if record is None or not Path(record.path).is_file():
        raise HTTPException(status_code=404, detail="Image not found")
    
    return FileResponse(record.path, filename=record.filename)


@router.get(
    "/api/v1/images/{image_id}",
    response_model=ImageRecord,
    summary="Get image record",
    description="Return the cataloged metadata and recognized text for a record id"
)
def get_image_record(
    image_id: int,
    context: AppContext = Depends(get_context),
) -> ImageRecord:
    """Look up one image record."""
    record = context.store.find_by_id(image_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Image not found")
    
    return record
