"""
Storage API Endpoints.

Upload URL generation plus the file routes served by the local storage
backend. Photos and attachments reference uploads by storage id.
"""

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import FileResponse

from fieldops.app.core.dependencies import get_current_user
from fieldops.app.core.exceptions import NotFoundError, ValidationError
from fieldops.app.schemas.storage import UploadUrlResponse
from fieldops.app.services.storage import StorageProvider, get_storage

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    current_user: dict = Depends(get_current_user),
    storage: StorageProvider = Depends(get_storage)
):
    """Reserve a storage id and return where to PUT the file."""
    storage_id, url = storage.generate_upload_url()
    return UploadUrlResponse(storage_id=storage_id, upload_url=url)


@router.put("/files/{storage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def upload_file(
    request: Request,
    storage_id: str = Path(..., description="Storage id from the upload URL"),
    current_user: dict = Depends(get_current_user),
    storage: StorageProvider = Depends(get_storage)
):
    content = await request.body()
    if not content:
        raise ValidationError("Empty upload")
    try:
        storage.save(storage_id, content)
    except ValueError:
        raise NotFoundError("Storage object", storage_id)


@router.get("/files/{storage_id}")
async def download_file(
    storage_id: str = Path(..., description="Storage id"),
    storage: StorageProvider = Depends(get_storage)
):
    """Serve a stored file; URLs handed out by the API point here."""
    if not storage.exists(storage_id):
        raise NotFoundError("Storage object", storage_id)
    return FileResponse(storage.path_for(storage_id))
