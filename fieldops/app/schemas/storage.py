"""
Storage Pydantic schemas.
"""

from pydantic import BaseModel


class UploadUrlResponse(BaseModel):
    """One-shot upload target; PUT the file body to `upload_url`."""
    storage_id: str
    upload_url: str
