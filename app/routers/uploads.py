"""
Uploads API Router - media pass-through to object storage
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.dependencies import get_current_user
from app.models.issue import MediaKind
from app.models.user import User
from app.schemas import MessageResponse, UploadManyResponse, UploadResponse
from app.services.media_service import MediaFile, MediaService

router = APIRouter()

_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """Shared media service; the S3 client is created on first use"""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service


async def _to_media_file(upload: UploadFile, media: MediaService) -> MediaFile:
    # Reported part size lets oversized files fail before they are read
    if upload.size is not None:
        media.check_size(upload.filename or "", upload.size)
    return MediaFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        data=await upload.read(),
    )


@router.post("", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    media: MediaService = Depends(get_media_service),
):
    """Upload a single image or video"""
    media_file = await _to_media_file(file, media) if file is not None else None
    reference = await media.upload(media_file)
    return UploadResponse(data=reference)


@router.post("/multiple", response_model=UploadManyResponse)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    media: MediaService = Depends(get_media_service),
):
    """Upload several files; any failure fails the batch"""
    files = files or []
    media.check_batch(len(files))
    media_files = [await _to_media_file(f, media) for f in files]
    references = await media.upload_many(media_files)
    return UploadManyResponse(data=references)


@router.delete("/{external_id:path}", response_model=MessageResponse)
async def delete_file(
    external_id: str,
    resource_type: MediaKind = Query(MediaKind.IMAGE),
    current_user: User = Depends(get_current_user),
    media: MediaService = Depends(get_media_service),
):
    """Delete a stored file by its external ID"""
    await media.delete_by_reference(external_id, resource_type)
    return MessageResponse(msg="File deleted successfully")
