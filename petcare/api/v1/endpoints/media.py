"""Photo and video upload endpoint.

Uploads are stored under a generated name; the returned URL is what clients
then attach to an animal through ``/animals/{id}/photos`` or ``/videos``.
"""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from petcare.config import settings
from petcare.dependencies import get_current_user_id
from petcare.models.animal import MediaUploadResponse
from petcare.models.errors import ApiErrorResponse
from petcare.services.storage_service import (
    MediaKind,
    check_size,
    get_storage_service,
    media_kind,
    object_name,
    size_limit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])
limiter = Limiter(key_func=get_remote_address)

_CHUNK_SIZE = 64 * 1024


@router.post(
    "",
    response_model=MediaUploadResponse,
    status_code=201,
    responses={400: {"model": ApiErrorResponse}, 401: {"model": ApiErrorResponse}},
    summary="Upload a photo or video",
)
@limiter.limit(settings.RATE_LIMIT)
async def upload_media(
    request: Request,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
) -> MediaUploadResponse:
    """Validate type and size, store the file and return its URL."""
    filename = file.filename or ""
    kind = media_kind(filename)
    if file.size is not None:
        check_size(kind, file.size)
    data = await _read_limited(file, size_limit(kind), kind)
    check_size(kind, len(data))
    name = object_name(kind, filename)
    url = await run_in_threadpool(get_storage_service().upload_file, name, data, file.content_type)
    logger.info("User %s uploaded %s %s", user_id, kind.value, name)
    return MediaUploadResponse(url=url, kind=kind.value, content_type=file.content_type, size=len(data))


async def _read_limited(file: UploadFile, limit: int, kind: MediaKind) -> bytes:
    """Read *file* in chunks, stopping as soon as it grows past *limit*."""
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(_CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            check_size(kind, total)
        chunks.append(chunk)
    return b"".join(chunks)
