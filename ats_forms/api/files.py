import asyncio
import logging
import mimetypes

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ats_forms.api.applications import get_storage
from ats_forms.services.errors import FileStorageError
from ats_forms.services.file_storage import FileStorage
from ats_forms.services.value_codecs import legacy_display_name

router = APIRouter(prefix="/files")
logger = logging.getLogger("ats_forms.files")


@router.get("/{handle}")
async def download_file(handle: str, storage: FileStorage = Depends(get_storage)):
    try:
        data = await asyncio.to_thread(storage.retrieve, handle)
    except FileStorageError as e:
        logger.warning(f"Download of {handle} failed: {e}")
        raise HTTPException(status_code=404, detail=str(e))

    media_type = mimetypes.guess_type(handle)[0] or "application/octet-stream"
    filename = legacy_display_name(handle).replace('"', "")
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
