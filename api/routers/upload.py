"""
Pitch-deck upload endpoint.

The multipart body is parsed inside the handler, after the auth gate has
accepted the caller.
"""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from api.exceptions import error_response, success_response
from api.dependencies import require_experience
from core.uploads import get_upload_broker
from models.auth import AuthContext
from models.errors import ErrorKind, Result, ServiceError

logger = logging.getLogger("tup-matching")

router = APIRouter(prefix="/api", tags=["upload"])

MSG_INVALID_MULTIPART = "Invalid multipart body"


@router.post("/upload")
async def upload_file(request: Request, auth: Result[AuthContext] = Depends(require_experience)):
    """
    Upload a pitch deck (multipart field `file`).

    Returns:
        {url, filename, size, type}
    """
    if not auth.success:
        return error_response(auth.error)

    try:
        form = await request.form()
    except Exception as e:
        # Parser errors surface from both starlette and python-multipart
        logger.info(f"[UPLOAD] Unparseable multipart body from {auth.value.user_id}: {e}")
        return error_response(ServiceError(ErrorKind.INVALID_PAYLOAD, MSG_INVALID_MULTIPART))

    broker = get_upload_broker()
    filename = content_type = data = None
    try:
        file = form.get("file")
        if isinstance(file, UploadFile):
            filename = file.filename
            content_type = file.content_type
            # One byte past the cap is enough to reject without reading the rest
            data = await file.read(broker.max_bytes + 1)
    finally:
        await form.close()

    result = await broker.upload(auth.value, filename, content_type, data)
    if not result.success:
        return error_response(result.error)

    return success_response({**result.value.to_dict(), "message": "File uploaded successfully"})
