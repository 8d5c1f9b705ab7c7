"""
Uploads router.

Serves note images written by the local object store. Files are served
without JWT auth because <img> tags can't send Authorization headers;
object paths embed the note id and an upload timestamp.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from renotefy.sessions import get_session_registry
from renotefy.store import LocalObjectStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{path:path}")
async def serve_file(path: str) -> FileResponse:
    """Serve a stored object by its path.

    Raises:
        HTTPException: If the path escapes the uploads directory or the
            file does not exist.
    """
    store = get_session_registry().object_store
    if not isinstance(store, LocalObjectStore):
        raise HTTPException(status_code=404, detail="Uploads are not served locally")

    try:
        file_path = store.resolve(path)
    except ValueError:
        logger.warning(f"Rejected upload path {path!r}")
        raise HTTPException(status_code=403, detail="Access denied")

    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(file_path)
