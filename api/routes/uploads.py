"""
Upload Routes
Multipart uploads of files later attached to tickets
"""
from fastapi import APIRouter, File, UploadFile
from typing import List
import logging

from toolhub.uploads import UploadRejected
from ..models.utility import UploadResponse
from ..dependencies import get_upload_store
from ..utils import error_response

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/upload",
             tags=["Uploads"],
             response_model=UploadResponse,
             summary="Upload attachment files",
             description="Store up to 10 files of common types (40MB each). "
                         "The returned filenames are passed to ticket creation as attachments.")
def upload_files(files: List[UploadFile] = File(default=[])):
    """Store uploaded files in the upload directory"""
    if not files:
        return error_response(400, 'No files uploaded')

    store = get_upload_store()
    try:
        store.check_batch([upload.filename or '' for upload in files])
    except UploadRejected as e:
        logger.warning(f"Upload rejected: {e}")
        return error_response(400, str(e))

    saved = []
    try:
        for upload in files:
            saved.append(store.save(upload.filename or '', upload.file, upload.content_type))
    except UploadRejected as e:
        # a batch is stored completely or not at all
        for info in saved:
            store.remove(info['filename'])
        logger.warning(f"Upload rejected: {e}")
        return error_response(400, str(e))

    logger.info(f"📎 {len(saved)} file(s) uploaded")
    return UploadResponse(files=saved, message=f"{len(saved)} file(s) uploaded successfully")
