from fastapi import APIRouter, Depends, File, UploadFile

from expense_desk.core.errors import ValidationFailure
from expense_desk.models.expense import DocumentRef
from expense_desk.services.blob_store import BlobStore
from expense_desk.services.caller import Caller, get_blob_store, get_caller

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post(
    "",
    response_model=DocumentRef,
    status_code=201,
    summary="Store an attachment and return its locator",
)
async def upload_document(
    file: UploadFile = File(...),
    caller: Caller = Depends(get_caller),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Stream the upload into the blob store.

    The returned locator is what expense and card-summary submissions
    reference; they are rejected if the locator stops resolving.
    """
    if not file.filename:
        raise ValidationFailure("file name is required")
    stored = blob_store.put(
        owner_user_id=caller.user_id,
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        stream=file.file,
    )
    return DocumentRef(url=stored.url, filename=stored.filename, content_type=stored.content_type)
