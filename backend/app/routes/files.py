"""Files API routes."""
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Header, Query, UploadFile, File as FastAPIFile
from fastapi.responses import Response

from app.dependencies import get_engine
from app.schemas.file import FileInfoResponse, FileUploadResponse
from app.services.access_engine import AccessEngine
from app.services.tokens import bearer_token

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("/upload", response_model=FileUploadResponse, status_code=201)
async def upload_file(
    file: Optional[UploadFile] = FastAPIFile(None),
    password: Optional[str] = Form(None),
    is_public: Optional[bool] = Form(None, alias="isPublic"),
    available_from: Optional[str] = Form(None, alias="availableFrom"),
    available_to: Optional[str] = Form(None, alias="availableTo"),
    authorization: Optional[str] = Header(None),
    engine: AccessEngine = Depends(get_engine),
):
    """Upload a file with an optional password, visibility and availability window."""
    contents = await file.read() if file is not None else None
    return await engine.upload(
        payload=contents,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        password=password,
        is_public=is_public,
        available_from=available_from,
        available_to=available_to,
        credential=bearer_token(authorization),
    )


@router.get("/{file_id}", response_model=FileInfoResponse)
async def get_file_info(
    file_id: str,
    engine: AccessEngine = Depends(get_engine),
):
    """Get the public part of a file's metadata."""
    return await engine.describe(file_id)


@router.get("/{file_id}/download")
async def download_file(
    file_id: str,
    password: Optional[str] = Query(None),
    x_file_password: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    engine: AccessEngine = Depends(get_engine),
):
    """Download a file if the presented credential/password satisfies its policy."""
    retrieved = await engine.retrieve(
        file_id,
        credential=bearer_token(authorization),
        password=x_file_password or password,
    )
    record = retrieved.record
    return Response(
        content=retrieved.content,
        media_type=record.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(record.original_name)}",
        },
    )
