"""API routes for staging and serving uploaded images."""

from fastapi import APIRouter, status
from fastapi.responses import Response

from src.schemas.upload import UploadRequest, UploadResponse
from src.services.upload_service import UploadService

router = APIRouter(tags=["Uploads"])


@router.post(
    "/uploads",
    response_model=UploadResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "Files processed; rejected files are listed in failedFiles",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "uploadedFiles": [
                            {
                                "success": True,
                                "fileName": "router.png",
                                "key": "1731326400000_router.png",
                                "url": "https://relay.example.com/files/1731326400000_router.png",
                                "contentType": "image/png",
                                "size": 20480,
                                "expiresAt": "2025-11-12T12:00:00+00:00",
                            }
                        ],
                        "failedFiles": [],
                        "message": "Successfully uploaded 1 files",
                        "totalFiles": 1,
                        "successfulCount": 1,
                        "failedCount": 0,
                    }
                }
            },
        },
        400: {"description": "No files provided"},
    },
)
async def upload_files(upload_request: UploadRequest) -> UploadResponse:
    """
    Stage base64-encoded images for up to 24 hours.

    Each file is checked for type, size and encoding on its own. When
    record_id is given, the first stored file's URL is written to the
    record's image property.
    """
    return await UploadService().stage(upload_request)


@router.get(
    "/files/{filename}",
    responses={404: {"description": "File not found or expired"}},
)
async def serve_file(filename: str) -> Response:
    """Return a staged file's bytes inline."""
    blob = await UploadService().fetch(filename)
    return Response(
        content=blob.body,
        media_type=blob.content_type,
        headers={
            "Cache-Control": "public, max-age=3600",
            "Content-Disposition": f'inline; filename="{filename}"',
        },
    )
