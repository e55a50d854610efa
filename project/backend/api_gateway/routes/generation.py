"""
Photo analysis and character generation routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from api_gateway.dependencies import Identity, attach_identity_cookie, get_db, get_identity, get_storage
from api_gateway.orchestrator import ingest_and_analyze, run_generation_pipeline
from api_gateway.services.ingress_service import UploadedImage
from shared.config import Settings, get_settings
from shared.database import DatabaseClient
from shared.errors import AppError, InsufficientCreditsError, ValidationError
from shared.logging import get_logger
from shared.storage import StorageClient

logger = get_logger(__name__)

router = APIRouter()


async def _read_upload(file: Optional[UploadFile]) -> Optional[UploadedImage]:
    if file is None or not file.filename:
        return None
    content = await file.read()
    return UploadedImage(filename=file.filename, content=content)


def _error_response(identity: Identity, status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return attach_identity_cookie(JSONResponse(status_code=status_code, content=content), identity)


@router.post("/analyze")
async def analyze_image_route(
    file: Optional[UploadFile] = File(default=None),
    imageUrl: Optional[str] = Form(default=None),
    identity: Identity = Depends(get_identity),
    db: DatabaseClient = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Store a photo and return its feature analysis.
    """
    uploaded = await _read_upload(file)
    if uploaded is None and not imageUrl:
        return _error_response(identity, status.HTTP_400_BAD_REQUEST, {"error": "No image provided"})

    try:
        upload, analysis = await ingest_and_analyze(
            identity, db, storage, settings, file=uploaded, image_url=imageUrl
        )
    except ValidationError as e:
        return _error_response(identity, e.status_code, {"error": e.message})
    except AppError as e:
        logger.error("Image analysis request failed", extra={"error": e.message})
        return _error_response(identity, e.status_code, {"success": False, "error": e.message})

    return {
        "success": True,
        "analysis": analysis.model_dump(mode="json"),
        "imageRecord": {"id": upload.id, "imageUrl": upload.file_url},
    }


@router.post("/generate")
async def generate_character_route(
    file: Optional[UploadFile] = File(default=None),
    imageUrl: Optional[str] = Form(default=None),
    identity: Identity = Depends(get_identity),
    db: DatabaseClient = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Run the full generation chain for a photo.

    Generation failures still return 200 with a failed character.
    """
    uploaded = await _read_upload(file)
    if uploaded is None and not imageUrl:
        return _error_response(identity, status.HTTP_400_BAD_REQUEST, {"error": "No image provided"})

    try:
        character = await run_generation_pipeline(
            identity, db, storage, settings, file=uploaded, image_url=imageUrl
        )
    except InsufficientCreditsError as e:
        return _error_response(
            identity,
            e.status_code,
            {"error": "Insufficient credits. Please purchase more credits to continue.", "needsCredits": True}
        )
    except ValidationError as e:
        return _error_response(identity, e.status_code, {"error": e.message})
    except AppError as e:
        logger.error("Character generation request failed", extra={"error": e.message})
        return _error_response(identity, e.status_code, {"success": False, "error": e.message})

    return {"success": True, "character": character.to_api()}
