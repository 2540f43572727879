import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..utils import split_data_url
from .providers import ProviderError, registry

logger = logging.getLogger("recognition_api")

router = APIRouter(prefix="/api/v1/handwriting", tags=["handwriting"])


class RecognizeRequest(BaseModel):
    image: Optional[str] = None  # data URL or raw base64
    language: str = "en"


class RecognizeResponse(BaseModel):
    text: str


def get_provider():
    return registry.get()


@router.post("/recognize", response_model=RecognizeResponse)
def recognize_handwriting(request: RecognizeRequest, provider=Depends(get_provider)):
    """
    Runs handwriting recognition on an encoded image.
    An empty `text` is a valid answer: the caller decides it means no text was found.
    """
    if not request.image:
        return JSONResponse({"error": "Image data is required"}, status_code=400)
    if provider is None:
        return JSONResponse({"error": "Recognition provider is not configured"}, status_code=500)

    mime, payload = split_data_url(request.image)
    logger.info("Processing handwriting request with language: %s (%s)", request.language, mime or "raw base64")
    try:
        text = provider.recognize(payload, request.language, mime or "image/png")
    except ProviderError as e:
        logger.error("Recognition failed: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)

    logger.info("Recognized text: %s", "text found" if text.strip() else "no text found")
    return RecognizeResponse(text=text)
