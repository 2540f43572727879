import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .. import config
from ..errors import PlaybackError
from .engine import AudioClip, GTTSEngine, Utterance, Voice

router = APIRouter(prefix="/api/v1/speech", tags=["speech"])

_engine = GTTSEngine()


def get_engine() -> GTTSEngine:
    return _engine


class SynthesizeRequest(BaseModel):
    text: str
    voice: Optional[str] = None
    rate: float = Field(config.DEFAULT_RATE, ge=config.MIN_RATE, le=config.MAX_RATE)
    volume: int = Field(config.DEFAULT_VOLUME, ge=0, le=100)
    muted: bool = False
    language: str = config.DEFAULT_LANGUAGE


@router.get("/voices", response_model=List[Voice])
def list_voices(engine: GTTSEngine = Depends(get_engine)):
    return engine.voices()


@router.post("/synthesize", response_model=AudioClip)
def synthesize(request: SynthesizeRequest, engine: GTTSEngine = Depends(get_engine)):
    """
    Renders one utterance to an MP3 data URL. Rate and volume travel with
    the clip for the browser player; muted clips carry volume 0.
    """
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    utterance = Utterance(
        id=uuid.uuid4().hex,
        text=request.text,
        voice=request.voice,
        rate=request.rate,
        volume=0.0 if request.muted else request.volume / 100.0,
        language=request.language,
    )
    try:
        return engine.synthesize(utterance)
    except PlaybackError as e:
        raise HTTPException(status_code=502, detail=e.message)
