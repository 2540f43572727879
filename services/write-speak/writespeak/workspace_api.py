"""
Per-session workspaces over HTTP.

Each workspace owns a drawing surface, a recognition client, the text staging
and a playback controller. gTTS clips and toasts are kept on the session until
the browser collects them with the next response.
"""
import logging
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional

import requests
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import config
from .canvas.models import StrokeIn, Tool
from .canvas.surface import DrawingSurface
from .notifications import Notifier, Toast
from .recognition.client import RecognitionClient
from .speech.controller import PlaybackState
from .speech.engine import AudioClip, GTTSEngine, SpeechEngine
from .workspace import Workspace

logger = logging.getLogger("workspace_api")


class WorkspaceSession:
    """A workspace plus the clip and toasts the browser has not picked up yet."""

    def __init__(
        self,
        language: str = config.DEFAULT_LANGUAGE,
        width: int = config.CANVAS_WIDTH,
        height: int = config.CANVAS_HEIGHT,
        engine: Optional[SpeechEngine] = None,
        http: Optional[requests.Session] = None,
    ):
        self.id = uuid.uuid4().hex
        self.clip: Optional[AudioClip] = None
        self.toasts: List[Toast] = []
        notifier = Notifier(language, listener=self.toasts.append)
        self.workspace = Workspace(
            engine or GTTSEngine(player=self.play),
            client=RecognitionClient(notifier=notifier, session=http),
            surface=DrawingSurface(width, height),
            language=language,
            notifier=notifier,
        )

    def play(self, clip: Optional[AudioClip]):
        self.clip = clip

    def drain_toasts(self) -> List[Toast]:
        toasts, self.toasts = self.toasts, []
        return toasts


class WorkspaceStore:
    """In-memory sessions. Past `limit` the oldest workspace is closed."""

    def __init__(self, limit: int = config.MAX_WORKSPACES, factory=WorkspaceSession):
        self.limit = limit
        self.factory = factory
        self._sessions: "OrderedDict[str, WorkspaceSession]" = OrderedDict()

    def create(self, language: str, width: int, height: int) -> WorkspaceSession:
        session = self.factory(language, width, height)
        self._sessions[session.id] = session
        while len(self._sessions) > self.limit:
            _, oldest = self._sessions.popitem(last=False)
            logger.info("closing workspace %s: limit of %d reached", oldest.id, self.limit)
            oldest.workspace.close()
        return session

    def get(self, workspace_id: str) -> Optional[WorkspaceSession]:
        return self._sessions.get(workspace_id)

    def close(self, workspace_id: str) -> bool:
        session = self._sessions.pop(workspace_id, None)
        if session is None:
            return False
        session.workspace.close()
        return True

    def __len__(self):
        return len(self._sessions)


store = WorkspaceStore()


def get_store() -> WorkspaceStore:
    return store


def get_session(workspace_id: str, sessions: WorkspaceStore = Depends(get_store)) -> WorkspaceSession:
    session = sessions.get(workspace_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return session


def _language(value: str) -> str:
    if value not in config.SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {value}")
    return value


# --- payloads ---

class CreateWorkspace(BaseModel):
    language: str = config.DEFAULT_LANGUAGE
    canvas_width: int = Field(config.CANVAS_WIDTH, gt=0, le=config.MAX_CANVAS_SIDE)
    canvas_height: int = Field(config.CANVAS_HEIGHT, gt=0, le=config.MAX_CANVAS_SIDE)


class StrokesIn(BaseModel):
    strokes: List[StrokeIn] = Field(default_factory=list)


class ToolIn(BaseModel):
    tool: Tool


class LanguageIn(BaseModel):
    language: str


class TextIn(BaseModel):
    text: str


class PlaybackSettings(BaseModel):
    voice: Optional[str] = None
    rate: Optional[float] = Field(None, ge=config.MIN_RATE, le=config.MAX_RATE)
    volume: Optional[int] = Field(None, ge=0, le=100)
    muted: Optional[bool] = None


class PlaybackEnded(BaseModel):
    utterance_id: str


class PlaybackAction(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    TOGGLE = "toggle"
    RESTART = "restart"
    CANCEL = "cancel"
    MUTE = "mute"


class WorkspaceState(BaseModel):
    id: str
    language: str
    busy: bool
    blank: bool
    working_text: str
    recognized_text: str
    playback: PlaybackState
    utterance_id: Optional[str] = None
    voice: Optional[str] = None
    rate: float
    volume: int
    muted: bool
    clip: Optional[AudioClip] = None
    toasts: List[Toast] = Field(default_factory=list)


def _state(session: WorkspaceSession) -> WorkspaceState:
    ws = session.workspace
    playback = ws.playback
    utterance = playback.utterance
    return WorkspaceState(
        id=session.id,
        language=ws.language,
        busy=ws.busy,
        blank=ws.surface.is_blank(),
        working_text=ws.staging.working_text,
        recognized_text=ws.staging.recognized_text,
        playback=playback.state,
        utterance_id=utterance.id if utterance else None,
        voice=playback.config.voice,
        rate=playback.config.rate,
        volume=playback.config.volume,
        muted=playback.config.muted,
        clip=session.clip,
        toasts=session.drain_toasts(),
    )


def _busy():
    return JSONResponse({"error": "A recognition request is already pending"}, status_code=409)


# --- HTTP ---

router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


@router.post("", response_model=WorkspaceState)
async def create_workspace(request: CreateWorkspace, sessions: WorkspaceStore = Depends(get_store)):
    session = sessions.create(_language(request.language), request.canvas_width, request.canvas_height)
    logger.info("workspace %s opened (%d open)", session.id, len(sessions))
    return _state(session)


@router.get("/{workspace_id}", response_model=WorkspaceState)
async def workspace_state(session: WorkspaceSession = Depends(get_session)):
    return _state(session)


@router.delete("/{workspace_id}")
async def close_workspace(workspace_id: str, sessions: WorkspaceStore = Depends(get_store)):
    if not sessions.close(workspace_id):
        raise HTTPException(status_code=404, detail="Workspace not found")
    return {"status": "closed"}


@router.put("/{workspace_id}/language", response_model=WorkspaceState)
async def set_language(request: LanguageIn, session: WorkspaceSession = Depends(get_session)):
    session.workspace.set_language(_language(request.language))
    return _state(session)


# --- canvas ---

@router.post("/{workspace_id}/strokes", response_model=WorkspaceState)
async def add_strokes(request: StrokesIn, session: WorkspaceSession = Depends(get_session)):
    session.workspace.surface.replay(request.strokes)
    return _state(session)


@router.put("/{workspace_id}/tool", response_model=WorkspaceState)
async def set_tool(request: ToolIn, session: WorkspaceSession = Depends(get_session)):
    session.workspace.surface.set_tool(request.tool)
    return _state(session)


@router.post("/{workspace_id}/clear", response_model=WorkspaceState)
async def clear_canvas(session: WorkspaceSession = Depends(get_session)):
    session.workspace.surface.clear()
    return _state(session)


@router.get("/{workspace_id}/download")
async def download_canvas(session: WorkspaceSession = Depends(get_session)):
    filename, png = session.workspace.download()
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# --- recognition and text ---

@router.post("/{workspace_id}/recognize", response_model=WorkspaceState)
async def recognize_canvas(session: WorkspaceSession = Depends(get_session)):
    """
    Recognizes what is drawn and stages the text for playback. Failures come
    back as error toasts; the previous text is kept.
    """
    if session.workspace.busy:
        return _busy()
    await session.workspace.recognize_canvas()
    return _state(session)


@router.post("/{workspace_id}/upload", response_model=WorkspaceState)
async def upload_image(file: UploadFile = File(...), session: WorkspaceSession = Depends(get_session)):
    if session.workspace.busy:
        return _busy()
    contents = await file.read()
    await session.workspace.upload_image(contents, file.content_type, file.filename)
    return _state(session)


@router.post("/{workspace_id}/text", response_model=WorkspaceState)
async def submit_text(request: TextIn, session: WorkspaceSession = Depends(get_session)):
    ws = session.workspace
    if not ws.submit_manual(request.text):
        return JSONResponse({"error": ws.notifier.last.message}, status_code=400)
    return _state(session)


@router.put("/{workspace_id}/text", response_model=WorkspaceState)
async def edit_text(request: TextIn, session: WorkspaceSession = Depends(get_session)):
    session.workspace.edit_recognized(request.text)
    return _state(session)


# --- playback ---

@router.patch("/{workspace_id}/playback", response_model=WorkspaceState)
async def configure_playback(request: PlaybackSettings, session: WorkspaceSession = Depends(get_session)):
    playback = session.workspace.playback
    if request.voice is not None:
        playback.set_voice(request.voice)
    if request.rate is not None:
        playback.set_rate(request.rate)
    if request.volume is not None:
        playback.set_volume(request.volume)
    if request.muted is not None:
        playback.set_muted(request.muted)
    return _state(session)


@router.post("/{workspace_id}/playback/ended", response_model=WorkspaceState)
async def playback_ended(request: PlaybackEnded, session: WorkspaceSession = Depends(get_session)):
    """The browser player finished a clip; stale ids are ignored."""
    session.workspace.playback.engine.finished(request.utterance_id)
    if session.clip and session.clip.utterance_id == request.utterance_id:
        session.clip = None
    return _state(session)


_ACTIONS: Dict[PlaybackAction, str] = {
    PlaybackAction.START: "start",
    PlaybackAction.PAUSE: "pause",
    PlaybackAction.RESUME: "resume",
    PlaybackAction.TOGGLE: "toggle",
    PlaybackAction.RESTART: "restart",
    PlaybackAction.CANCEL: "cancel",
    PlaybackAction.MUTE: "toggle_mute",
}


@router.post("/{workspace_id}/playback/{action}", response_model=WorkspaceState)
async def playback_action(action: PlaybackAction, session: WorkspaceSession = Depends(get_session)):
    getattr(session.workspace.playback, _ACTIONS[action])()
    return _state(session)
