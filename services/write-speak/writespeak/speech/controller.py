"""
Speech playback controller.

    IDLE    --start-->   PLAYING   (LOADING until the voice list arrives)
    PLAYING --pause-->   PAUSED
    PAUSED  --resume-->  PLAYING
    any     --restart--> PLAYING
    PLAYING --end-->     IDLE
    any     --cancel-->  IDLE

Engines without true pause cancel on pause and restart on resume. Volume and
mute changes while playing are applied live when the engine supports it,
otherwise the utterance restarts with the new volume.
"""
import logging
import uuid
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel

from .. import config
from ..errors import PlaybackError
from ..notifications import Notifier
from .engine import SpeechEngine, Utterance, Voice

logger = logging.getLogger("playback_controller")


class PlaybackState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackConfig(BaseModel):
    voice: Optional[str] = None
    rate: float = config.DEFAULT_RATE
    volume: int = config.DEFAULT_VOLUME  # percent
    muted: bool = False
    language: str = config.DEFAULT_LANGUAGE

    @property
    def effective_volume(self) -> float:
        return 0.0 if self.muted else self.volume / 100.0


class PlaybackController:
    def __init__(self, engine: SpeechEngine, notifier: Optional[Notifier] = None):
        self.engine = engine
        self.notifier = notifier or Notifier()
        self.config = PlaybackConfig()
        self.state = PlaybackState.IDLE
        self.text = ""
        self.voices: List[Voice] = []
        self._utterance: Optional[Utterance] = None
        self._resume_restarts = False
        # Voices may be empty here; they are picked up in on_voices_changed
        self.on_voices_changed(engine.voices())

    # --- inputs ---

    def load_text(self, text: str):
        """Used for the next start; an utterance in flight keeps its text."""
        self.text = text

    def on_voices_changed(self, voices: Sequence[Voice]):
        self.voices = list(voices)
        if not self.voices:
            return
        known = {v.id for v in self.voices}
        if self.config.voice not in known:
            default = next((v for v in self.voices if v.default), self.voices[0])
            self.config.voice = default.id
            logger.debug("default voice %s", default.id)
        if self.state == PlaybackState.LOADING:
            self._speak()

    # --- transport ---

    def start(self):
        if not self.text.strip():
            logger.debug("start ignored: no text")
            return
        if not self.voices:
            self._cancel_utterance()
            self.state = PlaybackState.LOADING
            return
        self._speak()

    def restart(self):
        self.start()

    def pause(self):
        if self.state != PlaybackState.PLAYING:
            return
        if self.engine.supports_pause:
            self.engine.pause()
            self._resume_restarts = False
        else:
            self._cancel_utterance()
            self._resume_restarts = True
        self.state = PlaybackState.PAUSED

    def resume(self):
        if self.state != PlaybackState.PAUSED:
            return
        if self._resume_restarts:
            self._speak()
            return
        self.engine.resume()
        self.state = PlaybackState.PLAYING

    def toggle(self):
        """Play/pause button."""
        if self.state == PlaybackState.PLAYING:
            self.pause()
        elif self.state == PlaybackState.PAUSED:
            self.resume()
        elif self.state == PlaybackState.IDLE:
            self.start()

    def cancel(self):
        self._cancel_utterance()
        self._resume_restarts = False
        self.state = PlaybackState.IDLE

    def close(self):
        """Teardown: never leave audio running after the owning view is gone."""
        self.cancel()

    # --- configuration ---

    def set_voice(self, voice_id: str):
        self.config.voice = voice_id

    def set_rate(self, rate: float):
        self.config.rate = min(config.MAX_RATE, max(config.MIN_RATE, float(rate)))

    def set_volume(self, volume: int):
        self.config.volume = int(min(100, max(0, volume)))
        self._apply_volume()

    def set_muted(self, muted: bool):
        self.config.muted = bool(muted)
        self._apply_volume()

    def toggle_mute(self):
        self.set_muted(not self.config.muted)

    def _apply_volume(self):
        if self.state != PlaybackState.PLAYING:
            return
        if self.engine.supports_live_volume:
            self.engine.set_volume(self.config.effective_volume)
        else:
            self._speak()

    # --- engine plumbing ---

    def _speak(self):
        # The engine allows one utterance system-wide: always cancel first
        self._cancel_utterance(force=True)
        utterance = Utterance(
            id=uuid.uuid4().hex,
            text=self.text,
            voice=self.config.voice,
            rate=self.config.rate,
            volume=self.config.effective_volume,
            language=self.config.language,
        )
        self._utterance = utterance
        self._resume_restarts = False
        self.state = PlaybackState.PLAYING
        try:
            self.engine.speak(
                utterance,
                on_end=lambda: self._on_end(utterance.id),
                on_error=lambda err: self._on_error(utterance.id, err),
            )
        except PlaybackError as e:
            self._on_error(utterance.id, e)

    def _cancel_utterance(self, force: bool = False):
        if self._utterance is None and not force:
            return
        self._utterance = None
        self.engine.cancel()

    def _on_end(self, utterance_id: str):
        if self._utterance is None or self._utterance.id != utterance_id:
            return
        self._utterance = None
        self.state = PlaybackState.IDLE

    def _on_error(self, utterance_id: str, error: PlaybackError):
        if self._utterance is None or self._utterance.id != utterance_id:
            return
        logger.warning("Playback failed: %s", error)
        self._utterance = None
        self.state = PlaybackState.IDLE
        self.notifier.error("playback_error")

    @property
    def utterance(self) -> Optional[Utterance]:
        return self._utterance
