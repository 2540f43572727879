"""
Speech engines. The controller only talks to the SpeechEngine contract; the
gTTS engine renders MP3 clips that a browser player plays back.
"""
import asyncio
import io
import logging
from typing import Callable, List, Optional, Tuple

from gtts import gTTS, gTTSError
from gtts.lang import tts_langs
from pydantic import BaseModel

from ..errors import PlaybackError
from ..utils import to_data_url

logger = logging.getLogger("speech_engine")


class Voice(BaseModel):
    id: str
    name: str
    lang: str
    default: bool = False


class Utterance(BaseModel):
    id: str
    text: str
    voice: Optional[str] = None
    rate: float = 1.0
    volume: float = 1.0  # 0.0 - 1.0, already zero when muted
    language: str = "en"


class AudioClip(BaseModel):
    utterance_id: str
    audio: str  # audio/mpeg data URL
    rate: float
    volume: float


EndCallback = Callable[[], None]
ErrorCallback = Callable[[PlaybackError], None]


class SpeechEngine:
    """
    One active utterance at a time. Capability flags tell the controller
    whether pause and live volume changes are real or must be emulated.
    """
    supports_pause = False
    supports_live_volume = False

    def voices(self) -> List[Voice]:
        return []

    def speak(self, utterance: Utterance, on_end: EndCallback, on_error: ErrorCallback):
        raise NotImplementedError

    def cancel(self):
        raise NotImplementedError

    def finished(self, utterance_id: str):
        raise NotImplementedError

    def pause(self):
        raise PlaybackError("pause is not supported by this engine")

    def resume(self):
        raise PlaybackError("resume is not supported by this engine")

    def set_volume(self, volume: float):
        raise PlaybackError("live volume is not supported by this engine")


class GTTSEngine(SpeechEngine):
    """
    Synthesizes with gTTS and hands the clip to `player`. The player receives
    None when the current clip must stop. No true pause and no live volume:
    the clip is a finished MP3, so changes need a new clip.

    Inside an event loop, synthesis runs on a worker thread and the clip is
    delivered when it is ready; `pending` is that task. Without a loop the
    clip is synthesized before speak() returns.
    """
    # gTTS only has normal and slow speech
    SLOW_BELOW = 0.75

    def __init__(self, player: Optional[Callable[[Optional[AudioClip]], None]] = None):
        self.player = player
        self.pending: Optional[asyncio.Task] = None
        self._voices: List[Voice] = []
        self._active: Optional[Tuple[str, EndCallback]] = None

    def voices(self) -> List[Voice]:
        if not self._voices:
            try:
                langs = tts_langs()
            except Exception as e:
                logger.exception("Could not load gTTS languages: %s", e)
                return []
            self._voices = [
                Voice(id=code, name=name, lang=code, default=(code == "en"))
                for code, name in sorted(langs.items())
            ]
        return list(self._voices)

    def synthesize(self, utterance: Utterance) -> AudioClip:
        lang = utterance.voice or utterance.language
        buf = io.BytesIO()
        try:
            gTTS(text=utterance.text, lang=lang, slow=utterance.rate < self.SLOW_BELOW).write_to_fp(buf)
        except (gTTSError, ValueError, AssertionError) as e:
            raise PlaybackError(f"gTTS error: {e}") from e
        return AudioClip(
            utterance_id=utterance.id,
            audio=to_data_url(buf.getvalue(), "audio/mpeg"),
            rate=utterance.rate,
            volume=utterance.volume,
        )

    def speak(self, utterance: Utterance, on_end: EndCallback, on_error: ErrorCallback):
        self.cancel()
        self._active = (utterance.id, on_end)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                clip = self.synthesize(utterance)
            except PlaybackError as e:
                self._fail(utterance.id, on_error, e)
                return
            self._play(clip)
            return

        self.pending = loop.create_task(asyncio.to_thread(self.synthesize, utterance))
        self.pending.add_done_callback(lambda task: self._synthesized(utterance.id, task, on_error))

    def _synthesized(self, utterance_id: str, task: asyncio.Task, on_error: ErrorCallback):
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            self._play(task.result())
        elif isinstance(error, PlaybackError):
            self._fail(utterance_id, on_error, error)
        else:
            logger.error("gTTS synthesis crashed", exc_info=error)
            self._fail(utterance_id, on_error, PlaybackError(f"gTTS error: {error}"))

    def _play(self, clip: AudioClip):
        # A clip for a cancelled or replaced utterance is dropped
        if not self._active or self._active[0] != clip.utterance_id:
            logger.debug("dropping stale clip %s", clip.utterance_id)
            return
        if self.player:
            self.player(clip)

    def _fail(self, utterance_id: str, on_error: ErrorCallback, error: PlaybackError):
        if not self._active or self._active[0] != utterance_id:
            return
        self._active = None
        on_error(error)

    def finished(self, utterance_id: str):
        """Called when the player reports natural completion."""
        if self._active and self._active[0] == utterance_id:
            _, on_end = self._active
            self._active = None
            on_end()

    def cancel(self):
        if self._active is None:
            return
        self._active = None
        if self.player:
            self.player(None)
