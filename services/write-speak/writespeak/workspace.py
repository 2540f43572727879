"""
Write & Speak workspace: one user's view wiring the pipeline together.

    surface / upload / manual entry
      -> encoder -> recognition client -> staging -> playback controller
"""
import logging
from typing import Optional, Tuple

from . import config
from .canvas.encoder import encode_upload
from .canvas.surface import DrawingSurface
from .errors import InputError, RecognitionError
from .notifications import Notifier
from .recognition.client import RecognitionClient
from .speech.controller import PlaybackController
from .speech.engine import SpeechEngine
from .staging import TextStaging

logger = logging.getLogger("workspace")


class Workspace:
    def __init__(
        self,
        engine: SpeechEngine,
        client: Optional[RecognitionClient] = None,
        surface: Optional[DrawingSurface] = None,
        language: str = config.DEFAULT_LANGUAGE,
        notifier: Optional[Notifier] = None,
    ):
        self.notifier = notifier or Notifier(language)
        self.language = language
        self.surface = surface or DrawingSurface()
        self.client = client or RecognitionClient(notifier=self.notifier)
        self.playback = PlaybackController(engine, notifier=self.notifier)
        self.playback.config.language = language
        self.staging = TextStaging(notifier=self.notifier, on_change=self.playback.load_text)
        self.busy = False

    @property
    def controls_enabled(self) -> bool:
        """Upload input and recognize button are disabled while a request is pending."""
        return not self.busy

    def set_language(self, language: str):
        self.language = language
        self.notifier.language = language
        self.playback.config.language = language

    async def _recognize(self, encoded_image: str) -> Optional[str]:
        self.busy = True
        try:
            text = await self.client.recognize(encoded_image, self.language)
        except RecognitionError:
            return None
        finally:
            self.busy = False
        return text

    async def recognize_canvas(self) -> Optional[str]:
        """
        Recognize what is drawn. A trigger while another request is pending is
        ignored, so at most one request is in flight.
        """
        if self.busy:
            logger.debug("recognize ignored: request already pending")
            return None
        encoded = self.surface.export()
        if encoded is None:
            return None
        text = await self._recognize(encoded)
        if text is not None:
            self.staging.stage_recognition(text)
        return text

    async def upload_image(self, data: bytes, content_type: Optional[str], filename: Optional[str] = None) -> Optional[str]:
        if self.busy:
            logger.debug("upload ignored: request already pending")
            return None
        try:
            encoded = encode_upload(data, content_type, filename)
        except InputError as e:
            self.notifier.error(e.code)
            return None
        text = await self._recognize(encoded)
        if text is not None:
            self.staging.stage_upload(text)
        return text

    def submit_manual(self, text: str) -> bool:
        try:
            self.staging.submit_manual(text)
        except InputError:
            return False
        return True

    def edit_recognized(self, text: str):
        self.staging.edit(text)

    def download(self) -> Tuple[str, bytes]:
        return self.surface.download()

    def close(self):
        self.playback.close()
