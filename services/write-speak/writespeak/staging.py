import logging
from typing import Callable, Optional

from .errors import InputError
from .notifications import Notifier

logger = logging.getLogger("text_staging")


class TextStaging:
    """
    Holds the working text. Staging a value and routing it to playback happen
    in one call, so the two can never disagree.
    """

    def __init__(self, notifier: Optional[Notifier] = None, on_change: Optional[Callable[[str], None]] = None):
        self.notifier = notifier or Notifier()
        self.on_change = on_change
        self.working_text = ""
        self.recognized_text = ""

    def _stage(self, text: str, recognized: bool):
        if recognized:
            self.recognized_text = text
        self.working_text = text
        if self.on_change:
            self.on_change(text)

    def stage_recognition(self, text: str):
        self._stage(text, recognized=True)

    def stage_upload(self, text: str):
        self._stage(text, recognized=True)

    def edit(self, text: str):
        """Direct edit of the recognized text box."""
        self._stage(text, recognized=True)

    def submit_manual(self, text: str):
        if not text or not text.strip():
            self.notifier.error("empty_text")
            raise InputError("Manual text is empty", code="empty_text")
        self._stage(text, recognized=False)
        self.notifier.success("text_submitted")
        logger.debug("manual text staged (%d chars)", len(text))
