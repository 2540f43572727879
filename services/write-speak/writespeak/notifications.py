"""
User-facing status notifications (toasts) in the UI's display language.
"""
import logging
from typing import Callable, Dict, List, Optional
from pydantic import BaseModel

logger = logging.getLogger("notifications")

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "processing": "Processing your handwriting...",
        "recognized": "Text recognized successfully!",
        "service_unavailable": "Recognition service is unavailable. Please try again.",
        "no_text_found": "No text found. Try writing more clearly or with darker strokes.",
        "empty_text": "Please enter some text first.",
        "text_submitted": "Text submitted for speech",
        "input_error": "That file is not an image. Please choose a PNG or JPEG.",
        "unreadable_image": "We could not read that image. Please try another file.",
        "playback_error": "Speech playback failed.",
    },
    "hi": {
        "processing": "आपकी लिखावट पहचानी जा रही है...",
        "recognized": "पाठ सफलतापूर्वक पहचाना गया!",
        "service_unavailable": "पहचान सेवा उपलब्ध नहीं है। कृपया फिर से प्रयास करें।",
        "no_text_found": "कोई पाठ नहीं मिला। कृपया अधिक स्पष्ट लिखें।",
        "empty_text": "कृपया पहले कुछ पाठ लिखें।",
        "text_submitted": "पाठ बोलने के लिए भेजा गया",
        "input_error": "यह फ़ाइल छवि नहीं है। कृपया PNG या JPEG चुनें।",
        "unreadable_image": "यह छवि पढ़ी नहीं जा सकी। कृपया दूसरी फ़ाइल चुनें।",
        "playback_error": "भाषण प्लेबैक विफल रहा।",
    },
}


class Toast(BaseModel):
    level: str  # info, success, error
    key: str
    message: str


class Notifier:
    """
    Collects toasts for the current view. An optional listener receives each
    toast as it is emitted (e.g. a websocket push).
    """

    def __init__(self, language: str = "en", listener: Optional[Callable[[Toast], None]] = None):
        self.language = language
        self.listener = listener
        self.history: List[Toast] = []

    def message(self, key: str) -> str:
        catalog = MESSAGES.get(self.language) or MESSAGES["en"]
        return catalog.get(key) or MESSAGES["en"].get(key, key)

    def notify(self, level: str, key: str) -> Toast:
        toast = Toast(level=level, key=key, message=self.message(key))
        self.history.append(toast)
        logger.info("toast %s/%s", level, key)
        if self.listener:
            self.listener(toast)
        return toast

    def info(self, key: str) -> Toast:
        return self.notify("info", key)

    def success(self, key: str) -> Toast:
        return self.notify("success", key)

    def error(self, key: str) -> Toast:
        return self.notify("error", key)

    @property
    def last(self) -> Optional[Toast]:
        return self.history[-1] if self.history else None
