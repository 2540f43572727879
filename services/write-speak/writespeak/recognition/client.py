"""
Recognition client: posts an encoded image to the recognition endpoint and
classifies the outcome.

- transport / auth / timeout / non-2xx / malformed body -> ServiceUnavailable
- 2xx with empty or whitespace text                      -> NoTextFound
- otherwise                                               -> trimmed text

No automatic retry: the user re-triggers recognition.
"""
import asyncio
import logging
from typing import Optional

import requests

from .. import config
from ..errors import NoTextFound, RecognitionError, ServiceUnavailable
from ..notifications import Notifier

logger = logging.getLogger("recognition_client")


class RecognitionClient:
    def __init__(
        self,
        endpoint: str = config.RECOGNITION_ENDPOINT,
        notifier: Optional[Notifier] = None,
        session: Optional[requests.Session] = None,
        timeout: float = config.RECOGNITION_TIMEOUT_SECONDS,
        headers: Optional[dict] = None,
    ):
        self.endpoint = endpoint
        self.notifier = notifier or Notifier()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = headers or {}

    def request_text(self, encoded_image: str, language: str) -> str:
        """Blocking round trip. The data URL is forwarded as-is; the service strips the prefix."""
        payload = {"image": encoded_image, "language": language}
        try:
            resp = self.session.post(self.endpoint, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise ServiceUnavailable(f"Recognition timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ServiceUnavailable(f"Recognition request failed: {e}") from e

        if not resp.ok:
            raise ServiceUnavailable(f"Recognition service returned {resp.status_code}: {_error_from(resp)}")

        try:
            body = resp.json()
        except ValueError as e:
            raise ServiceUnavailable("Recognition service returned a malformed body") from e

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ServiceUnavailable("Recognition service response has no text field")
        if not text.strip():
            raise NoTextFound("No text found in image")
        return text.strip()

    async def recognize(self, encoded_image: str, language: str = config.DEFAULT_LANGUAGE) -> str:
        self.notifier.info("processing")
        try:
            text = await asyncio.to_thread(self.request_text, encoded_image, language)
        except RecognitionError as e:
            logger.warning("Recognition failed (%s): %s", e.code, e.message)
            self.notifier.error(e.code)
            raise
        self.notifier.success("recognized")
        return text


def _error_from(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] if isinstance(resp.text, str) else ""
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return ""
