"""
Vision providers that turn a base64 image into recognized handwriting.
"""
import logging
from typing import List

import requests

from .. import config

logger = logging.getLogger("recognition_providers")


def language_hints(language: str) -> List[str]:
    if language == "hi":
        return ["hi-t-i0-handwrit", "hi"]
    return ["en-t-i0-handwrit", "en"]


class ProviderError(Exception):
    pass


class OpenAIVisionProvider:
    name = "openai"

    def __init__(self, client, model: str = config.OPENAI_MODEL):
        self.client = client
        self.model = model

    def recognize(self, image_base64: str, language: str, mime: str = "image/png") -> str:
        hints = ", ".join(language_hints(language))
        system_prompt = (
            "You are a handwriting transcription engine for learners with dyslexia. "
            "Transcribe the handwritten text in the image exactly as written, keeping line breaks. "
            f"Expected language hints: {hints}. The hint is not a filter: transcribe any script you see. "
            "Reply with the transcription only. If there is no legible text, reply with an empty message."
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": [
                        {"type": "text", "text": "Transcribe this handwriting."},
                        {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{image_base64}"}}
                    ]}
                ],
                temperature=0,
            )
        except Exception as e:
            raise ProviderError(f"OpenAI vision error: {e}") from e

        content = response.choices[0].message.content
        return content or ""


class GoogleVisionProvider:
    name = "google"

    def __init__(self, api_key: str, url: str = config.GOOGLE_VISION_API_URL, timeout: float = config.RECOGNITION_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    def recognize(self, image_base64: str, language: str, mime: str = "image/png") -> str:
        # Vision detects the format from the bytes; mime is unused here
        body = {
            "requests": [
                {
                    "image": {"content": image_base64},
                    "features": [{"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 10}],
                    "imageContext": {"languageHints": language_hints(language)},
                }
            ]
        }
        try:
            resp = requests.post(self.url, params={"key": self.api_key}, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"Vision API request failed: {e}") from e
        if not resp.ok:
            raise ProviderError(f"Vision API error: {resp.status_code} {resp.text}")

        try:
            first = (resp.json().get("responses") or [{}])[0]
        except ValueError as e:
            raise ProviderError("Vision API returned invalid JSON") from e

        # fullTextAnnotation keeps the layout; textAnnotations is the fallback
        text = (first.get("fullTextAnnotation") or {}).get("text")
        if not text:
            annotations = first.get("textAnnotations") or [{}]
            text = annotations[0].get("description") or ""
        return text


class ProviderRegistry:
    """Creates provider clients lazily so a missing key never breaks startup."""

    def __init__(self, provider: str = config.RECOGNITION_PROVIDER):
        self.provider = provider
        self._instance = None

    def get(self):
        if self._instance is not None:
            return self._instance
        try:
            if self.provider == "google":
                if not config.GOOGLE_VISION_API_KEY:
                    logger.warning("GOOGLE_VISION_API_KEY missing; recognition disabled")
                    return None
                self._instance = GoogleVisionProvider(config.GOOGLE_VISION_API_KEY)
            else:
                from openai import OpenAI
                self._instance = OpenAIVisionProvider(OpenAI())
            logger.info("Loaded recognition provider %s", self.provider)
        except Exception as e:
            logger.exception("Recognition provider %s failed to load: %s", self.provider, e)
            self._instance = None
        return self._instance


registry = ProviderRegistry()
