import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from writespeak.errors import NoTextFound, ServiceUnavailable
from writespeak.notifications import Notifier
from writespeak.recognition.client import RecognitionClient

IMAGE = "data:image/png;base64,iVBORw0KGgo="


def _client(post, language="en"):
    session = MagicMock()
    if isinstance(post, Exception):
        session.post.side_effect = post
    else:
        session.post.return_value = post
    notifier = Notifier(language)
    return RecognitionClient(endpoint="http://ocr.test/recognize", notifier=notifier, session=session, timeout=5), session, notifier


def test_success_returns_trimmed_text(respond):
    client, session, notifier = _client(respond(200, {"text": "  Hello World\n"}))
    text = asyncio.run(client.recognize(IMAGE, "en"))
    assert text == "Hello World"
    session.post.assert_called_once_with(
        "http://ocr.test/recognize", json={"image": IMAGE, "language": "en"}, headers={}, timeout=5
    )
    assert [t.key for t in notifier.history] == ["processing", "recognized"]


def test_empty_text_is_no_text_found(respond):
    client, _, notifier = _client(respond(200, {"text": ""}))
    with pytest.raises(NoTextFound):
        asyncio.run(client.recognize(IMAGE, "en"))
    assert notifier.last.key == "no_text_found"
    assert notifier.last.level == "error"


def test_whitespace_text_is_no_text_found(respond):
    client, _, _ = _client(respond(200, {"text": " \n\t "}))
    with pytest.raises(NoTextFound):
        client.request_text(IMAGE, "hi")


def test_http_500_is_service_unavailable(respond):
    client, _, notifier = _client(respond(500, {"error": "Vision API error: 403"}))
    with pytest.raises(ServiceUnavailable) as exc:
        asyncio.run(client.recognize(IMAGE, "en"))
    assert "403" in exc.value.message
    assert notifier.last.key == "service_unavailable"


def test_timeout_is_service_unavailable():
    client, _, _ = _client(requests.Timeout("read timed out"))
    with pytest.raises(ServiceUnavailable):
        client.request_text(IMAGE, "en")


def test_connection_error_is_service_unavailable():
    client, _, _ = _client(requests.ConnectionError("refused"))
    with pytest.raises(ServiceUnavailable):
        client.request_text(IMAGE, "en")


def test_malformed_body_is_service_unavailable(respond):
    client, _, _ = _client(respond(200, ValueError("no json")))
    with pytest.raises(ServiceUnavailable):
        client.request_text(IMAGE, "en")


def test_body_without_text_is_service_unavailable(respond):
    client, _, _ = _client(respond(200, {"result": "Hello"}))
    with pytest.raises(ServiceUnavailable):
        client.request_text(IMAGE, "en")


def test_notifications_follow_display_language(respond):
    client, _, notifier = _client(respond(200, {"text": "नमस्ते"}), language="hi")
    assert asyncio.run(client.recognize(IMAGE, "hi")) == "नमस्ते"
    assert notifier.last.message == "पाठ सफलतापूर्वक पहचाना गया!"
