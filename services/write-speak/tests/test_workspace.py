"""
End-to-end pipeline scenarios: canvas -> recognition -> staging -> playback.
"""
import asyncio
from unittest.mock import MagicMock

from writespeak.canvas.models import Point
from writespeak.canvas.surface import DrawingSurface
from writespeak.notifications import Notifier
from writespeak.recognition.client import RecognitionClient
from writespeak.speech.controller import PlaybackState
from writespeak.workspace import Workspace


def _workspace(make_engine, response):
    notifier = Notifier("en")
    session = MagicMock()
    session.post.return_value = response
    client = RecognitionClient(endpoint="http://ocr.test/recognize", notifier=notifier, session=session)
    surface = DrawingSurface(200, 100)
    engine = make_engine()
    ws = Workspace(engine, client=client, surface=surface, notifier=notifier)
    return ws, session, engine


def _draw(surface):
    surface.begin(Point(x=20, y=50))
    surface.extend(Point(x=120, y=50))
    surface.end()


def test_recognized_text_reaches_playback(make_engine, respond):
    ws, session, engine = _workspace(make_engine, respond(200, {"text": "Hello World"}))
    _draw(ws.surface)
    text = asyncio.run(ws.recognize_canvas())

    assert text == "Hello World"
    assert ws.staging.working_text == "Hello World"
    assert ws.playback.text == "Hello World"
    sent = session.post.call_args.kwargs["json"]
    assert sent["image"].startswith("data:image/png;base64,")
    assert sent["language"] == "en"

    ws.playback.start()
    assert engine.spoken[-1].text == "Hello World"


def test_second_trigger_while_pending_is_ignored(make_engine, respond):
    ws, session, _ = _workspace(make_engine, respond(200, {"text": "once"}))
    _draw(ws.surface)
    seen = []

    def slow_post(*args, **kwargs):
        seen.append(ws.controls_enabled)
        return respond(200, {"text": "once"})

    session.post.side_effect = slow_post

    async def double_click():
        return await asyncio.gather(ws.recognize_canvas(), ws.recognize_canvas())

    results = asyncio.run(double_click())
    assert session.post.call_count == 1
    assert results == ["once", None]
    assert seen == [False]
    assert ws.controls_enabled


def test_text_upload_is_rejected_before_network(make_engine, respond):
    ws, session, _ = _workspace(make_engine, respond(200, {"text": "never"}))
    ws.staging.stage_recognition("previous")
    result = asyncio.run(ws.upload_image(b"plain text", "text/plain", "notes.txt"))

    assert result is None
    session.post.assert_not_called()
    assert ws.staging.working_text == "previous"
    assert ws.notifier.last.key == "input_error"


def test_failed_recognition_keeps_text_and_unlocks_controls(make_engine, respond):
    ws, _, _ = _workspace(make_engine, respond(503, {"error": "down"}))
    ws.staging.submit_manual("typed earlier")
    _draw(ws.surface)
    assert asyncio.run(ws.recognize_canvas()) is None
    assert ws.staging.working_text == "typed earlier"
    assert ws.controls_enabled
    assert ws.notifier.last.key == "service_unavailable"


def test_empty_recognition_reports_no_text(make_engine, respond):
    ws, _, _ = _workspace(make_engine, respond(200, {"text": "   "}))
    assert asyncio.run(ws.recognize_canvas()) is None
    assert ws.notifier.last.key == "no_text_found"


def test_blank_manual_submission_leaves_playback_text(make_engine, respond):
    ws, _, _ = _workspace(make_engine, respond(200, {"text": "x"}))
    assert ws.submit_manual("read this")
    assert not ws.submit_manual("   ")
    assert ws.playback.text == "read this"
    assert ws.notifier.last.key == "empty_text"


def test_close_stops_playback(make_engine, respond):
    ws, _, engine = _workspace(make_engine, respond(200, {"text": "x"}))
    ws.submit_manual("read this")
    ws.playback.start()
    ws.close()
    assert ws.playback.state == PlaybackState.IDLE


def test_language_switch_changes_hint_and_messages(make_engine, respond):
    ws, session, _ = _workspace(make_engine, respond(200, {"text": "नमस्ते"}))
    ws.set_language("hi")
    asyncio.run(ws.recognize_canvas())
    assert session.post.call_args.kwargs["json"]["language"] == "hi"
    assert ws.notifier.last.message == "पाठ सफलतापूर्वक पहचाना गया!"
