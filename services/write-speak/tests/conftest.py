"""
Shared fixtures: a scriptable speech engine and fake HTTP responses.
Run: pytest  (from the repository root)
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from writespeak.errors import PlaybackError
from writespeak.main import app
from writespeak.speech.engine import SpeechEngine, Voice


class FakeEngine(SpeechEngine):
    def __init__(self, voices=None, supports_pause=True, supports_live_volume=True):
        if voices is None:
            voices = [
                Voice(id="en-US", name="English", lang="en", default=True),
                Voice(id="hi-IN", name="Hindi", lang="hi"),
            ]
        self._voices = voices
        self.supports_pause = supports_pause
        self.supports_live_volume = supports_live_volume
        self.spoken = []
        self.cancels = 0
        self.paused = False
        self.volume = None
        self.callbacks = []

    def voices(self):
        return list(self._voices)

    def speak(self, utterance, on_end, on_error):
        self.spoken.append(utterance)
        self.callbacks.append((on_end, on_error))

    def cancel(self):
        self.cancels += 1

    def finished(self, utterance_id):
        for utterance, (on_end, _) in zip(self.spoken, self.callbacks):
            if utterance.id == utterance_id:
                on_end()

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def set_volume(self, volume):
        self.volume = volume

    def finish(self, index=-1):
        self.callbacks[index][0]()

    def fail(self, index=-1):
        self.callbacks[index][1](PlaybackError("engine exploded"))


def fake_response(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if isinstance(body, Exception):
        resp.json.side_effect = body
        resp.text = "<html>oops</html>"
    else:
        resp.json.return_value = body
        resp.text = ""
    return resp


@pytest.fixture
def make_engine():
    return FakeEngine


@pytest.fixture
def respond():
    return fake_response


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
