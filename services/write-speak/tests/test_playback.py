import pytest

from writespeak.notifications import Notifier
from writespeak.speech.controller import PlaybackController, PlaybackState
from writespeak.speech.engine import Voice


def _controller(engine, text="Hello World"):
    notifier = Notifier()
    controller = PlaybackController(engine, notifier=notifier)
    controller.load_text(text)
    return controller, notifier


def test_default_voice_is_picked_from_engine(make_engine):
    controller, _ = _controller(make_engine())
    assert controller.config.voice == "en-US"


def test_start_speaks_with_current_config(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.set_rate(1.5)
    controller.set_volume(40)
    controller.start()
    assert controller.state == PlaybackState.PLAYING
    utterance = engine.spoken[-1]
    assert utterance.text == "Hello World"
    assert utterance.rate == 1.5
    assert utterance.volume == pytest.approx(0.4)
    assert utterance.voice == "en-US"


def test_muted_start_runs_at_zero_volume(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.set_muted(True)
    controller.start()
    assert controller.state == PlaybackState.PLAYING
    assert engine.spoken[-1].volume == 0.0


@pytest.mark.parametrize("prior", ["idle", "playing", "paused"])
def test_restart_always_ends_playing(make_engine, prior):
    engine = make_engine()
    controller, _ = _controller(engine)
    if prior in ("playing", "paused"):
        controller.start()
    if prior == "paused":
        controller.pause()
    controller.restart()
    assert controller.state == PlaybackState.PLAYING
    assert engine.spoken[-1].text == "Hello World"


def test_restart_picks_up_config_changes(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.start()
    controller.set_voice("hi-IN")
    assert engine.spoken[-1].voice == "en-US"
    controller.restart()
    assert engine.spoken[-1].voice == "hi-IN"


def test_true_pause_and_resume_keep_utterance(make_engine):
    engine = make_engine(supports_pause=True)
    controller, _ = _controller(engine)
    controller.start()
    controller.pause()
    assert controller.state == PlaybackState.PAUSED
    assert engine.paused
    controller.resume()
    assert controller.state == PlaybackState.PLAYING
    assert not engine.paused
    assert len(engine.spoken) == 1


def test_pause_without_engine_support_cancels_and_resume_restarts(make_engine):
    engine = make_engine(supports_pause=False)
    controller, _ = _controller(engine)
    controller.start()
    cancels = engine.cancels
    controller.pause()
    assert controller.state == PlaybackState.PAUSED
    assert engine.cancels > cancels
    controller.resume()
    assert controller.state == PlaybackState.PLAYING
    assert len(engine.spoken) == 2


def test_toggle_cycles_play_pause(make_engine):
    controller, _ = _controller(make_engine())
    controller.toggle()
    assert controller.state == PlaybackState.PLAYING
    controller.toggle()
    assert controller.state == PlaybackState.PAUSED
    controller.toggle()
    assert controller.state == PlaybackState.PLAYING


def test_natural_end_returns_to_idle(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.start()
    engine.finish()
    assert controller.state == PlaybackState.IDLE
    assert controller.utterance is None


def test_end_from_cancelled_utterance_is_ignored(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.start()
    controller.restart()
    engine.finish(index=0)
    assert controller.state == PlaybackState.PLAYING


def test_engine_error_resets_to_idle_and_notifies(make_engine):
    engine = make_engine()
    controller, notifier = _controller(engine)
    controller.start()
    engine.fail()
    assert controller.state == PlaybackState.IDLE
    assert notifier.last.key == "playback_error"


def test_live_volume_change_does_not_restart(make_engine):
    engine = make_engine(supports_live_volume=True)
    controller, _ = _controller(engine)
    controller.start()
    controller.set_volume(30)
    assert engine.volume == pytest.approx(0.3)
    controller.set_muted(True)
    assert engine.volume == 0.0
    assert len(engine.spoken) == 1


def test_volume_change_without_live_support_restarts(make_engine):
    engine = make_engine(supports_live_volume=False)
    controller, _ = _controller(engine)
    controller.start()
    controller.toggle_mute()
    assert len(engine.spoken) == 2
    assert engine.spoken[-1].volume == 0.0
    controller.toggle_mute()
    assert engine.spoken[-1].volume == pytest.approx(0.8)
    assert controller.state == PlaybackState.PLAYING


def test_cancel_is_idempotent(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.cancel()
    controller.cancel()
    assert controller.state == PlaybackState.IDLE
    assert engine.cancels == 0


def test_close_cancels_active_utterance(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine)
    controller.start()
    before = engine.cancels
    controller.close()
    assert controller.state == PlaybackState.IDLE
    assert engine.cancels == before + 1


def test_voices_arriving_late_start_pending_playback(make_engine):
    engine = make_engine(voices=[])
    controller, _ = _controller(engine)
    assert controller.config.voice is None
    controller.start()
    assert controller.state == PlaybackState.LOADING
    assert engine.spoken == []

    controller.on_voices_changed([Voice(id="en-GB", name="British", lang="en"),
                                  Voice(id="en-US", name="American", lang="en", default=True)])
    assert controller.config.voice == "en-US"
    assert controller.state == PlaybackState.PLAYING
    assert engine.spoken[-1].voice == "en-US"


def test_user_voice_choice_survives_voice_list_update(make_engine):
    controller, _ = _controller(make_engine())
    controller.set_voice("hi-IN")
    controller.on_voices_changed([Voice(id="en-US", name="English", lang="en", default=True),
                                  Voice(id="hi-IN", name="Hindi", lang="hi")])
    assert controller.config.voice == "hi-IN"


@pytest.mark.parametrize("rate,expected", [(0.1, 0.5), (1.2, 1.2), (5, 2.0)])
def test_rate_is_clamped(make_engine, rate, expected):
    controller, _ = _controller(make_engine())
    controller.set_rate(rate)
    assert controller.config.rate == expected


def test_start_without_text_stays_idle(make_engine):
    engine = make_engine()
    controller, _ = _controller(engine, text="   ")
    controller.start()
    assert controller.state == PlaybackState.IDLE
    assert engine.spoken == []
