import pytest

from settings import AgentSettings, StepTimings

from fakes import FakePage, RecordingFlows


@pytest.fixture(autouse=True)
def no_real_api(monkeypatch):
    """Tests never talk to OpenAI; every client is a scripted fake."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def fast_timings():
    return StepTimings(
        element_timeout_ms=10,
        network_timeout_ms=10,
        login_timeout_ms=10,
        optional_timeout_ms=10,
        typing_delay_ms=0,
        settle_ms=0,
        scroll_settle_ms=0,
    )


@pytest.fixture
def settings(fast_timings):
    return AgentSettings(
        api_key="test-key",
        timings=fast_timings,
        step_interval_s=0.0,
        max_steps=5,
        capture_dir=None,
    )


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def flows():
    return RecordingFlows()
