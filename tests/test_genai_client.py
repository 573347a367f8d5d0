import threading
import time
from types import SimpleNamespace

import pytest
from google.api_core.exceptions import NotFound, ResourceExhausted, ServiceUnavailable

from skillsync.clients import genai_client
from skillsync.clients.genai_client import (
    SYSTEM_INSTRUCTION,
    _GeminiAdapter,
    _extract_retry_after,
    _normalize_model_name,
    _response_text,
    get_model,
)
from skillsync.core.config import settings
from skillsync.utils import PermissionCancelled, QuotaExceeded


class ScriptedModel:
    def __init__(self, name, script):
        self.name = name
        self.script = script
        self.calls = 0

    def generate_content(self, prompt):
        self.calls += 1
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def scripts(monkeypatch):
    """Maps model name -> list of responses/exceptions for the fake SDK."""
    by_name = {}

    def fake_model(model_name, system_instruction):
        assert system_instruction == SYSTEM_INSTRUCTION
        return ScriptedModel(model_name, by_name.setdefault(model_name, []))

    monkeypatch.setattr(genai_client.genai, "configure", lambda **kw: None)
    monkeypatch.setattr(genai_client.genai, "GenerativeModel", fake_model)
    monkeypatch.setattr(genai_client.time, "sleep", lambda s: None)
    return by_name


def test_extract_retry_after():
    assert _extract_retry_after("429 Quota exceeded. Please retry in 12.5s") == 12.5
    assert _extract_retry_after("retry_delay { seconds: 31 }") == 31.0
    assert _extract_retry_after("boom") is None
    assert _extract_retry_after(None) is None


def test_normalize_model_name():
    assert _normalize_model_name("gemini‑2.5–flash") == "gemini-2.5-flash"
    assert _normalize_model_name(None) == ""


def test_response_text_falls_back_to_parts():
    class Blocked:
        @property
        def text(self):
            raise ValueError("no valid parts")

        candidates = [SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(text=" hi ")]))]

    assert _response_text(SimpleNamespace(text="  ok ")) == "ok"
    assert _response_text(Blocked()) == "hi"
    assert _response_text(SimpleNamespace(text="", candidates=[])) == ""


def test_each_attempt_goes_through_governor(scripts, make_governor):
    scripts["gemini-2.5-flash"] = [
        ResourceExhausted("Quota exceeded, retry in 0"),
        SimpleNamespace(text=" ## Plan "),
    ]
    governor = make_governor(min_interval_ms=0)
    adapter = _GeminiAdapter("gemini-2.5-flash", "key", governor, base_sleep=0.0)

    out = adapter.generate_content("prompt")

    assert out.text == "## Plan"
    assert len(governor.calls()) == 2


def test_retries_are_bounded(scripts, make_governor):
    scripts["gemini-2.5-flash"] = [ServiceUnavailable("down")] * 3
    governor = make_governor(min_interval_ms=0)
    adapter = _GeminiAdapter("gemini-2.5-flash", "key", governor, max_retries=2, base_sleep=0.0)

    assert adapter.generate_content("prompt").text == ""
    assert len(governor.calls()) == 3


def test_switches_to_fallback_model(scripts, make_governor):
    scripts["gemini-9-pro"] = [NotFound("model not found")]
    scripts["gemini-2.0-flash"] = [SimpleNamespace(text="fallback answer")]
    adapter = _GeminiAdapter("gemini-9-pro", "key", make_governor(min_interval_ms=0))

    assert adapter.generate_content("prompt").text == "fallback answer"
    assert adapter.model_name == "gemini-2.0-flash"
    # the module-level fallback list is not consumed
    assert genai_client.FALLBACK_MODELS == ["gemini-2.0-flash"]


def test_daily_quota_stops_before_sending(scripts, make_governor):
    scripts["gemini-2.5-flash"] = [SimpleNamespace(text="never")]
    governor = make_governor(max_per_day=1, min_interval_ms=0)
    governor.record_call()
    adapter = _GeminiAdapter("gemini-2.5-flash", "key", governor)

    with pytest.raises(QuotaExceeded):
        adapter.generate_content("prompt")

    assert adapter.model.calls == 0


def test_get_model_requires_token(monkeypatch, make_governor):
    monkeypatch.setattr(settings.api_keys, "GEMINI_TOKEN", None)
    with pytest.raises(RuntimeError):
        get_model(make_governor())


def test_get_model_with_token_override(scripts, make_governor):
    governor = make_governor()
    adapter = get_model(governor, token_override="abc")
    assert adapter.governor is governor
    assert adapter.model_name == _normalize_model_name(settings.api_keys.GEMINI_MODEL)


@pytest.mark.slow
def test_cancel_interrupts_retry_backoff(scripts, make_governor):
    scripts["gemini-2.5-flash"] = [ServiceUnavailable("down, retry in 3"), SimpleNamespace(text="late")]
    governor = make_governor(min_interval_ms=0)
    adapter = _GeminiAdapter("gemini-2.5-flash", "key", governor)

    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(PermissionCancelled):
            adapter.generate_content("prompt", cancel=cancel)
    finally:
        timer.cancel()

    assert time.monotonic() - started < 1.5
    assert adapter.model.calls == 1
    assert len(governor.calls()) == 1


def test_cancel_after_grant_releases_it(scripts, make_governor):
    scripts["gemini-2.5-flash"] = [SimpleNamespace(text="never")]
    governor = make_governor(min_interval_ms=0)
    cancel = threading.Event()
    granted = governor.wait

    def wait_then_cancel(c=None):
        granted(c)
        cancel.set()

    governor.wait = wait_then_cancel
    adapter = _GeminiAdapter("gemini-2.5-flash", "key", governor)

    with pytest.raises(PermissionCancelled):
        adapter.generate_content("prompt", cancel=cancel)

    assert adapter.model.calls == 0
    assert governor.calls() == ()
    # the grant was handed back, so the next caller is not held up
    granted()
    governor.record_call()
    assert len(governor.calls()) == 1
