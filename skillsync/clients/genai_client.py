from __future__ import annotations

import logging
import re
import threading
import time
from types import SimpleNamespace
from typing import Optional, List

import google.generativeai as genai
from google.api_core.exceptions import (
    ResourceExhausted,
    FailedPrecondition,
    GoogleAPICallError,
    PermissionDenied,
    NotFound,
)

from skillsync.core.config import settings
from skillsync.utils.rate_limiter import PermissionCancelled, RateGovernor

log = logging.getLogger("skillsync.clients.gemini")

SYSTEM_INSTRUCTION = """
You are an expert learning advisor and skill development coach specializing in helping developers and professionals grow their careers. Your advice should be:
- Practical and immediately actionable
- Tailored to the user's current situation
- Structured with clear headers and bullet points
- Focused on modern best practices and industry standards
- Encouraging yet realistic about timelines and effort required

Format all responses in clear markdown with headers (##, ###), bullet points, and **bold** emphasis where appropriate.
""".strip()

MAX_RETRY_SLEEP = 15.0

UNICODE_DASHES_RE = re.compile(r"[\u2010-\u2015\u2212\uFE58\uFE63\uFF0D]")
def _normalize_model_name(name: str) -> str:
    return UNICODE_DASHES_RE.sub("-", name or "")


FALLBACK_MODELS: List[str] = [
    "gemini-2.0-flash",
]


def _response_text(out) -> str:
    # .text raises ValueError when the candidate has no valid parts
    try:
        text = out.text
    except (AttributeError, ValueError):
        text = None
    if not text:
        try:
            text = out.candidates[0].content.parts[0].text
        except (AttributeError, IndexError, TypeError):
            text = None
    return (text or "").strip()


class _GeminiAdapter:
    def __init__(
        self,
        model_name: str,
        api_key: str,
        governor: RateGovernor,
        max_retries: int = 3,
        base_sleep: float = 0.6,
    ):
        self.model_name = _normalize_model_name(model_name)
        self.governor = governor
        self.max_retries = max_retries
        self.base_sleep = base_sleep
        self._fallbacks = list(FALLBACK_MODELS)

        genai.configure(
            api_key=api_key,
            transport="rest",
        )

        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
        )

    def _swap_model(self, new_name: str) -> None:
        self.model_name = _normalize_model_name(new_name)
        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
        )

    def _backoff(self, attempt: int, msg: str) -> Optional[float]:
        if attempt > self.max_retries:
            return None
        delay = _extract_retry_after(msg) or (self.base_sleep * (2 ** attempt))
        return min(delay, MAX_RETRY_SLEEP)

    @staticmethod
    def _pause(delay: float, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            raise PermissionCancelled("Cancelled during Gemini retry backoff")

    def generate_content(self, prompt_text: str, cancel: Optional[threading.Event] = None) -> SimpleNamespace:
        """
        Send one prompt, retrying transient provider errors.

        Every attempt is an outbound call, so each one waits on the governor
        and is recorded before it is sent. QuotaExceeded and
        PermissionCancelled from the governor propagate unchanged; `cancel`
        also interrupts the backoff between retries.
        """
        attempt = 0
        while True:
            self.governor.wait(cancel)
            if cancel is not None and cancel.is_set():
                # cancelled between the grant and the send
                self.governor.release()
                raise PermissionCancelled("Cancelled before the Gemini call was sent")
            self.governor.record_call()
            try:
                out = self.model.generate_content(prompt_text)
                return SimpleNamespace(text=_response_text(out))

            except (ResourceExhausted, FailedPrecondition) as e:
                msg = str(e)
                if "User location is not supported" in msg:
                    log.warning("Gemini region block: %s (model=%s)", msg, self.model_name)
                    return SimpleNamespace(text="")
                attempt += 1
                delay = self._backoff(attempt, msg)
                if delay is None:
                    log.warning("Gemini precondition/exhausted: %s (model=%s)", msg, self.model_name)
                    return SimpleNamespace(text="")
                log.warning("Gemini rate/precondition; retry #%s in %.2fs; err=%s",
                            attempt, delay, msg, extra={"retry_after": delay, "model": self.model_name})
                self._pause(delay, cancel)

            except (PermissionDenied, NotFound) as e:
                log.warning("Gemini permission/model error: %s (model=%s)", e, self.model_name)
                if self._fallbacks:
                    alt = _normalize_model_name(self._fallbacks.pop(0))
                    log.warning("Switching Gemini model → %s", alt, extra={"model": alt})
                    self._swap_model(alt)
                    continue
                return SimpleNamespace(text="")

            except GoogleAPICallError as e:
                msg = f"{type(e).__name__}: {e}"
                attempt += 1
                delay = self._backoff(attempt, str(e))
                if delay is None:
                    log.warning("Gemini API error (exhausted): %s (model=%s)", msg, self.model_name)
                    return SimpleNamespace(text="")
                log.warning("Gemini API error; retry #%s in %.2fs; err=%s",
                            attempt, delay, msg, extra={"retry_after": delay, "model": self.model_name})
                self._pause(delay, cancel)

_RETRY_IN_RE = re.compile(r"(retry in|retry_after|retry-after)\s*:?[\s=]*([0-9]+(?:\.[0-9]+)?)", re.IGNORECASE)
_RETRY_SECONDS_BLOCK_RE = re.compile(r"retry_delay\s*\{\s*seconds:\s*([0-9]+)", re.IGNORECASE)

def _extract_retry_after(err_msg: str) -> Optional[float]:
    m = _RETRY_IN_RE.search(err_msg or "")
    if m:
        return float(m.group(2))
    m = _RETRY_SECONDS_BLOCK_RE.search(err_msg or "")
    if m:
        return float(m.group(1))
    return None


def get_model(governor: RateGovernor, token_override: str | None = None) -> _GeminiAdapter:
    api = settings.api_keys
    token = token_override or api.GEMINI_TOKEN
    if not token:
        raise RuntimeError(
            "GEMINI_TOKEN is not set. Set APP__API_KEYS__GEMINI_TOKEN in the environment or .env"
        )

    model_name = _normalize_model_name(api.GEMINI_MODEL or "gemini-2.5-flash")
    return _GeminiAdapter(model_name=model_name, api_key=token, governor=governor)
