"""
OpenAI Loan Advisor

Purpose
-------
Production ``LoanAdvisor`` backed by OpenAI chat completions. Analysis and
comparison requests are retried a bounded number of times; streamed chat
replies are not, since a partly delivered stream cannot be replayed safely.

Environment
-----------
OPENAI_API_KEY           : required
EMI_CALC_AI_MODEL        : default "gpt-4o-mini"
EMI_CALC_AI_TIMEOUT_S    : default "20"
EMI_CALC_AI_MAX_RETRIES  : default "2"
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import Any, Optional

from openai import OpenAI

from . import config
from .advisor import (
    SYSTEM_INSTRUCTION,
    build_analysis_prompt,
    build_chat_prompt,
    build_comparison_prompt,
)
from .data_models import ScheduleResult
from .exceptions import AdvisorError

logger = logging.getLogger(__name__)


class OpenAIAdvisor:
    def __init__(self, client: Optional[Any] = None, *, model: Optional[str] = None) -> None:
        if client is None:
            api_key = config.openai_api_key()
            if not api_key:
                raise AdvisorError("OPENAI_API_KEY not set for OpenAIAdvisor.")
            client = OpenAI(api_key=api_key, timeout=config.ai_timeout_seconds(), max_retries=0)
        self._client = client
        self._model = model or config.ai_model()
        self._max_retries = config.ai_max_retries()

    # ---------- single replies ----------
    def summarize(self, schedule: ScheduleResult) -> str:
        return self._complete(build_analysis_prompt(schedule))

    def compare(self, current: ScheduleResult, alternative: ScheduleResult) -> str:
        return self._complete(build_comparison_prompt(current, alternative))

    # ---------- streaming ----------
    def stream_reply(self, message: str, schedule: Optional[ScheduleResult] = None) -> Iterator[str]:
        stream = self._client.chat.completions.create(
            model=self._model,
            messages=_messages(build_chat_prompt(message, schedule)),
            stream=True,
        )
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    def _complete(self, prompt: str) -> str:
        last_err: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.chat.completions.create(
                    model=self._model,
                    messages=_messages(prompt),
                )
                return response.choices[0].message.content or ""
            except Exception as e:
                last_err = e
                logger.warning("OpenAI request failed (attempt %d): %s", attempt + 1, e)
                if attempt < self._max_retries:
                    time.sleep(min(0.5 * (attempt + 1), 2.0))
        raise AdvisorError("OpenAI request failed", cause=last_err) from last_err


def _messages(prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_INSTRUCTION},
        {"role": "user", "content": prompt},
    ]
