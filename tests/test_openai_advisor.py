from types import SimpleNamespace

import pytest

from emi_calc.advisor import SYSTEM_INSTRUCTION, collect_stream, shorter_tenure_alternative
from emi_calc.exceptions import AdvisorError
from emi_calc.openai_advisor import OpenAIAdvisor


class _FakeCompletions:
    def __init__(self, replies):
        self._replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if kwargs.get("stream"):
            return iter(
                SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])
                for text in reply
            )
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


def _client(*replies):
    completions = _FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_summarize_sends_system_instruction(standard_result):
    client, completions = _client("Looks affordable.")
    advisor = OpenAIAdvisor(client, model="gpt-test")
    assert advisor.summarize(standard_result) == "Looks affordable."
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["messages"][0] == {"role": "system", "content": SYSTEM_INSTRUCTION}
    assert "Generate a short report" in call["messages"][1]["content"]


def test_compare_uses_comparison_prompt(standard_result):
    client, completions = _client("Shorter is cheaper.")
    advisor = OpenAIAdvisor(client)
    shorter = shorter_tenure_alternative(standard_result)
    assert advisor.compare(standard_result, shorter) == "Shorter is cheaper."
    assert "Option B (Faster)" in completions.calls[0]["messages"][1]["content"]


def test_retries_then_succeeds(monkeypatch, standard_result):
    monkeypatch.setenv("EMI_CALC_AI_MAX_RETRIES", "1")
    monkeypatch.setattr("emi_calc.openai_advisor.time.sleep", lambda _s: None)
    client, completions = _client(ConnectionError("reset"), "Recovered.")
    assert OpenAIAdvisor(client).summarize(standard_result) == "Recovered."
    assert len(completions.calls) == 2


def test_gives_up_with_advisor_error(standard_result):
    client, _ = _client(ConnectionError("down"))
    with pytest.raises(AdvisorError):
        OpenAIAdvisor(client).summarize(standard_result)


def test_missing_key_is_an_advisor_error():
    with pytest.raises(AdvisorError):
        OpenAIAdvisor()


def test_stream_reply_yields_text_chunks(standard_result):
    client, completions = _client(["Pay ", None, "early."])
    advisor = OpenAIAdvisor(client)
    reply = collect_stream(advisor.stream_reply("Should I prepay?", standard_result))
    assert reply.text == "Pay early."
    call = completions.calls[0]
    assert call["stream"] is True
    assert call["messages"][1]["content"].startswith("[Context: Loan Amount:")
