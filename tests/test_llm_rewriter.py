from __future__ import annotations

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from chatnao.api.llm_rewriter import (
    LLMRewriter,
    RewriteStatus,
    build_rewrite_prompt,
    build_summary_prompt,
    lc_text_from_content,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class ScriptedModel:
    """Minimal chat model: returns a fixed reply or raises a fixed error."""

    def __init__(self, reply="", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


def test_doctor_prompt_targets_patient():
    prompt = build_rewrite_prompt("doctor", "Take 5mg twice daily.")
    assert "easy for a patient to understand" in prompt
    assert "Do not add new medical advice." in prompt
    assert prompt.endswith("Message: Take 5mg twice daily.")


def test_patient_prompt_targets_doctor():
    prompt = build_rewrite_prompt("patient", "My chest hurts.")
    assert "concise clinical summary for a doctor" in prompt
    assert "Avoid diagnosis." in prompt
    assert prompt.endswith("Message: My chest hurts.")


def test_unknown_role_is_treated_as_patient():
    assert build_rewrite_prompt("nurse", "hi") == build_rewrite_prompt("patient", "hi")


def test_summary_prompt_embeds_transcript():
    prompt = build_summary_prompt("patient: chest pain\ndoctor: book an ECG")
    assert "under 200 words" in prompt
    assert prompt.endswith("Conversation:\npatient: chest pain\ndoctor: book an ECG")


def test_rewrite_sends_role_prompt_and_text_and_trims(settings):
    model = ScriptedModel(reply="  Patient has had chest pain for one day.  ")
    rewriter = LLMRewriter(settings, model=model)

    result = rewriter.rewrite_for_audience("patient", "I have chest pain since yesterday")

    assert result.ok
    assert result.status == RewriteStatus.SUCCESS
    assert result.text == "Patient has had chest pain for one day."
    system, human = model.calls[0]
    assert isinstance(system, SystemMessage)
    assert isinstance(human, HumanMessage)
    assert system.content == build_rewrite_prompt("patient", "I have chest pain since yesterday")
    assert human.content == "I have chest pain since yesterday"


def test_summarize_uses_summary_prompt(settings):
    model = ScriptedModel(reply="Summary.")
    result = LLMRewriter(settings, model=model).summarize("patient: chest pain")

    assert result.text == "Summary."
    system, human = model.calls[0]
    assert system.content == "You write concise medical conversation summaries."
    assert human.content == build_summary_prompt("patient: chest pain")


@pytest.mark.parametrize(
    "error, status",
    [
        (openai.APITimeoutError(request=REQUEST), RewriteStatus.TIMEOUT),
        (
            openai.RateLimitError(
                "quota exceeded", response=httpx.Response(429, request=REQUEST), body=None
            ),
            RewriteStatus.QUOTA_EXCEEDED,
        ),
        (openai.APIConnectionError(request=REQUEST), RewriteStatus.TRANSPORT_ERROR),
        (
            openai.InternalServerError(
                "upstream down", response=httpx.Response(500, request=REQUEST), body=None
            ),
            RewriteStatus.TRANSPORT_ERROR,
        ),
    ],
)
def test_openai_errors_map_to_status(settings, error, status):
    rewriter = LLMRewriter(settings, model=ScriptedModel(error=error))

    result = rewriter.rewrite_for_audience("doctor", "Rest and drink fluids.")

    assert not result.ok
    assert result.status == status
    assert result.text == ""


def test_programming_errors_propagate(settings):
    rewriter = LLMRewriter(settings, model=ScriptedModel(error=KeyError("bug")))
    with pytest.raises(KeyError):
        rewriter.summarize("patient: hi")


def test_default_model_has_timeout_and_no_retries(settings):
    rewriter = LLMRewriter(settings)

    assert rewriter.model.max_retries == 0
    assert rewriter.model.request_timeout == settings.LLM_TIMEOUT_SECONDS
    assert rewriter.model.model_name == settings.OPEN_AI_MODEL


def test_content_parts_are_joined():
    parts = [{"type": "text", "text": "Hello "}, {"type": "image_url", "image_url": "x"}, "world"]
    assert lc_text_from_content(parts) == "Hello world"
    assert lc_text_from_content("plain") == "plain"
