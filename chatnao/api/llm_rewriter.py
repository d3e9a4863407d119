"""
Role-aware Rewrite Adapter • Conversation Summaries
===================================================

Purpose
-------
Wraps the chat model behind a small capability interface (`Rewriter`):
- `rewrite_for_audience(sender_role, text)`: rewrites a doctor's message in plain
  language for the patient, or a patient's message as a concise clinical note for the doctor.
- `summarize(transcript)`: structured summary of a role-tagged transcript.

Both return a `RewriteResult` instead of raising, so the caller decides what a
timeout, an exhausted quota or a transport error means for its operation.

Key Components
--------------
- build_rewrite_prompt / build_summary_prompt : pure prompt builders
- RewriteStatus / RewriteResult               : typed outcome of one call
- Rewriter                                    : abstract capability
- LLMRewriter                                 : LangChain `ChatOpenAI` implementation

Configuration (settings)
------------------------
- settings.API_KEY             : OpenAI API key.
- settings.OPEN_AI_MODEL       : Chat model name.
- settings.LLM_TEMPERATURE     : Sampling temperature.
- settings.LLM_TIMEOUT_SECONDS : Per-request timeout. Retries are disabled (`max_retries=0`).

Each call is a single-turn exchange: the prompt is the system instruction and the
message text (or summary request) is the only human turn. Nothing is remembered
between calls.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from chatnao.database.config.config import Settings

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_INSTRUCTION = "You write concise medical conversation summaries."

DOCTOR_TO_PATIENT_PROMPT = PromptTemplate.from_template(
    """You are a medical communication assistant. Rewrite the doctor's message so it is easy for a patient to understand.

Rules:
- Use plain language.
- Keep empathetic tone.
- Preserve all facts and instructions.
- Do not add new medical advice.

Message: {text}"""
)

PATIENT_TO_DOCTOR_PROMPT = PromptTemplate.from_template(
    """You are a medical communication assistant. Rewrite the patient's message into a concise clinical summary for a doctor.

Rules:
- Keep symptoms, duration, severity, and context.
- Avoid diagnosis.
- Use clear clinical phrasing.
- Do not add new information.

Message: {text}"""
)

SUMMARY_PROMPT = PromptTemplate.from_template(
    """You are a medical summarization assistant. Summarize the conversation in a concise, structured format.

Requirements:
- Keep it under 200 words.
- Use plain language for the summary.
- Highlight: symptoms, diagnoses (if mentioned), medications, and follow-up actions.
- Do not add new information or advice.

Conversation:
{transcript}"""
)


def build_rewrite_prompt(sender_role: str, text: str) -> str:
    """
    Build the rewrite instruction for a message.

    Args:
        sender_role (str): "doctor" or "patient". Anything other than "doctor" is
            treated as a patient-authored message.
        text (str): The trimmed message text.

    Returns:
        str: The system instruction for the rewrite call.
    """
    template = DOCTOR_TO_PATIENT_PROMPT if sender_role == "doctor" else PATIENT_TO_DOCTOR_PROMPT
    return template.format(text=text)


def build_summary_prompt(transcript: str) -> str:
    return SUMMARY_PROMPT.format(transcript=transcript)


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content to plain text.

    - If string → return as-is.
    - If list of content parts → concatenates only 'text' parts.
    - Else → str(content).
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            p.get("text", "") if isinstance(p, dict) else str(p)
            for p in content
            if isinstance(p, str) or (isinstance(p, dict) and p.get("type") == "text")
        )
    return str(content)


class RewriteStatus(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSPORT_ERROR = "transport_error"


class RewriteResult(BaseModel):
    """Outcome of one rewrite or summarize call."""
    status: RewriteStatus
    text: str = ""
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RewriteStatus.SUCCESS

    @classmethod
    def success(cls, text: str) -> "RewriteResult":
        return cls(status=RewriteStatus.SUCCESS, text=text)

    @classmethod
    def failure(cls, status: RewriteStatus, detail: str) -> "RewriteResult":
        return cls(status=status, detail=detail)


class Rewriter(ABC):
    """Capability interface for the role-aware rewrite and summary calls."""

    @abstractmethod
    def rewrite_for_audience(self, sender_role: str, text: str) -> RewriteResult:
        ...

    @abstractmethod
    def summarize(self, transcript: str) -> RewriteResult:
        ...


class LLMRewriter(Rewriter):
    """
    `Rewriter` backed by an OpenAI chat model through LangChain.

    Exceptions raised by the OpenAI client are mapped to a `RewriteStatus`:
        - openai.APITimeoutError      → TIMEOUT
        - openai.RateLimitError       → QUOTA_EXCEEDED
        - any other openai.OpenAIError → TRANSPORT_ERROR
    Anything else is a programming error and propagates.
    """

    def __init__(self, settings: Settings, model: Optional[ChatOpenAI] = None):
        self.model = model or ChatOpenAI(
            model=settings.OPEN_AI_MODEL,
            api_key=settings.API_KEY,
            temperature=settings.LLM_TEMPERATURE,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )

    def rewrite_for_audience(self, sender_role: str, text: str) -> RewriteResult:
        return self._complete(build_rewrite_prompt(sender_role, text), text)

    def summarize(self, transcript: str) -> RewriteResult:
        return self._complete(SUMMARY_SYSTEM_INSTRUCTION, build_summary_prompt(transcript))

    def _complete(self, system_prompt: str, message: str) -> RewriteResult:
        try:
            response = self.model.invoke([SystemMessage(content=system_prompt), HumanMessage(content=message)])
        except openai.APITimeoutError as e:
            logger.warning("LLM call timed out")
            return RewriteResult.failure(RewriteStatus.TIMEOUT, str(e))
        except openai.RateLimitError as e:
            logger.warning("LLM quota exceeded")
            return RewriteResult.failure(RewriteStatus.QUOTA_EXCEEDED, str(e))
        except openai.OpenAIError as e:
            logger.warning("LLM transport error: %s", type(e).__name__)
            return RewriteResult.failure(RewriteStatus.TRANSPORT_ERROR, str(e))

        return RewriteResult.success(lc_text_from_content(response.content).strip())
