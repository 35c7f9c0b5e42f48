"""Mentor discussion about a passage.

Each passage has at most one thread: an ordered list of
``{role, content, timestamp}`` turns. A user/assistant turn pair is appended
only after the assistant has answered, so a failed or timed out call leaves
the stored thread untouched.
"""
from dataclasses import dataclass
from typing import Protocol

from openai import APITimeoutError, AsyncOpenAI, OpenAIError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import settings
from core.database import commit, utcnow
from core.errors import (
    AppError,
    AppErrorException,
    Err,
    Ok,
    Result,
    external_service_error,
    external_service_unavailable,
    not_found,
    timeout_error,
)
from core.logging import engine_logger
from models import CurriculumDiscussion, CurriculumPassage

log = engine_logger()

SYSTEM_PROMPT = """You are a wise Stoic philosophy teacher helping a student understand an ancient text.

The student is reading: {reference}
From: "{title}" by {author}

The passage reads:
"{content}"

{concepts}

Your role:
1. Help explain difficult concepts in accessible language
2. Draw connections to the student's modern life
3. Reference other Stoic teachings when relevant
4. Encourage practical application
5. Ask thoughtful follow-up questions to deepen understanding

Be warm and encouraging. Keep responses concise (2-3 paragraphs).
Avoid being preachy. Meet the student where they are."""


class ExternalServiceError(AppErrorException):
    """The assistant provider failed, timed out or is not configured."""


class Mentor(Protocol):
    async def reply(self, system_prompt: str, messages: list[dict]) -> str: ...


@dataclass(slots=True)
class Turn:
    role: str
    content: str
    timestamp: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


class MentorClient:
    """OpenAI chat completions with a caller-visible timeout."""

    __slots__ = ("_client", "_model", "_max_tokens", "_timeout")

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ):
        api_key = api_key or settings.OPENAI_API_KEY
        self._timeout = timeout or settings.CHAT_TIMEOUT_SECONDS
        self._client = AsyncOpenAI(api_key=api_key, timeout=self._timeout, max_retries=0) if api_key else None
        self._model = model or settings.OPENAI_MODEL
        self._max_tokens = max_tokens or settings.CHAT_MAX_TOKENS
        log.debug("mentor_client_initialized", model=self._model, has_key=bool(api_key))

    @property
    def available(self) -> bool:
        return self._client is not None

    async def reply(self, system_prompt: str, messages: list[dict]) -> str:
        if self._client is None:
            raise ExternalServiceError(
                external_service_unavailable("openai", "OPENAI_API_KEY not set", origin="engine.discussion").error
            )

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "system", "content": system_prompt}, *messages],
                max_tokens=self._max_tokens,
                temperature=0.7,
            )
        except APITimeoutError as e:
            log.error("mentor_timeout", timeout=self._timeout)
            raise ExternalServiceError(
                timeout_error("openai.chat.completions", self._timeout, origin="engine.discussion").error
            ) from e
        except OpenAIError as e:
            log.error("mentor_api_error", error=str(e))
            raise ExternalServiceError(
                external_service_error("openai", str(e), origin="engine.discussion", cause=e).error
            ) from e

        log.debug("mentor_response_generated", tokens=response.usage.total_tokens if response.usage else 0)
        return response.choices[0].message.content or ""


def build_system_prompt(passage: CurriculumPassage) -> str:
    text = passage.text
    guide = passage.study_guide
    concepts = ""
    if guide is not None and guide.stoic_concepts:
        concepts = f"Key Stoic concepts in this passage: {', '.join(guide.stoic_concepts)}"
    return SYSTEM_PROMPT.format(
        reference=passage.reference or "a passage",
        title=text.title if text else "Unknown",
        author=text.author if text else "Unknown",
        content=passage.content,
        concepts=concepts,
    )


class DiscussionService:
    __slots__ = ("session", "client")

    def __init__(self, session: AsyncSession, client: Mentor):
        self.session = session
        self.client = client

    async def _thread(self, passage_id: str) -> CurriculumDiscussion | None:
        result = await self.session.execute(
            select(CurriculumDiscussion).where(CurriculumDiscussion.passage_id == passage_id)
        )
        return result.scalar_one_or_none()

    async def send(self, passage_id: str, message: str) -> Result[str, AppError]:
        result = await self.session.execute(
            select(CurriculumPassage)
            .options(
                selectinload(CurriculumPassage.text),
                selectinload(CurriculumPassage.study_guide),
            )
            .where(CurriculumPassage.id == passage_id)
        )
        passage = result.scalar_one_or_none()
        if passage is None:
            return not_found("Passage", passage_id, origin="engine.discussion")

        thread = await self._thread(passage_id)
        history = list(thread.messages or []) if thread else []
        api_messages = [{"role": m["role"], "content": m["content"]} for m in history]
        api_messages.append({"role": "user", "content": message})

        try:
            answer = await self.client.reply(build_system_prompt(passage), api_messages)
        except ExternalServiceError as e:
            log.warning("discussion_failed", passage_id=passage_id, code=e.error.code.name)
            return Err(e.error)

        stamp = utcnow().isoformat()
        turns = [
            Turn("user", message, stamp).to_dict(),
            Turn("assistant", answer, stamp).to_dict(),
        ]
        if thread is None:
            self.session.add(CurriculumDiscussion(passage_id=passage_id, messages=turns))
        else:
            # Reassign so the JSON column registers the change
            thread.messages = history + turns
            thread.updated_at = utcnow()

        match await commit(self.session):
            case Err(e):
                return Err(e)

        log.info("discussion_turn_saved", passage_id=passage_id, turns=len(history) + 2)
        return Ok(answer)

    async def history(self, passage_id: str) -> list[dict]:
        thread = await self._thread(passage_id)
        return list(thread.messages or []) if thread else []

    async def clear(self, passage_id: str) -> Result[None, AppError]:
        await self.session.execute(
            delete(CurriculumDiscussion).where(CurriculumDiscussion.passage_id == passage_id)
        )
        return await commit(self.session)
