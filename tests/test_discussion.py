import pytest

from core.errors import ErrorCode, external_service_error, timeout_error
from engines.discussion import DiscussionService, ExternalServiceError, build_system_prompt


class FakeMentor:
    def __init__(self, answer="Consider what is in your control.", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    async def reply(self, system_prompt, messages):
        self.calls.append((system_prompt, messages))
        if self.error is not None:
            raise ExternalServiceError(self.error)
        return self.answer


async def test_successful_turn_appends_pair(session, three_chapters):
    mentor = FakeMentor()
    service = DiscussionService(session, mentor)

    assert (await service.send("passage-001", "What is within our power?")).unwrap() == mentor.answer
    await service.send("passage-001", "And beyond it?")

    history = await service.history("passage-001")
    assert [m["role"] for m in history] == ["user", "assistant", "user", "assistant"]
    assert history[2]["content"] == "And beyond it?"
    # Earlier turns are replayed to the mentor
    assert [m["content"] for m in mentor.calls[1][1]] == [
        "What is within our power?", mentor.answer, "And beyond it?",
    ]
    assert "Chapter I" in mentor.calls[0][0]


@pytest.mark.parametrize("error", [
    timeout_error("openai.chat.completions", 30).error,
    external_service_error("openai", "boom").error,
])
async def test_failed_turn_persists_nothing(session, three_chapters, error):
    service = DiscussionService(session, FakeMentor(error=error))

    result = await service.send("passage-001", "Hello?")

    assert result.is_err()
    assert result.error.code is error.code
    assert await service.history("passage-001") == []


async def test_unknown_passage(session, three_chapters):
    mentor = FakeMentor()
    result = await DiscussionService(session, mentor).send("passage-999", "Hi")
    assert result.error.code is ErrorCode.E4010_NOT_FOUND
    assert mentor.calls == []


async def test_clear(session, three_chapters):
    service = DiscussionService(session, FakeMentor())
    await service.send("passage-002", "Hi")

    assert (await service.clear("passage-002")).is_ok()
    assert await service.history("passage-002") == []


def test_system_prompt_includes_passage():
    class Text:
        title = "Enchiridion"
        author = "Epictetus"

    class Guide:
        stoic_concepts = ["dichotomy of control"]

    class Passage:
        reference = "Chapter I"
        content = "There are things which are within our power."
        text = Text()
        study_guide = Guide()

    prompt = build_system_prompt(Passage())
    assert '"Enchiridion" by Epictetus' in prompt
    assert "dichotomy of control" in prompt
