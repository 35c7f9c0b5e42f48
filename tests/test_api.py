import pytest

from api.discussion import get_mentor
from core.errors import external_service_error, timeout_error
from engines.discussion import ExternalServiceError

BASE = "/api/curriculum"


class StubMentor:
    def __init__(self, error=None):
        self.error = error

    async def reply(self, system_prompt, messages):
        if self.error is not None:
            raise ExternalServiceError(self.error)
        return f"Reflect on: {messages[-1]['content']}"


@pytest.fixture
def mentor(client):
    from main import app

    stub = StubMentor()
    app.dependency_overrides[get_mentor] = lambda: stub
    return stub


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestTodayFlow:
    async def test_reading_advances_after_completion(self, client, three_chapters):
        today = (await client.get(f"{BASE}/today")).json()
        assert today["currentReading"]["passage"]["reference"] == "Chapter I"
        assert today["currentReading"]["text"]["title"] == "Enchiridion"
        assert today["dayNumber"] == 1
        assert today["totalPassages"] == 3
        assert today["totalCompleted"] == 0

        created = await client.post(f"{BASE}/progress/passage-001", json={"status": "completed"})
        repeated = await client.post(f"{BASE}/progress/passage-001", json={"status": "completed"})
        assert created.status_code == 201
        assert repeated.status_code == 200
        assert created.json()["id"] == repeated.json()["id"]

        today = (await client.get(f"{BASE}/today")).json()
        assert today["currentReading"]["passage"]["reference"] == "Chapter II"
        assert today["dayNumber"] == 2
        assert today["totalCompleted"] == 1

    async def test_all_complete(self, client, three_chapters):
        for n in (1, 2, 3):
            await client.post(f"{BASE}/progress/passage-00{n}", json={"status": "completed"})

        today = (await client.get(f"{BASE}/today")).json()
        assert today["currentReading"] is None
        assert today["message"]
        assert today["totalCompleted"] == 3

    async def test_empty_catalog(self, client):
        today = (await client.get(f"{BASE}/today")).json()
        assert today["currentReading"] is None
        assert today["totalPassages"] == 0


class TestProgress:
    async def test_unknown_passage(self, client, three_chapters):
        response = await client.post(f"{BASE}/progress/passage-999", json={"status": "completed"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E4010_NOT_FOUND"

    @pytest.mark.parametrize("body", [{"status": "not_started"}, {"status": "done"}, {}])
    async def test_invalid_status(self, client, three_chapters, body):
        response = await client.post(f"{BASE}/progress/passage-001", json=body)
        assert response.status_code == 400

    async def test_list(self, client, three_chapters):
        await client.post(f"{BASE}/progress/passage-002", json={"status": "in_progress", "timeSpentMinutes": 5})

        records = (await client.get(f"{BASE}/progress")).json()
        assert [(r["passageId"], r["status"], r["timeSpentMinutes"]) for r in records] == [
            ("passage-002", "in_progress", 5),
        ]


class TestCatalog:
    async def test_phases(self, client, three_chapters):
        phases = (await client.get(f"{BASE}/phases")).json()
        assert [p["id"] for p in phases] == ["phase-001", "phase-002"]
        assert phases[0]["texts"][0]["totalPassages"] == 3
        assert phases[1]["texts"] == []

    async def test_text_passages_flags_completion(self, client, three_chapters):
        await client.post(f"{BASE}/progress/passage-002", json={"status": "completed"})

        passages = (await client.get(f"{BASE}/texts/text-001/passages")).json()
        assert [(p["id"], p["completed"]) for p in passages] == [
            ("passage-001", False), ("passage-002", True), ("passage-003", False),
        ]

    async def test_unknown_text(self, client, three_chapters):
        assert (await client.get(f"{BASE}/texts/text-404/passages")).status_code == 404

    async def test_passage_detail_with_navigation(self, client, three_chapters):
        detail = (await client.get(f"{BASE}/passages/passage-002")).json()

        assert detail["passage"]["content"] == "Text of chapter 2."
        assert detail["phase"]["id"] == "phase-001"
        assert detail["progress"] is None
        assert detail["navigation"]["prev"]["id"] == "passage-001"
        assert detail["navigation"]["next"]["reference"] == "Chapter III"
        assert detail["navigation"]["position"] == 2

    async def test_neighbors_at_edges(self, client, three_chapters):
        first = (await client.get(f"{BASE}/passages/passage-001/neighbors")).json()
        last = (await client.get(f"{BASE}/passages/passage-003/neighbors")).json()
        assert first["prev"] is None
        assert last["next"] is None
        assert last["total"] == 3

    async def test_unknown_passage(self, client, three_chapters):
        assert (await client.get(f"{BASE}/passages/passage-404")).status_code == 404
        assert (await client.get(f"{BASE}/passages/passage-404/neighbors")).status_code == 404

    async def test_overview(self, client, three_chapters):
        await client.post(f"{BASE}/progress/passage-001", json={"status": "completed"})

        overview = (await client.get(f"{BASE}/overview")).json()
        assert overview["progress"]["completedPassages"] == 1
        assert overview["progress"]["percentComplete"] == 33
        assert overview["progress"]["dayNumber"] == 2
        assert overview["currentPhase"]["id"] == "phase-001"
        assert [p["isUnlocked"] for p in overview["phases"]] == [True, False]
        assert overview["phases"][0]["passagesCompleted"] == 1


class TestSettings:
    async def test_defaults_then_save(self, client):
        defaults = (await client.get(f"{BASE}/settings")).json()
        assert defaults["frequency"] == "daily"
        assert defaults["isActive"] is False

        created = await client.post(f"{BASE}/settings", json={"frequency": "weekly", "preferredDays": [5, 1, 5]})
        updated = await client.post(f"{BASE}/settings", json={"frequency": "daily", "reminderTime": "07:30"})
        assert created.status_code == 201
        assert updated.status_code == 200

        saved = (await client.get(f"{BASE}/settings")).json()
        assert saved["frequency"] == "daily"
        assert saved["preferredDays"] == [1, 5]
        assert saved["reminderTime"] == "07:30"
        assert saved["startDate"] is not None

    @pytest.mark.parametrize("body", [
        {"frequency": "hourly"},
        {"frequency": "daily", "preferredDays": [7]},
        {"frequency": "daily", "reminderTime": "25:00"},
    ])
    async def test_invalid(self, client, body):
        assert (await client.post(f"{BASE}/settings", json=body)).status_code == 400


class TestJournal:
    async def test_upsert_and_read(self, client, three_chapters):
        created = await client.post(f"{BASE}/journal", json={"passageId": "passage-001", "reflection": "a"})
        updated = await client.post(f"{BASE}/journal", json={"passageId": "passage-001", "favoriteQuote": "b"})
        assert created.status_code == 201
        assert updated.status_code == 200

        entry = (await client.get(f"{BASE}/journal/passage-001")).json()
        assert entry["reflection"] == "a"
        assert entry["favoriteQuote"] == "b"

        listing = (await client.get(f"{BASE}/journal")).json()
        assert listing[0]["passage"]["reference"] == "Chapter I"

    async def test_put_by_id(self, client, three_chapters):
        created = (await client.post(
            f"{BASE}/journal",
            json={"passageId": "passage-002", "questionsAnswered": [{"question": "Q", "answer": "A"}]},
        )).json()

        response = await client.put(f"{BASE}/journal/{created['id']}", json={"moodAfter": 7})
        assert response.status_code == 200

        entry = (await client.get(f"{BASE}/journal/passage-002")).json()
        assert entry["moodAfter"] == 7
        assert entry["questionsAnswered"] == [{"question": "Q", "answer": "A"}]

    async def test_missing(self, client, three_chapters):
        assert (await client.get(f"{BASE}/journal/passage-003")).status_code == 404
        response = await client.post(f"{BASE}/journal", json={"passageId": "passage-999", "reflection": "x"})
        assert response.status_code == 404

    async def test_mood_out_of_range(self, client, three_chapters):
        response = await client.post(f"{BASE}/journal", json={"passageId": "passage-001", "moodBefore": 11})
        assert response.status_code == 400


class TestDiscussion:
    async def test_round_trip(self, client, three_chapters, mentor):
        response = await client.post(f"{BASE}/discuss", json={"passageId": "passage-001", "message": "Why?"})
        assert response.status_code == 200
        assert response.json()["response"] == "Reflect on: Why?"

        history = (await client.get(f"{BASE}/discuss/passage-001")).json()["messages"]
        assert [m["role"] for m in history] == ["user", "assistant"]

        assert (await client.delete(f"{BASE}/discuss/passage-001")).status_code == 200
        assert (await client.get(f"{BASE}/discuss/passage-001")).json()["messages"] == []

    @pytest.mark.parametrize("error,status", [
        (timeout_error("openai.chat.completions", 30).error, 503),
        (external_service_error("openai", "boom").error, 502),
    ])
    async def test_mentor_failure(self, client, three_chapters, mentor, error, status):
        mentor.error = error

        response = await client.post(f"{BASE}/discuss", json={"passageId": "passage-001", "message": "Why?"})

        assert response.status_code == status
        assert (await client.get(f"{BASE}/discuss/passage-001")).json()["messages"] == []

    async def test_empty_message(self, client, three_chapters, mentor):
        response = await client.post(f"{BASE}/discuss", json={"passageId": "passage-001", "message": ""})
        assert response.status_code == 400

    async def test_unknown_passage(self, client, three_chapters, mentor):
        response = await client.post(f"{BASE}/discuss", json={"passageId": "passage-404", "message": "Hi"})
        assert response.status_code == 404
