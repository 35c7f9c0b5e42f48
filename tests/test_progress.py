from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from core.errors import Err, ErrorCode
from engines.progress import (
    ProgressStatus,
    ProgressTracker,
    compute_overview,
    next_unread,
    percent_complete,
)

from conftest import chapters, document, text_spec, write_catalog

FIXED_DAY = date(2026, 3, 1)
FIXED_NOW = datetime(2026, 3, 1, 7, 30)


def tracker(session):
    return ProgressTracker(session, today=lambda: FIXED_DAY, now=lambda: FIXED_NOW)


@pytest.fixture
async def five_chapters(session_factory):
    catalog, _ = await write_catalog(session_factory, {"text-001": document(text_spec(), chapters(5))})
    return catalog


class TestPureFunctions:
    @pytest.mark.parametrize("completed,total,expected", [
        (0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100), (1, 200, 1), (1, 201, 0),
    ])
    def test_percent_complete(self, completed, total, expected):
        assert percent_complete(completed, total) == expected

    def test_overview_day_number(self):
        overview = compute_overview(total=10, completed=4)
        assert overview.day_number == 5
        assert overview.percent_complete == 40

    def test_next_unread_skips_completed(self):
        ordered = [SimpleNamespace(id=f"passage-{i:03d}") for i in range(1, 6)]
        assert next_unread(ordered, {"passage-001", "passage-003"}).id == "passage-002"
        assert next_unread(ordered, {p.id for p in ordered}) is None


class TestProgressTracker:
    async def test_out_of_order_completion(self, session, five_chapters):
        t = tracker(session)
        assert (await t.complete("passage-001")).is_ok()
        assert (await t.complete("passage-003")).is_ok()

        assert (await t.next_unread()).id == "passage-002"
        overview = await t.overview()
        assert overview.completed_count == 2
        assert overview.day_number == 3
        assert overview.percent_complete == 40

    async def test_completion_records_dates(self, session, five_chapters):
        record = (await tracker(session).complete("passage-001", time_spent_minutes=12)).unwrap()

        assert record.status == ProgressStatus.COMPLETED.value
        assert record.actual_date == FIXED_DAY
        assert record.completed_at == FIXED_NOW
        assert record.started_at == FIXED_NOW
        assert record.time_spent_minutes == 12

    async def test_completion_is_idempotent(self, session, five_chapters):
        t = tracker(session)
        first, created = (await t.update("passage-001", "completed")).unwrap()
        second, created_again = (await t.update("passage-001", "completed")).unwrap()

        assert created is True
        assert created_again is False
        assert first.id == second.id
        assert (await t.overview()).completed_count == 1

    async def test_in_progress_never_regresses_completed(self, session, five_chapters):
        t = tracker(session)
        await t.complete("passage-002")
        record = (await t.begin("passage-002")).unwrap()

        assert record.status == "completed"
        assert "passage-002" in await t.completed_ids()

    async def test_begin_then_complete(self, session, five_chapters):
        t = tracker(session)
        started = (await t.begin("passage-001")).unwrap()
        assert started.status == "in_progress"
        assert started.completed_at is None

        finished = (await t.complete("passage-001")).unwrap()
        assert finished.id == started.id
        assert finished.status == "completed"

    async def test_unknown_passage(self, session, five_chapters):
        result = await tracker(session).complete("passage-999")
        assert isinstance(result, Err)
        assert result.error.code is ErrorCode.E4010_NOT_FOUND

    @pytest.mark.parametrize("status", ["not_started", "finished"])
    async def test_invalid_status(self, session, five_chapters, status):
        result = await tracker(session).update("passage-001", status)
        assert result.is_err()
        assert result.error.code.value // 1000 == 2

    async def test_empty_catalog(self, session):
        t = tracker(session)
        overview = await t.overview()

        assert await t.next_unread() is None
        assert overview.total_passages == 0
        assert overview.percent_complete == 0
        assert overview.day_number == 1

    async def test_list_records_most_recent_first(self, session, five_chapters):
        ticks = (FIXED_NOW + timedelta(minutes=n) for n in range(100))
        t = ProgressTracker(session, today=lambda: FIXED_DAY, now=lambda: next(ticks))
        await t.complete("passage-001")
        await t.complete("passage-002")

        records = await t.list_records()
        assert [r.passage_id for r in records] == ["passage-002", "passage-001"]
