from uuid import uuid4

from core.errors import ErrorCode
from engines.journal import ReadingJournalStore
from engines.progress import ProgressTracker


async def test_partial_saves_accumulate(session, three_chapters):
    store = ReadingJournalStore(session)

    first, created = (await store.upsert("passage-001", {"reflection": "a"})).unwrap()
    second, created_again = (await store.upsert("passage-001", {"favorite_quote": "b"})).unwrap()

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert second.reflection == "a"
    assert second.favorite_quote == "b"
    assert second.updated_at is not None


async def test_links_existing_progress_on_create(session, three_chapters):
    progress = (await ProgressTracker(session).complete("passage-002")).unwrap()
    record, _ = (await ReadingJournalStore(session).upsert("passage-002", {"mood_before": 4})).unwrap()

    assert record.progress_id == progress.id


async def test_no_progress_link_without_progress(session, three_chapters):
    record, _ = (await ReadingJournalStore(session).upsert("passage-003", {"reflection": "x"})).unwrap()
    assert record.progress_id is None


async def test_unknown_passage(session, three_chapters):
    result = await ReadingJournalStore(session).upsert("passage-999", {"reflection": "x"})
    assert result.error.code is ErrorCode.E4010_NOT_FOUND


async def test_unknown_field_rejected(session, three_chapters):
    result = await ReadingJournalStore(session).upsert("passage-001", {"rating": 5})
    assert result.is_err()
    assert result.error.code.value // 1000 == 2


async def test_update_by_id(session, three_chapters):
    store = ReadingJournalStore(session)
    record, _ = (await store.upsert("passage-001", {"reflection": "draft"})).unwrap()

    updated = (await store.update(record.id, {"reflection": "final", "mood_after": 8})).unwrap()

    assert updated.reflection == "final"
    assert updated.mood_after == 8
    assert (await store.get("passage-001")).reflection == "final"


async def test_update_missing_entry(session, three_chapters):
    store = ReadingJournalStore(session)
    assert (await store.update(uuid4(), {"reflection": "x"})).error.code is ErrorCode.E4010_NOT_FOUND
    assert (await store.update("not-a-uuid", {"reflection": "x"})).is_err()


async def test_list_entries_pairs_passages(session, three_chapters):
    store = ReadingJournalStore(session)
    await store.upsert("passage-001", {"reflection": "one"})
    await store.upsert("passage-003", {"reflection": "three"})

    entries = await store.list_entries()
    assert {(j.passage_id, p.reference) for j, p in entries} == {
        ("passage-001", "Chapter I"),
        ("passage-003", "Chapter III"),
    }
    assert len(await store.list_entries(limit=1)) == 1
