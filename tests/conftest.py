import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.database import Base, enable_sqlite_foreign_keys, get_db
from ingest.catalog import CatalogBuilder, PhaseSpec, SourceDocument, TextSpec
from ingest.pipeline import CatalogWriter
from ingest.segmenter import get_strategy

ENCHIRIDION = """\
The Project Gutenberg eBook
Contents
I
II

THE ENCHIRIDION

I

There are things which are within our power,
and there are things which are beyond our power.

II[1]

Remember that desire demands the attainment of that of which you are desirous.

III

With regard to whatever objects give you delight, remind yourself of what nature they are.

Footnotes

[1] A note.
IV
Not a chapter.
"""

MEDITATIONS = """\
Introduction and front matter.
I. This is not a passage yet.

THE FIRST BOOK

I. Of my grandfather Verus I have learned to be gentle and meek.

II. Of him that brought me up, not to be fondly addicted.
More of the second passage.

THE SECOND BOOK

I. Begin the morning by saying to thyself,
I shall meet with the busy-body.

APPENDIX

I. Not a passage.
"""


def letter_pages() -> list[str]:
    return [
        "<html><body><p>Page 1</p><p>Contents</p></body></html>",
        "<html><body><p>Page 2 LETTERS</p></body></html>",
        "<html><body><p>Page 3 LETTER II</p><p>Second letter opening text here.</p><p>4</p></body></html>",
        "<html><body><p>Page 4 LETTER I</p><p>Continue to act thus, my dear Lucilius &amp; friend.</p></body></html>",
        "<html><body><p>Page 5 12</p></body></html>",
        "<html><body><p>Page 6 LETTER II</p><p>More of the second letter, continued on a later page.</p></body></html>",
        "<html><body><p>Page 7 NOTES</p><p>LETTER III is mentioned here.</p></body></html>",
    ]


def chapters(n: int) -> str:
    """A minimal Enchiridion-format document with ``n`` chapters."""
    from ingest.numerals import from_arabic

    body = "\n\n".join(f"{from_arabic(i)}\n\nText of chapter {i}." for i in range(1, n + 1))
    return f"Front matter\n\nTHE ENCHIRIDION\n\n{body}\n\nFootnotes\n"


PHASES = [
    PhaseSpec(id="phase-001", name="foundation", title="Phase 1: Foundation", order_index=1),
    PhaseSpec(id="phase-002", name="meditations", title="Phase 2: Meditations", order_index=2),
]


def text_spec(text_id: str = "text-001", phase_id: str = "phase-001", order_index: int = 1, **kw) -> TextSpec:
    return TextSpec(
        id=text_id,
        phase_id=phase_id,
        title=kw.pop("title", "Enchiridion"),
        author=kw.pop("author", "Epictetus"),
        order_index=order_index,
        translation=kw.pop("translation", "Higginson"),
        **kw,
    )


def document(spec: TextSpec, content, strategy: str = "enchiridion", **kw) -> SourceDocument:
    return SourceDocument(text=spec, content=content, strategy=get_strategy(strategy), **kw)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


async def write_catalog(session_factory, documents: dict, phases=PHASES, start_sequence: int = 1):
    catalog = CatalogBuilder(phases, start_sequence=start_sequence).build(documents)
    async with session_factory() as session:
        result = await CatalogWriter().write(session, catalog)
    return catalog, result.unwrap()


@pytest.fixture
async def three_chapters(session_factory):
    """A single text with Chapter I..III stored as passage-001..003."""
    catalog, _ = await write_catalog(session_factory, {"text-001": document(text_spec(), chapters(3))})
    return catalog


@pytest.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
