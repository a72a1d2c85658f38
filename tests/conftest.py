import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from exam_app.core.security import create_access_token
from exam_app.db.base import Base
from exam_app.db.session import get_session_factory
from exam_app.main import app
from exam_app.models.exam import Exam, Question
from exam_app.services.entry import start_attempt


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session_factory(tmp_path):
    # file database so separate sessions really are separate connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'exam_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def create_exam(db, questions=None, **fields) -> Exam:
    """Published open exam with q1 (single choice), q2 (multi select), q3 (paragraph) by default."""
    exam = Exam(
        title=fields.pop("title", "Biology midterm"),
        status=fields.pop("status", "published"),
        access_type=fields.pop("access_type", "open"),
        settings=fields.pop("settings", {"attempt_limit": 0}),
        **fields,
    )
    db.add(exam)
    await db.flush()
    if questions is None:
        questions = [
            dict(id="q1", question_type="single_choice", options=["A", "B", "C"], correct_answers=["B"], points=1),
            dict(id="q2", question_type="multi_select", options=["A", "B", "C"], correct_answers=["A", "C"], points=2),
            dict(id="q3", question_type="paragraph", points=3),
        ]
    for index, q in enumerate(questions):
        db.add(
            Question(
                exam_id=exam.id,
                question_text=q.pop("question_text", f"Question {index + 1}"),
                order_index=q.pop("order_index", index),
                **q,
            )
        )
    await db.commit()
    return exam


@pytest.fixture
async def exam(db):
    return await create_exam(db)


@pytest.fixture
async def attempt_id(db, exam):
    attempt_id, _seed = await start_attempt(db, exam.id, student_name="Mona", ip="10.0.0.7")
    return attempt_id


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token("admin-1", {"role": "admin", "email": "admin@example.com"})
    return {"Authorization": f"Bearer {token}"}
