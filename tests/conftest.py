"""
Pytest configuration and fixtures.
Every test gets its own SQLite file under tmp_path.
"""

from __future__ import annotations

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.db.models import Document
from app.db.session import init_db
from app.runtime.dispatcher import Dispatcher, DispatchPolicy
from tests.fakes import StaticDraftGenerator


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def generator() -> StaticDraftGenerator:
    return StaticDraftGenerator()


@pytest.fixture
def manual_dispatcher(generator) -> Dispatcher:
    return Dispatcher(policy=DispatchPolicy.MANUAL, generator=generator)


@pytest.fixture
def make_document(session):
    async def _make(
        *,
        tenant_id: Optional[str] = None,
        title: str = "Backup concept",
        content: str = "<p>Owner: ops team. Reviewed quarterly.</p>",
    ) -> Document:
        doc = Document(tenant_id=tenant_id, title=title, content=content)
        session.add(doc)
        await session.commit()
        await session.refresh(doc)
        return doc

    return _make
