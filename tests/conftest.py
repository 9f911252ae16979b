import pytest
import pytest_asyncio
from sqlalchemy import Column, Integer, String, insert
from sqlalchemy.dialects import sqlite
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from datatables_sql import ColumnInfo, DataTablesRequest, SearchInfo, SortInfo, SqlFragments

Base = declarative_base()


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    city = Column(String, nullable=False)
    age = Column(Integer, nullable=False)


# 3 of the 100 rows contain "ann" (case-insensitively)
MATCHING_NAMES = ["Joanne Carter", "anna smith", "Hannah Lee"]


def people_rows():
    rows = [
        {"id": i, "name": f"Person {i:03d}", "city": "Berlin" if i % 2 else "Oslo", "age": 20 + i % 30}
        for i in range(1, 98)
    ]
    rows += [
        {"id": 98 + offset, "name": name, "city": "Lisbon", "age": 40 + offset}
        for offset, name in enumerate(MATCHING_NAMES)
    ]
    return rows


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    # NullPool: every session gets its own connection
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'people.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(insert(Person.__table__), people_rows())

    yield engine

    await engine.dispose()


@pytest.fixture
def person_model():
    return Person


@pytest.fixture
def fragments():
    return SqlFragments(sqlite.dialect())


def make_request(search="", order=None, start=0, length=10, draw=1, columns=None):
    if columns is None:
        columns = [
            ColumnInfo(data="name", name="name", searchable=True, orderable=True),
            ColumnInfo(data="city", name="city", searchable=True, orderable=True),
            ColumnInfo(data="age", name="age", searchable=False, orderable=True),
        ]
    return DataTablesRequest(
        draw=draw,
        start=start,
        length=length,
        search=SearchInfo(value=search),
        order=[SortInfo(column=column, descending=descending) for column, descending in (order or [])],
        columns=columns,
    )


@pytest.fixture
def request_factory():
    return make_request
