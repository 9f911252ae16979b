# datatables_sql/database.py
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel
from sqlalchemy import inspect, select, text
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.orm import Mapper

from .context import QueryContext
from .enum import Stage
from .log_manager import get_logger

logger = get_logger(__name__)


def is_mapped(model: Optional[Type]) -> bool:
    return model is not None and isinstance(inspect(model, raiseerr=False), Mapper)


def to_record(row: Mapping[str, Any], model: Optional[Type] = None) -> Any:
    """Turn one result row into a record of ``model`` (a dict when no model)."""
    values: Dict[str, Any] = dict(row)
    if model is None:
        return values
    if isinstance(model, type) and issubclass(model, BaseModel):
        return model.model_validate(values)
    return model(**values)


class DatabaseBackend:
    """Runs prepared queries; failures become request errors, never exceptions."""

    dialect: Optional[Dialect] = None

    async def count_records(self, context: QueryContext, stage: Stage) -> int:
        """Run a COUNT query and return its scalar, 0 on failure"""
        raise NotImplementedError

    async def execute_query(self, context: QueryContext, model: Optional[Type] = None) -> List[Any]:
        """Run the data query and return its records, [] on failure"""
        raise NotImplementedError

    def record_failure(self, context: QueryContext, stage: Stage, exc: Exception) -> None:
        logger.opt(exception=exc).error(
            "{} query failed: {}\nSqlQuery: {}", stage.value, exc, context.query
        )
        context.request.add_error(stage, exc, query=context.query, params=context.params)


class SQLAlchemyBackend(DatabaseBackend):
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.dialect = engine.dialect
        self.session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def count_records(self, context: QueryContext, stage: Stage) -> int:
        try:
            # a fresh session per query, released on every exit path
            async with self.session_factory() as session:
                result = await session.execute(text(context.query), context.params)
                return int(result.scalar_one())
        except Exception as exc:
            self.record_failure(context, stage, exc)
            return 0

    async def execute_query(self, context: QueryContext, model: Optional[Type] = None) -> List[Any]:
        statement = text(context.query)
        try:
            async with self.session_factory() as session:
                if is_mapped(model):
                    result = await session.execute(
                        select(model).from_statement(statement), context.params
                    )
                    return list(result.scalars().all())
                result = await session.execute(statement, context.params)
                rows = [row._mapping for row in result]
            return [to_record(row, model) for row in rows]
        except Exception as exc:
            self.record_failure(context, Stage.DATA, exc)
            return []
