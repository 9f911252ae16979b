import asyncio
from typing import Iterable, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from .database import DatabaseBackend, SQLAlchemyBackend, is_mapped
from .enum import Stage
from .exceptions import ConfigurationError
from .fragments import SqlFragments
from .log_manager import get_logger
from .schema import DataTablesRequest, DataTablesResponse
from .utils import translate

logger = get_logger(__name__)


class DataTables:
    def __init__(
        self,
        engine: Optional[AsyncEngine] = None,
        model: Optional[Type] = None,
        base_query: Optional[str] = None,
        db_backend: Optional[DatabaseBackend] = None,
        allowed_columns: Optional[Iterable[str]] = None,
        column_search: bool = False,
        concurrent: bool = True,
    ):
        """
        Initializes the DataTables processor.

        Args:
            engine: AsyncEngine the queries run against (ignored when
                db_backend is given).
            model: record type for the data rows: a SQLAlchemy mapped class,
                a pydantic model, any callable taking the row columns as
                keyword arguments, or None for plain dicts.
            base_query: complete SQL query selecting every candidate row,
                without WHERE, ORDER BY or paging. Defaults to selecting the
                mapped model's table.
            allowed_columns: column names the client may search and sort on.
                None accepts any column name the client sends (still quoted).
            column_search: also apply the per-column search values.
            concurrent: run the three queries at the same time.
        """
        if db_backend is None:
            if engine is None:
                raise ConfigurationError("DataTables needs an engine or a db_backend")
            db_backend = SQLAlchemyBackend(engine)
        self.db_backend = db_backend
        self.model = model
        self.fragments = SqlFragments(db_backend.dialect, allowed_columns)
        self.base_query = base_query if base_query is not None else self.get_query()
        self.column_search = column_search
        self.concurrent = concurrent

    def get_query(self) -> str:
        if not is_mapped(self.model):
            raise ConfigurationError("DataTables needs a base_query or a mapped model")
        stmt = select(self.model.__table__)
        return str(stmt.compile(dialect=self.fragments.dialect))

    async def process(self, request_data: DataTablesRequest) -> DataTablesResponse:
        """
        Processes the DataTables request and returns the response.

        Query failures never raise: each query falls back to 0 or [] and its
        diagnostic ends up in the response's ``error`` text.
        """
        total_query, filtered_query, data_query = translate(
            self.base_query, request_data, self.fragments, column_search=self.column_search
        )

        total = self.db_backend.count_records(total_query, Stage.TOTAL_COUNT)
        filtered = self.db_backend.count_records(filtered_query, Stage.FILTERED_COUNT)
        data = self.db_backend.execute_query(data_query, self.model)

        if self.concurrent:
            records_total, records_filtered, rows = await asyncio.gather(total, filtered, data)
        else:
            records_total = await total
            records_filtered = await filtered
            rows = await data

        if request_data.errors:
            logger.warning(
                "DataTables draw={} finished with {} error(s)", request_data.draw, len(request_data.errors)
            )

        return DataTablesResponse(
            draw=request_data.draw,
            recordsTotal=records_total,
            recordsFiltered=records_filtered,
            data=rows,
            error=request_data.error,
        )
