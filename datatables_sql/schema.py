# datatables_sql/schema.py
import json
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .enum import Stage

T = TypeVar("T")


class SearchInfo(BaseModel):
    value: str = ""
    regex: bool = False  # accepted, matching is always plain substring


class ColumnInfo(BaseModel):
    data: str
    name: str = ""
    searchable: bool = False
    orderable: bool = False
    search: SearchInfo = Field(default_factory=SearchInfo)

    @property
    def identifier(self) -> str:
        """Name used for SQL, falling back to the data key."""
        name = self.name.strip() if self.name else ""
        return name or self.data


class SortInfo(BaseModel):
    column: int
    descending: bool = False


class ErrorRecord(BaseModel):
    stage: Stage
    kind: str
    message: str
    query: Optional[str] = None
    params: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        text = f"{self.kind}: {self.message}"
        if self.query is not None:
            params = json.dumps(self.params or {}, default=str)
            text += f"\nSqlQuery: {self.query} using: {params}"
        return text


class DataTablesRequest(BaseModel):
    """
    One DataTables server-side processing request.

    The model is frozen once bound; only ``errors`` grows, as each stage of the
    pipeline appends whatever it failed on instead of raising.
    """

    model_config = ConfigDict(frozen=True)

    draw: int
    start: int = 0
    length: int = 0
    search: SearchInfo = Field(default_factory=SearchInfo)
    order: List[SortInfo] = Field(default_factory=list)
    columns: List[ColumnInfo] = Field(default_factory=list)
    errors: List[ErrorRecord] = Field(default_factory=list)

    @property
    def error(self) -> str:
        return "\n".join(str(record) for record in self.errors)

    def add_error(
        self,
        stage: Stage,
        exc: BaseException,
        query: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ErrorRecord:
        record = ErrorRecord(
            stage=stage,
            kind=type(exc).__name__,
            message=str(exc).rstrip("."),
            query=query,
            params=dict(params) if params is not None else None,
        )
        self.errors.append(record)
        return record


class DataTablesResponse(BaseModel, Generic[T]):
    draw: int
    recordsTotal: int
    recordsFiltered: int
    data: Optional[T]
    error: str = ""
