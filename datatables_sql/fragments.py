# datatables_sql/fragments.py
from typing import Iterable, Optional

from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import DefaultDialect

from .enum import PagingStyle
from .exceptions import ConfigurationError, InvalidColumnError

_LIMIT_OFFSET_DIALECTS = {"sqlite", "mysql", "mariadb"}
_CONCAT_FUNCTION_DIALECTS = {"mysql", "mariadb"}
_CONCAT_PLUS_DIALECTS = {"mssql"}
_ILIKE_DIALECTS = {"postgresql"}

# LIMIT needs a row count even when the page is unbounded
_UNBOUNDED_LIMIT = {
    "sqlite": "-1",
    "mysql": "18446744073709551615",
    "mariadb": "18446744073709551615",
}


class SqlFragments:
    def __init__(
        self,
        dialect: Optional[Dialect] = None,
        allowed_columns: Optional[Iterable[str]] = None,
        search_parameter: str = "search_value",
    ):
        self.dialect = dialect if dialect is not None else DefaultDialect()
        self.allowed_columns = frozenset(allowed_columns) if allowed_columns is not None else None
        self.search_parameter = self.parameter(search_parameter)

    @property
    def paging_style(self) -> PagingStyle:
        if self.dialect.name in _LIMIT_OFFSET_DIALECTS:
            return PagingStyle.LIMIT_OFFSET
        return PagingStyle.OFFSET_FETCH

    def parameter(self, name: str) -> str:
        if not name or not name.isidentifier():
            raise ConfigurationError(f"Invalid bind parameter name: {name!r}")
        return name

    def identifier(self, name: str) -> str:
        """Quote a (possibly dotted) column name for use in query text."""
        if name is None or not name.strip():
            raise InvalidColumnError("Column name is blank")
        if self.allowed_columns is not None and name not in self.allowed_columns:
            raise InvalidColumnError(f"Column is not declared: {name}")

        parts = name.split(".")
        if any(not part.strip() for part in parts):
            raise InvalidColumnError(f"Invalid column path: {name}")
        preparer = self.dialect.identifier_preparer
        return ".".join(preparer.quote(part) for part in parts)

    def wildcard(self, parameter: str) -> str:
        """``'%' + :parameter + '%'`` in the dialect's concatenation syntax."""
        bind = f":{self.parameter(parameter)}"
        name = self.dialect.name
        if name in _CONCAT_FUNCTION_DIALECTS:
            return f"CONCAT('%', {bind}, '%')"
        if name in _CONCAT_PLUS_DIALECTS:
            return f"'%' + {bind} + '%'"
        return f"'%' || {bind} || '%'"

    def contains(self, identifier: str, parameter: str) -> str:
        operator = "ILIKE" if self.dialect.name in _ILIKE_DIALECTS else "LIKE"
        return f"{identifier} {operator} {self.wildcard(parameter)}"

    def paging(self, start: int, length: int) -> str:
        offset = max(0, int(start))
        fetch = max(0, int(length))

        if self.paging_style is PagingStyle.LIMIT_OFFSET:
            limit = str(fetch) if fetch > 0 else _UNBOUNDED_LIMIT[self.dialect.name]
            return f"LIMIT {limit} OFFSET {offset}"

        clause = f"OFFSET {offset} ROWS"
        if fetch > 0:
            clause += f" FETCH NEXT {fetch} ROWS ONLY"
        return clause

    def count(self, query: str) -> str:
        return f"SELECT COUNT(*) FROM ( {query} ) count_derived"
