from dataclasses import dataclass, field, replace
from typing import Any, Dict

from .fragments import SqlFragments
from .schema import DataTablesRequest


@dataclass(frozen=True)
class QueryContext:
    """
    A query under construction together with the request it is built from.

    The SQL takes the form ``BASE-QUERY WHERE-CLAUSE ORDER-BY PAGING`` and is
    grown one fragment at a time. Contexts are values: ``extend`` and ``count``
    return new contexts, so the count queries derived from one stage are not
    disturbed by fragments appended for the data query.
    """

    query: str
    request: DataTablesRequest
    fragments: SqlFragments
    params: Dict[str, Any] = field(default_factory=dict)

    def extend(self, clause: str, **params: Any) -> "QueryContext":
        return replace(self, query=f"{self.query} {clause}", params={**self.params, **params})

    def count(self) -> "QueryContext":
        return replace(self, query=self.fragments.count(self.query))
