# datatables_sql/binder.py
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .exceptions import MissingParameterError
from .log_manager import get_logger
from .schema import ColumnInfo, DataTablesRequest, SearchInfo, SortInfo

logger = get_logger(__name__)


class ParameterBag:
    """Case-insensitive, multi-valued view over flat request parameters."""

    def __init__(self, items: Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None] = None):
        self._values: Dict[str, List[str]] = {}
        if items is None:
            items = []
        elif hasattr(items, "multi_items"):  # starlette QueryParams / FormData
            items = items.multi_items()
        elif isinstance(items, Mapping):
            items = items.items()
        for key, value in items:
            if value is None:
                continue
            self._values.setdefault(str(key).lower(), []).append(str(value))

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        values = self._values.get(key.lower())
        return values[0] if values else default

    def getlist(self, key: str) -> List[str]:
        return list(self._values.get(key.lower(), []))


def parse_int(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return default


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    text = value.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return default


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def flatten_params(payload: Any, prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flatten a JSON DataTables payload into the bracketed form-field key space.

    ``{"columns": [{"data": "name"}]}`` becomes ``[("columns[0][data]", "name")]``.
    """
    pairs: List[Tuple[str, str]] = []
    if isinstance(payload, Mapping):
        children = payload.items()
    elif isinstance(payload, (list, tuple)):
        children = enumerate(payload)
    else:
        if payload is None:
            return pairs
        if isinstance(payload, bool):
            return [(prefix, "true" if payload else "false")]
        return [(prefix, str(payload))]

    for key, value in children:
        child = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(flatten_params(value, child))
    return pairs


def _bind_search(params: ParameterBag, prefix: str) -> SearchInfo:
    return SearchInfo(
        value=params.get(f"{prefix}[value]", "") or "",
        regex=parse_bool(params.get(f"{prefix}[regex]")),
    )


def _bind_columns(params: ParameterBag) -> List[ColumnInfo]:
    columns = []
    index = 0
    while True:
        key = f"columns[{index}]"
        data = params.get(f"{key}[data]")
        if _is_blank(data):
            break
        columns.append(
            ColumnInfo(
                data=data,
                name=params.get(f"{key}[name]", "") or "",
                orderable=parse_bool(params.get(f"{key}[orderable]")),
                searchable=parse_bool(params.get(f"{key}[searchable]")),
                search=_bind_search(params, f"{key}[search]"),
            )
        )
        index += 1
    return columns


def _bind_order(params: ParameterBag, columns: List[ColumnInfo]) -> List[SortInfo]:
    order = []
    index = 0
    while True:
        key = f"order[{index}]"
        column = parse_int(params.get(f"{key}[column]"))
        if column is None:
            break
        index += 1

        if not 0 <= column < len(columns) or not columns[column].orderable:
            # sorting on a hidden or unsortable column is ignored, not rejected
            logger.debug("Dropping sort directive {} on column {}", key, column)
            continue
        direction = (params.get(f"{key}[dir]", "") or "").strip().lower()
        order.append(SortInfo(column=column, descending=direction == "desc"))
    return order


def bind_request(
    params: Union[ParameterBag, Mapping[str, Any], Iterable[Tuple[str, Any]]],
    default_length: int = 0,
    max_length: int = 0,
) -> DataTablesRequest:
    """
    Build a DataTablesRequest from flat DataTables parameters.

    Args:
        params: the parameter source; keys are matched case-insensitively.
        default_length: page size used when ``length`` is absent or unreadable.
            ``0`` means every row from ``start`` on.
        max_length: when positive, caps the page size, including "no limit"
            requests.

    Raises:
        MissingParameterError: ``draw`` is absent or not an integer. Every
            other malformed field falls back to a default or is dropped.
    """
    if not isinstance(params, ParameterBag):
        params = ParameterBag(params)

    draw = parse_int(params.get("draw"))
    if draw is None:
        raise MissingParameterError("draw")

    start = parse_int(params.get("start"), 0)
    length = parse_int(params.get("length"), default_length)
    if max_length > 0 and (length <= 0 or length > max_length):
        length = max_length

    columns = _bind_columns(params)
    request = DataTablesRequest(
        draw=draw,
        start=start,
        length=length,
        search=_bind_search(params, "search"),
        order=_bind_order(params, columns),
        columns=columns,
    )
    logger.debug(
        "Bound DataTables request draw={} start={} length={} columns={} order={}",
        request.draw,
        request.start,
        request.length,
        len(request.columns),
        len(request.order),
    )
    return request
