from functools import wraps
from typing import Callable, List, Tuple

from .context import QueryContext
from .enum import Stage
from .exceptions import InvalidColumnError
from .fragments import SqlFragments
from .log_manager import get_logger
from .schema import ColumnInfo, DataTablesRequest

logger = get_logger(__name__)


def translation_stage(stage: Stage) -> Callable:
    """
    Make a translation stage total.

    A failing stage records the error on the request and hands back the
    context it was given, so the rest of the pipeline still runs.
    """

    def decorator(func: Callable[..., QueryContext]) -> Callable[..., QueryContext]:
        @wraps(func)
        def wrapper(context: QueryContext, *args, **kwargs) -> QueryContext:
            try:
                return func(context, *args, **kwargs)
            except Exception as exc:
                logger.warning("{} stage failed: {}: {}", stage.value, type(exc).__name__, exc)
                context.request.add_error(stage, exc)
                return context

        return wrapper

    return decorator


def column_identifier(context: QueryContext, column: ColumnInfo) -> str:
    return context.fragments.identifier(column.identifier)


def global_filter(context: QueryContext) -> Tuple[List[str], dict]:
    search_value = context.request.search.value
    if not search_value or not search_value.strip():
        return [], {}

    fragments = context.fragments
    parameter = fragments.search_parameter
    conditions = [
        fragments.contains(column_identifier(context, col), parameter)
        for col in context.request.columns
        if col.searchable
    ]
    if not conditions:
        # nothing is searchable, so nothing can match
        return ["1=0"], {}
    return conditions, {parameter: search_value}


def column_filter(context: QueryContext) -> Tuple[List[str], dict]:
    conditions = []
    params = {}
    for index, col in enumerate(context.request.columns):
        if not col.searchable:
            continue
        value = col.search.value
        if not value or not value.strip():
            continue
        parameter = context.fragments.parameter(f"column_search_{index}")
        conditions.append(context.fragments.contains(column_identifier(context, col), parameter))
        params[parameter] = value
    return conditions, params


@translation_stage(Stage.WHERE)
def where(context: QueryContext, column_search: bool = False) -> QueryContext:
    search_conditions, params = global_filter(context)
    column_conditions = []
    if column_search:
        column_conditions, column_params = column_filter(context)
        params.update(column_params)

    groups = []
    if search_conditions:
        search = " OR ".join(search_conditions)
        if column_conditions and len(search_conditions) > 1:
            search = f"({search})"
        groups.append(search)
    groups.extend(column_conditions)

    if not groups:
        # keeps later fragments uniform whether or not a search applies
        return context.extend("WHERE 1=1")
    return context.extend("WHERE " + " AND ".join(groups), **params)


@translation_stage(Stage.ORDER_BY)
def order_by(context: QueryContext) -> QueryContext:
    request = context.request
    if not request.order:
        # OFFSET paging needs a deterministic order
        return context.extend("ORDER BY 1")

    terms = []
    for order in request.order:
        if not 0 <= order.column < len(request.columns):
            raise InvalidColumnError(f"Invalid column for ordering: {order.column}")
        col = request.columns[order.column]
        term = column_identifier(context, col)
        if order.descending:
            term += " DESC"
        terms.append(term)
    return context.extend("ORDER BY " + ", ".join(terms))


@translation_stage(Stage.SKIP_TAKE)
def skip_take(context: QueryContext) -> QueryContext:
    request = context.request
    return context.extend(context.fragments.paging(request.start, request.length))


def translate(
    base_query: str,
    request: DataTablesRequest,
    fragments: SqlFragments,
    column_search: bool = False,
) -> Tuple[QueryContext, QueryContext, QueryContext]:
    """
    Derive the total-count, filtered-count and data queries for a request.

    The stages always run Where -> OrderBy -> SkipTake; the counts wrap the
    untouched base query and the filtered query respectively.
    """
    context = QueryContext(base_query, request, fragments)
    filtered = where(context, column_search=column_search)
    data = skip_take(order_by(filtered))
    return context.count(), filtered.count(), data
