from enum import Enum


class Stage(str, Enum):
    WHERE = "where"
    ORDER_BY = "order_by"
    SKIP_TAKE = "skip_take"
    TOTAL_COUNT = "total_count"
    FILTERED_COUNT = "filtered_count"
    DATA = "data"


class PagingStyle(str, Enum):
    OFFSET_FETCH = "offsetFetch"
    LIMIT_OFFSET = "limitOffset"
