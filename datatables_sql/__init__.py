# datatables_sql/__init__.py
from loguru import logger

from .binder import ParameterBag, bind_request, flatten_params
from .config import Settings, get_settings
from .context import QueryContext
from .core import DataTables
from .database import DatabaseBackend, SQLAlchemyBackend
from .enum import PagingStyle, Stage
from .exceptions import ConfigurationError, DataTablesError, InvalidColumnError, MissingParameterError
from .fragments import SqlFragments
from .log_manager import configure_logging, get_logger
from .schema import (
    ColumnInfo,
    DataTablesRequest,
    DataTablesResponse,
    ErrorRecord,
    SearchInfo,
    SortInfo,
)
from .utils import order_by, skip_take, translate, where

# silent until the application calls configure_logging
logger.disable("datatables_sql")

__version__ = "0.2.0"

__all__ = [
    "DataTables",
    "DatabaseBackend",
    "SQLAlchemyBackend",
    "DataTablesRequest",
    "DataTablesResponse",
    "ColumnInfo",
    "SearchInfo",
    "SortInfo",
    "ErrorRecord",
    "ParameterBag",
    "bind_request",
    "flatten_params",
    "QueryContext",
    "SqlFragments",
    "where",
    "order_by",
    "skip_take",
    "translate",
    "Stage",
    "PagingStyle",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "DataTablesError",
    "MissingParameterError",
    "InvalidColumnError",
    "ConfigurationError",
]
