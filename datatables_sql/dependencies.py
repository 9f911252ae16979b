from fastapi import Depends, HTTPException, Request

from .binder import ParameterBag, bind_request, flatten_params
from .config import Settings, get_settings
from .exceptions import MissingParameterError
from .log_manager import get_logger
from .schema import DataTablesRequest

logger = get_logger(__name__)


async def read_parameters(request: Request) -> ParameterBag:
    """Collect DataTables parameters from the query string and the body."""
    items = list(request.query_params.multi_items())
    if request.method in ("POST", "PUT"):
        content_type = request.headers.get("content-type", "").lower()
        if content_type.startswith("application/json"):
            try:
                body = await request.json()
            except ValueError as exc:
                logger.info("Rejected DataTables request: unreadable JSON body: {}", exc)
                raise HTTPException(status_code=400, detail="Malformed JSON body.")
            items = flatten_params(body) + items
        elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            items = list(form.multi_items()) + items
    return ParameterBag(items)


async def datatables_request(
    request: Request, settings: Settings = Depends(get_settings)
) -> DataTablesRequest:
    """FastAPI dependency binding the incoming DataTables request."""
    params = await read_parameters(request)
    try:
        return bind_request(
            params,
            default_length=settings.default_length,
            max_length=settings.max_length,
        )
    except MissingParameterError as exc:
        logger.info("Rejected DataTables request: {}", exc)
        raise HTTPException(status_code=400, detail=str(exc))
