"""Server listing endpoints.

Thin FastAPI adapter: query parameters become an exact-match predicate over
server fields, the registry does the matching.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from twstats.core.errors import FilterError
from twstats.core.filters import SERVER_FIELDS, build_predicate

router = APIRouter()


def filter_error_response(exc: FilterError) -> JSONResponse:
    return JSONResponse(
        content={"error": "invalid_filter", "field": exc.field, "detail": exc.detail},
        status_code=400,
    )


@router.get("/")
async def get_servers(request: Request) -> JSONResponse:
    """Matching servers keyed by address.

    Any query parameter filters on the server field of the same name.
    ``detail=true`` includes each server's client list.
    """
    from twstats.main import get_registry

    try:
        predicate, options = build_predicate(request.query_params.multi_items(), SERVER_FIELDS)
    except FilterError as exc:
        return filter_error_response(exc)

    servers = get_registry().find_server(predicate, include_clients=options.get("detail", False))
    return JSONResponse(content={"num_servers": len(servers), "servers": servers})


@router.get("/list")
async def list_servers(request: Request) -> JSONResponse:
    """Same as ``/`` but returns the servers as an array."""
    from twstats.main import get_registry

    try:
        predicate, options = build_predicate(request.query_params.multi_items(), SERVER_FIELDS)
    except FilterError as exc:
        return filter_error_response(exc)

    servers = get_registry().find_server(predicate, include_clients=options.get("detail", False))
    return JSONResponse(content={"servers": list(servers.values())})
