"""Player search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from twstats.api.servers import filter_error_response
from twstats.core.errors import FilterError
from twstats.core.filters import PLAYER_FIELDS, build_predicate

router = APIRouter()


@router.get("/players")
async def get_players(request: Request) -> JSONResponse:
    """Players across all servers matching the query parameters.

    ``flag`` and ``score`` are integers, ``is_player`` is a boolean.
    With ``detail=true`` each player carries a ``server`` summary.
    """
    from twstats.main import get_registry

    try:
        predicate, options = build_predicate(request.query_params.multi_items(), PLAYER_FIELDS)
    except FilterError as exc:
        return filter_error_response(exc)

    players = get_registry().find_player(predicate, include_server=options.get("detail", False))
    return JSONResponse(content={"players": players})
