"""MCP JSON-RPC endpoint."""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from apollo.api.middleware.auth import verify_api_key
from apollo.mcp.dispatcher import PARSE_ERROR, error_response

logger = structlog.get_logger()

router = APIRouter()


@router.post("/mcp")
async def mcp_endpoint(
    request: Request,
    _api_key: str | None = Depends(verify_api_key),
) -> Response:
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("mcp.parse_error", error=str(e))
        return JSONResponse(error_response(PARSE_ERROR, "Parse error"), status_code=400)

    response = await request.app.state.dispatcher.handle(payload)
    if response is None:
        return Response(status_code=202)
    return JSONResponse(response)
