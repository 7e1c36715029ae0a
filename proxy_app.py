import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

import config
from domain.errors import ConfigurationError
from proxy_service import CORS_HEADERS, RecordProxy

# Every method is routed to the handler so that unsupported ones get the
# proxy's own {"error": ...} 405 body instead of FastAPI's default.
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(record_proxy: RecordProxy) -> FastAPI:
    """Builds the HTTP surface of the record proxy: one endpoint, method-dispatched."""
    app = FastAPI(title="Anime Bookmark Proxy")

    @app.api_route(config.API_ROUTE, methods=ROUTED_METHODS)
    async def anime(request: Request):
        try:
            record_proxy.check_config()
        except ConfigurationError as e:
            return JSONResponse(status_code=e.status_code, content={"error": str(e)})

        body = None
        if request.method in ("POST", "DELETE"):
            raw = await request.body()
            if raw:
                try:
                    body = json.loads(raw)
                except ValueError as e:
                    logging.error(f"Error parsing request body: {e}")
                    return JSONResponse(
                        status_code=400,
                        content={"error": "Invalid JSON format in request body."},
                        headers=CORS_HEADERS,
                    )

        # Airtable calls are blocking
        result = await run_in_threadpool(record_proxy.handle, request.method, body)

        if result.body is None:
            return Response(status_code=result.status_code, headers=result.headers)
        return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)

    return app
