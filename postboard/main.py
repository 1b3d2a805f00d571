from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import Response
from .api.api import api_router
from .db.database import create_tables
import logging
import json
import traceback

REDACTED_HEADERS = {"authorization", "cookie"}

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # make sure tables are created
    create_tables()
    yield

logger = logging.getLogger("fastapi")

app = FastAPI(title="postboard", lifespan=lifespan)


def _request_info(request: Request, body: bytes) -> dict:
    return {
        "url": str(request.url),
        "method": request.method,
        "headers": {
            key: ("***" if key.lower() in REDACTED_HEADERS else value)
            for key, value in request.headers.items()
        },
        "body": body.decode(errors="replace") if body else None,
        "query_params": dict(request.query_params)
    }


@app.middleware("http")
async def log_requests(request: Request, call_next):
    body = await request.body()

    try:
        # execute the request
        response = await call_next(request)

        if response.status_code >= 400:
            response_body = b""
            async for chunk in response.body_iterator:
                response_body += chunk

            logger.error(
                f"Request failed with status {response.status_code}\n"
                f"Request: {json.dumps(_request_info(request, body), indent=2)}\n"
                f"Response: {response_body.decode(errors='replace')}\n"
            )
            return Response(
                content=response_body,
                status_code=response.status_code,
                headers=dict(response.headers),
                media_type=response.media_type
            )

        return response

    except Exception as e:
        logger.error(
            f"Request failed with exception\n"
            f"Request: {json.dumps(_request_info(request, body), indent=2)}\n"
            f"Error: {str(e)}\n"
            f"Traceback: {traceback.format_exc()}"
        )
        raise

# register the API router
app.include_router(api_router, prefix="/api")
