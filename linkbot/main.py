import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException

from linkbot.config import Settings, get_settings
from linkbot.links import LinkService
from linkbot.models import WebhookAck
from linkbot.repository import LinkRepository
from linkbot.serving import (
    FileServer,
    LinkError,
    LinkNotFoundError,
    MissingLinkParamsError,
    ResolutionFailedError,
    UpstreamUnavailableError,
)
from linkbot.telegram import TelegramBot
from linkbot.webhook import WebhookHandler


def create_app(settings: Settings | None = None, *, transport: httpx.BaseTransport | None = None) -> FastAPI:
    settings = settings or get_settings()

    repository = LinkRepository(settings.database_path)
    bot = TelegramBot(
        token=settings.bot_token,
        channel_id=settings.channel_id,
        api_base=settings.telegram_api_base,
        timeout=settings.request_timeout_seconds,
        transport=transport,
    )
    links = LinkService(repository, settings.public_base_url)
    webhook = WebhookHandler(
        bot=bot,
        links=links,
        channel_username=settings.channel_username,
        max_file_size_bytes=settings.max_file_size_bytes,
    )
    file_server = FileServer(bot=bot, links=links)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logging.basicConfig(level=settings.log_level.upper())
        Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
        repository.init()
        yield
        bot.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    def error_response(status_code: int, message: str, code: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"error": {"code": code, "message": message}},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        message = str(exc.detail) if exc.detail else "request failed"
        code_map = {
            400: "bad_request",
            403: "forbidden",
            404: "not_found",
            405: "method_not_allowed",
        }
        return error_response(exc.status_code, message, code_map.get(exc.status_code, "error"))

    @app.exception_handler(LinkError)
    async def link_exception_handler(_: Request, exc: LinkError):
        status_map = {
            MissingLinkParamsError: (400, "bad_request"),
            LinkNotFoundError: (403, "forbidden"),
            ResolutionFailedError: (502, "bad_gateway"),
            UpstreamUnavailableError: (502, "bad_gateway"),
        }
        status_code, code = status_map.get(type(exc), (500, "error"))
        return error_response(status_code, str(exc), code)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "environment": settings.app_env}

    @app.post("/webhook", response_model=WebhookAck)
    async def telegram_webhook(request: Request):
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        # Membership checks and replies are blocking HTTP calls.
        result = await run_in_threadpool(webhook.handle, payload)
        return WebhookAck(outcome=result.outcome.value)

    def stream_link(user_id: str | None, token: str | None) -> StreamingResponse:
        served = file_server.open(user_id, token)
        return StreamingResponse(
            served.iter_bytes(),
            status_code=served.status_code,
            headers=served.headers,
            background=BackgroundTask(served.close),
        )

    @app.get("/file")
    def serve_file_without_params():
        return stream_link(None, None)

    @app.get("/file/{path:path}")
    def serve_file(path: str):
        # /file/<userId>/<token>; anything after the token is ignored.
        parts = path.split("/")
        token = parts[1] if len(parts) > 1 else None
        return stream_link(parts[0], token)

    return app


app = create_app()
