from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Mapping

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import AppConfig, load_config_from_env
from .dispatch import Dispatcher
from .errors import EmptyPayloadError, ParseError
from .formatter import format_message
from .logsink import LogForwarder, LogSink, pick_headers
from .mapping import lookup_mapping
from .notifiers import ChatNotifier, SlackNotifier, SmsSender, TwilioSmsSender, utc_now_iso
from .payload import normalize_submission
from .verification import (
    CORS_HEADERS,
    LOGS_CORS_HEADERS,
    challenge_response,
    empty_response,
    hook_secret_response,
    json_response,
    liveness_response,
)

WEBHOOK_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE"]
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
LOGS_ALLOWED_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]


def parse_limit(raw: Any, fallback: int = 50) -> int:
    try:
        value = int(str(raw).strip())
    except Exception:
        return fallback
    return value if value > 0 else fallback


def internal_error(exc: Exception, headers: Mapping[str, str] = CORS_HEADERS) -> JSONResponse:
    return json_response(
        500,
        {"error": "Internal server error", "message": str(exc), "timestamp": utc_now_iso()},
        headers,
    )


def logs_json(status_code: int, content: dict[str, Any]) -> JSONResponse:
    return json_response(status_code, content, LOGS_CORS_HEADERS)


class AppState:
    def __init__(
        self,
        config: AppConfig,
        dispatcher: Dispatcher,
        log_sink: LogSink,
        forwarder: LogForwarder,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher
        self.log_sink = log_sink
        self.forwarder = forwarder


def create_app(
    config: AppConfig | None = None,
    *,
    chat: ChatNotifier | None = None,
    sms: SmsSender | None = None,
    log_sink: LogSink | None = None,
    mapping_lookup: Callable[..., Any] = lookup_mapping,
) -> FastAPI:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger = logging.getLogger("formhook")

    if config is None:
        config = load_config_from_env(os.environ)
    if chat is None:
        chat = SlackNotifier(config.slack_webhook_url, config.http_timeout_seconds)
    if sms is None:
        sms = TwilioSmsSender(
            config.twilio_account_sid,
            config.twilio_auth_token,
            config.default_sender,
        )
    dispatcher = Dispatcher(config, chat, sms, mapping_lookup)
    if log_sink is None:
        log_sink = LogSink()
    state = AppState(config, dispatcher, log_sink, LogForwarder(config.http_timeout_seconds))

    app = FastAPI(title="formhook", version="1.0.0")
    app.state.formhook = state

    def record_submission(fields: dict[str, Any], request: Request) -> None:
        headers = pick_headers(request.headers)
        logger.info("form submission received", extra={"submission": fields, "requestHeaders": headers})

        entry = {"type": "webhook", "method": "POST", "submission": fields, "headers": headers}
        if config.log_forward_url:
            state.forwarder.forward(config.log_forward_url, entry)
        else:
            state.log_sink.append(entry)

    async def handle_submission(request: Request) -> Response:
        handshake = hook_secret_response(request.headers, config.hook_secret_header)
        if handshake is not None:
            logger.info("hook secret handshake received")
            return handshake

        try:
            fields = normalize_submission(await request.body())
        except ParseError as exc:
            logger.warning("invalid request body", extra={"error": str(exc)})
            return json_response(400, {"error": "Invalid JSON in request body", "details": str(exc)})
        except EmptyPayloadError as exc:
            return json_response(400, {"error": str(exc)})

        record_submission(fields, request)

        message = format_message(fields)
        result = await state.dispatcher.dispatch(fields, message)

        return json_response(
            200,
            {
                "success": True,
                "message": "Webhook received and processed",
                "receivedAt": utc_now_iso(),
                **result.flags(),
            },
        )

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        return JSONResponse(status_code=200, content={"ok": True, "service": "formhook"})

    @app.api_route("/", methods=WEBHOOK_METHODS)
    @app.api_route("/webhook", methods=WEBHOOK_METHODS)
    async def webhook(request: Request) -> Response:
        method = request.method.upper()
        if method == "OPTIONS":
            return empty_response()

        try:
            if method == "GET":
                handshake = hook_secret_response(request.headers, config.hook_secret_header)
                if handshake is not None:
                    logger.info("hook secret handshake received")
                    return handshake
                challenge = challenge_response(request.query_params)
                if challenge is not None:
                    logger.info(
                        "challenge handshake received",
                        extra={"challenge": request.query_params.get("challenge")},
                    )
                    return challenge
                return liveness_response()

            if method == "POST":
                return await handle_submission(request)

            return json_response(405, {"error": "Method not allowed", "allowedMethods": ALLOWED_METHODS})
        except Exception as exc:
            logger.exception("webhook handler error: %s", exc)
            return internal_error(exc)

    @app.api_route("/logs", methods=WEBHOOK_METHODS)
    async def logs(request: Request) -> Response:
        method = request.method.upper()
        if method == "OPTIONS":
            return empty_response(base=LOGS_CORS_HEADERS)

        try:
            if method == "GET":
                entries = state.log_sink.list(parse_limit(request.query_params.get("limit")))
                return logs_json(200, {"success": True, "count": len(entries), "logs": entries})

            if method == "DELETE":
                state.log_sink.clear()
                return logs_json(200, {"success": True, "message": "Logs cleared"})

            if method == "POST":
                try:
                    body = json.loads(await request.body() or b"{}")
                except (json.JSONDecodeError, UnicodeDecodeError):
                    return logs_json(400, {"error": "Invalid JSON"})
                if not isinstance(body, dict):
                    return logs_json(400, {"error": "Invalid JSON"})
                entry = state.log_sink.append(body)
                return logs_json(200, {"success": True, "log": entry})

            return logs_json(405, {"error": "Method not allowed", "allowedMethods": LOGS_ALLOWED_METHODS})
        except Exception as exc:
            logger.exception("logs handler error: %s", exc)
            return internal_error(exc, LOGS_CORS_HEADERS)

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(request: Request, exc: StarletteHTTPException) -> Response:
        # Methods outside the route table never reach the handlers above.
        if exc.status_code == 405:
            if request.url.path == "/logs":
                return logs_json(405, {"error": "Method not allowed", "allowedMethods": LOGS_ALLOWED_METHODS})
            return json_response(405, {"error": "Method not allowed", "allowedMethods": ALLOWED_METHODS})
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def on_error(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("request failed: %s", exc)
        return internal_error(exc)

    logger.info(
        "formhook started",
        extra={
            "port": config.port,
            "slackEnabled": chat.enabled,
            "mappingPath": config.mapping_path,
        },
    )

    return app


app = create_app()
