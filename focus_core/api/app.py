"""HTTP 入口。

把 AssistantService 暴露为若干 RPC 风格的端点（与前端原先调用的云函数同名）：

- POST /analyzeTask, /aiChat, /getProductivityTip, /analyzeFocusSession, /getJournalInsights
- POST /aiChatStream：``data: <json>\\n\\n`` 帧，最后一帧带 ``"done": true``
- GET  /healthCheck

启动方式：``uvicorn focus_core.api.app:create_app --factory`` 或 ``python -m focus_core``。
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Iterator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from focus_core import __version__
from focus_core.api.response import encode_sse, error_response, now_iso, success_response
from focus_core.api.schemas import (
    AnalyzeTaskBody,
    ApiEnvelope,
    ChatBody,
    FocusSessionBody,
    JournalInsightsBody,
    ProductivityTipBody,
)
from focus_core.api.service import AssistantService
from focus_core.config.settings import Settings, load_settings
from focus_core.domain.exceptions import BusinessError
from focus_core.infrastructure.logging.logger import logger, setup_logger


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response


def get_service(request: Request) -> AssistantService:
    return request.app.state.service


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AssistantService] = None,
) -> FastAPI:
    settings = settings or (service.settings if service else load_settings())
    setup_logger(settings)
    app = FastAPI(title="FocusMate AI", version=__version__)
    app.state.settings = settings
    app.state.service = service or AssistantService(settings)
    _register_middleware(app, settings)
    _register_handlers(app)
    _register_routes(app)
    return app


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


def _register_routes(app: FastAPI) -> None:
    @app.post("/analyzeTask", response_model=ApiEnvelope)
    def analyze_task(
        request: Request,
        payload: AnalyzeTaskBody,
        service: AssistantService = Depends(get_service),
    ):
        result = service.analyze_task(payload.task, model=payload.model, temperature=payload.temperature)
        data = result.to_dict()
        config = service.resolve_config(payload.model, payload.temperature, analysis=True)
        data.update({"model": config.model, "temperature": config.temperature})
        return success_response(request=request, data=data)

    @app.post("/aiChat", response_model=ApiEnvelope)
    def ai_chat(
        request: Request,
        payload: ChatBody,
        service: AssistantService = Depends(get_service),
    ):
        reply = service.chat(
            payload.message,
            context=payload.context,
            model=payload.model,
            temperature=payload.temperature,
        )
        return success_response(request=request, data=reply.to_dict())

    @app.post("/aiChatStream")
    def ai_chat_stream(payload: ChatBody, service: AssistantService = Depends(get_service)):
        # ConfigurationError 在这里同步抛出，响应尚未开始，走统一的错误信封
        chunks = service.chat_stream(
            payload.message,
            context=payload.context,
            model=payload.model,
            temperature=payload.temperature,
        )

        def generate() -> Iterator[str]:
            for chunk in chunks:
                yield encode_sse(chunk.to_dict())
                if chunk.is_terminal:
                    return

        return StreamingResponse(
            generate(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.post("/getProductivityTip", response_model=ApiEnvelope)
    def productivity_tip(
        request: Request,
        payload: ProductivityTipBody,
        service: AssistantService = Depends(get_service),
    ):
        reply = service.productivity_tip(payload.current_activity)
        return success_response(request=request, data=reply.to_dict())

    @app.post("/analyzeFocusSession", response_model=ApiEnvelope)
    def analyze_focus_session(
        request: Request,
        payload: FocusSessionBody,
        service: AssistantService = Depends(get_service),
    ):
        reply = service.focus_session_feedback(payload.duration, payload.completed, payload.mood)
        return success_response(request=request, data=reply.to_dict())

    @app.post("/getJournalInsights", response_model=ApiEnvelope)
    def journal_insights(
        request: Request,
        payload: JournalInsightsBody,
        service: AssistantService = Depends(get_service),
    ):
        insights = service.journal_insights(payload.entry)
        return success_response(request=request, data=insights.to_dict())

    @app.get("/healthCheck")
    def health_check(request: Request):
        settings: Settings = request.app.state.settings
        return {
            "status": "healthy",
            "timestamp": now_iso(),
            "environment": settings.environment,
            "configLoaded": {"deepseek": settings.has_credentials},
        }


def _register_handlers(app: FastAPI) -> None:
    @app.exception_handler(BusinessError)
    async def handle_business_error(request: Request, exc: BusinessError) -> JSONResponse:
        logger.error(
            "http.business_error",
            extra={"extra": {"path": request.url.path, "code": exc.code, "error": exc.message}},
        )
        payload = error_response(code=exc.code, message=exc.message, request=request)
        return JSONResponse(status_code=exc.http_status, content=payload)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        payload = error_response(
            code=f"http_{exc.status_code}",
            message=_exc_message(exc.detail),
            request=request,
        )
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        issues = []
        for issue in exc.errors():
            loc = ".".join(str(part) for part in issue.get("loc", []))
            msg = issue.get("msg", "Invalid request.")
            issues.append(f"{loc}: {msg}" if loc else msg)
        payload = error_response(
            code="VALIDATION_ERROR",
            message="; ".join(issues) or "Request validation failed.",
            request=request,
        )
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("http.unexpected_error", extra={"extra": {"path": request.url.path}})
        payload = error_response(
            code="internal_error",
            message="Internal server error.",
            request=request,
        )
        return JSONResponse(status_code=500, content=payload)


def _exc_message(detail: Any) -> str:
    if isinstance(detail, str):
        return detail
    if detail is None:
        return "Request failed."
    return str(detail)
