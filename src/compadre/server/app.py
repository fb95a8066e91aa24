"""HTTP surface for the assistant."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..agent import BLOCKED_MESSAGE, ConversationOrchestrator, TurnOutcome, fallback_reply
from ..config import AppConfig, config_from_env
from ..errors import ModelNotConfiguredError
from ..logging import get_logger
from ..recipes import RecipeLearner
from ..services import Services, build_services
from ..session import SessionManager

logger = logging.getLogger(__name__)


class ConversationRequest(BaseModel):
    user_id: str = "web"
    text: str = ""


class LearnRequest(BaseModel):
    user_id: str = "web"
    url: str | None = None
    content: str | None = None


def _not_configured() -> JSONResponse:
    return JSONResponse({"error": "Model API key not configured"}, status_code=500)


def create_app(
    orchestrator: ConversationOrchestrator | None = None,
    learner: RecipeLearner | None = None,
    config: AppConfig | None = None,
    sessions: SessionManager | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    With no orchestrator given, services are built from `config` (or the
    environment). A missing model API key does not stop the app from
    starting; the API endpoints answer 500 until one is configured.
    """
    services: Services | None = None
    if orchestrator is None and learner is None:
        config = config or config_from_env()
        try:
            services = build_services(config)
        except ModelNotConfiguredError as e:
            logger.warning("Starting without a model: %s", e)
        else:
            orchestrator = services.orchestrator
            learner = services.learner
            sessions = services.sessions

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sessions is not None:
            sessions.start_cleanup_task()
        yield
        if services is not None:
            services.close()
        elif sessions is not None:
            sessions.stop_cleanup_task()

    app = FastAPI(title="Chef Compadre", version=__version__, lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.learner = learner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000
        get_logger().log_request(request.url.path, response.status_code, duration_ms)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse({"error": "Method not allowed"}, status_code=405)
        return await http_exception_handler(request, exc)

    @app.get("/health")
    async def health():
        return {"status": "ok", "model_configured": app.state.orchestrator is not None}

    @app.post("/api/conversation")
    async def conversation(body: ConversationRequest):
        orchestrator = app.state.orchestrator
        if orchestrator is None:
            return _not_configured()

        try:
            result = await orchestrator.handle(body.user_id, body.text)
        except Exception as e:
            logger.exception("Conversation error for %s", body.user_id)
            get_logger().log("server_error", user_id=body.user_id, error=str(e))
            return {"reply": fallback_reply(body.text)}

        if result.outcome is TurnOutcome.EMPTY:
            return {"reply": ""}

        if result.outcome is TurnOutcome.BLOCKED:
            verdict = result.verdict
            return JSONResponse(
                {
                    "error": "Content blocked",
                    "message": BLOCKED_MESSAGE,
                    "reason": verdict.reason if verdict else None,
                    "category": verdict.category if verdict else None,
                },
                status_code=400,
            )

        data = {"reply": result.reply, "actions": result.actions}
        if result.nutrition:
            data["nutrition"] = result.nutrition
        return data

    @app.post("/api/learn_url")
    async def learn_url(body: LearnRequest):
        learner = app.state.learner
        if learner is None:
            return _not_configured()

        if not body.url and not body.content:
            return JSONResponse({"error": "URL or content required"}, status_code=400)

        try:
            result = await learner.learn(body.user_id, url=body.url, content=body.content)
        except Exception as e:
            logger.exception("URL learning error for %s", body.user_id)
            get_logger().log("server_error", user_id=body.user_id, error=str(e))
            return JSONResponse(
                {"error": "Failed to analyze content", "message": str(e)},
                status_code=500,
            )
        return result.to_dict()

    return app
