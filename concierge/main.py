from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from concierge.logging.flight_recorder import register_log_middleware
from concierge.routes import chat, health, recommendations

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(error.get("msg", "")) for error in exc.errors()]
    message = " | ".join(m for m in messages if m) or "Invalid request payload"
    logger.info("request.invalid path=%s errors=%s", request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


def create_app() -> FastAPI:
    app = FastAPI(title="Lending Concierge", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_log_middleware(app)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(chat.router, prefix="/chat", tags=["chat"])
    app.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])

    return app


app = create_app()
