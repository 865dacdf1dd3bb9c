from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import chat, chat_websocket
from app.chat import (
    ChatEventHandlers,
    ChatWebSocketManager,
    ConnectionRegistry,
    ConversationLifecycleManager,
    MessageRelay,
    SqlUserDirectory,
)
from app.core.config import settings
from app.core.logging import configure_logging
from app.middleware.logging import LoggingMiddleware


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="ATS Live Chat",
        version="0.1.0",
    )

    # CORS middleware - must be added before other middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)

    # Chat relay state lives for the lifetime of this app instance
    users = SqlUserDirectory()
    registry = ConnectionRegistry()
    app.state.chat_registry = registry
    app.state.chat_manager = ChatWebSocketManager(registry)
    app.state.chat_handlers = ChatEventHandlers(
        registry,
        ConversationLifecycleManager(users),
        MessageRelay(users),
    )

    # API routes
    prefix = settings.API_V1_PREFIX
    app.include_router(chat.router, prefix=prefix)
    app.include_router(chat_websocket.router, prefix=prefix)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "connections": registry.connection_count(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=settings.DEBUG,
    )
