"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging and
registers the widget routes.  The `uvicorn` ASGI server can point to
``chatwidget.main:app`` to serve the application.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config.app_config import AppConfig, get_app_config
from .controllers.widget_controller import router as widget_router
from .services.widget_service import ChatWidget, create_widget
from .utils.error_handler import ChatError, http_exception_handler
from .utils.logger import setup_logging


def create_app(widget: ChatWidget | None = None, app_config: AppConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application around one widget."""
    app_config = app_config or get_app_config()
    setup_logging(app_config)

    app = FastAPI(title="Chat Widget Core", version="0.1.0")

    # Enable CORS for all origins; adjust in production as needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ChatError, http_exception_handler)

    app.state.widget = widget or create_widget(app_config=app_config)

    app.include_router(widget_router)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        logger.debug("Health check invoked")
        return {"status": "ok"}

    return app


# Create an application instance for ASGI servers
app = create_app()
