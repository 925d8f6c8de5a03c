"""Entry point for the ConversationRelay voice assistant service."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from api.routes import router as api_router
from api.twilio_routes import router as twilio_router
from config.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Conversation Relay Assistant",
    description="Streams LLM answers to phone callers over Twilio ConversationRelay.",
)
app.include_router(twilio_router)
app.include_router(api_router, prefix="/api")


def run() -> None:
    """Serve the app on the configured port."""

    domain = settings.public_domain or "<PUBLIC_DOMAIN unset>"
    logging.getLogger(__name__).info(
        "Server running at http://localhost:%s and wss://%s/ws", settings.port, domain
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
