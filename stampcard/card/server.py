"""App for hosting the loyalty card page locally."""
from __future__ import annotations

from fastapi import FastAPI

from stampcard.card.routes import router as loyalty_card_router


def create_app() -> FastAPI:
    app = FastAPI(title="stampcard")
    app.include_router(loyalty_card_router)
    return app


app = create_app()
