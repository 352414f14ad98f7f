from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mac_schedule.routes import events, metadata, participants, photoshoot, sessions
from mac_schedule.utils.config import get_settings

logging.basicConfig(level=logging.INFO)

settings = get_settings()

app = FastAPI(title="MAC Schedule Bookings API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.include_router(sessions.router, prefix="/api")
app.include_router(metadata.router, prefix="/api")
app.include_router(photoshoot.router, prefix="/api")
app.include_router(participants.router, prefix="/api")
app.include_router(events.router, prefix="/api")


@app.get("/health")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
