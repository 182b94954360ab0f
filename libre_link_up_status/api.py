"""REST status surface for the LibreLinkUp status monitor"""

import logging
from typing import Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from .poller import StatusPoller

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    poller: str


class StatusResponse(BaseModel):
    text: str = Field(..., description="Status line, e.g. '5.4 mmol/L →' or '---'")
    warning: Optional[str] = Field(None, description="Low/high glucose warning")
    background: Optional[str] = Field(None, description="'warning', 'error' or none")
    timestamp: Optional[str] = Field(None, description="Timestamp of the shown reading")
    notification: Optional[str] = Field(None, description="Error that needs user action")


class LastReadingResponse(BaseModel):
    message: str


def create_app(poller: StatusPoller, start_poller: bool = True) -> FastAPI:
    """Build the API around a poller; the poller runs for the app's lifetime"""
    app = FastAPI(
        title="LibreLinkUp Status API",
        description="Latest LibreLinkUp glucose reading as a status line",
        version="1.0.0"
    )

    @app.on_event("startup")
    async def startup_event():
        """Start polling on startup"""
        if start_poller:
            poller.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cancel the pending update on shutdown"""
        poller.stop()

    def _status() -> StatusResponse:
        state = poller.state
        return StatusResponse(
            text=state.text,
            warning=state.warning,
            background=state.background.value if state.background else None,
            timestamp=state.timestamp,
            notification=poller.last_notification,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        has_reading = poller.measurement is not None
        return HealthResponse(status="healthy", poller="reading" if has_reading else "no data")

    @app.get("/api/status", response_model=StatusResponse)
    async def get_status():
        """Current status line"""
        return _status()

    @app.post("/api/status/refresh", response_model=StatusResponse)
    def refresh_status():
        """
        Update the status immediately

        Runs one fetch now and restarts the update interval.
        """
        poller.refresh()
        return _status()

    @app.get("/api/status/last-reading", response_model=LastReadingResponse)
    async def get_last_reading():
        """Time of the last reading shown"""
        return LastReadingResponse(message=poller.last_reading_message())

    return app
