"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from voice_to_code.api.models import (
    ArtifactUpdate,
    HistoryRecordView,
    SessionView,
    SubmitResult,
    TranscriptUpdate,
)
from voice_to_code.app_logging import configure_logging
from voice_to_code.containers import AppContainer
from voice_to_code.errors import (
    AlreadyInProgressError,
    NoInputError,
    RecordNotFoundError,
)
from voice_to_code.services.sessions import SessionOrchestrator

ARTIFACT_FILENAME = "generated-code.html"
# Previews run scripts but get an opaque origin, no same-origin access.
PREVIEW_CSP = "sandbox allow-scripts"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        orchestrator: SessionOrchestrator = app.state.container.orchestrator
        try:
            orchestrator.restore_history()
        except Exception:
            logger.exception("Failed to restore session history")
        await orchestrator.refresh_backend_status()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def _orchestrator(request: Request) -> SessionOrchestrator:
        state_container: AppContainer = request.app.state.container
        return state_container.orchestrator

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def get_session(request: Request) -> SessionView:
        """Return the current session state."""
        return SessionView.from_orchestrator(_orchestrator(request))

    @app.put("/session/transcript")
    async def put_transcript(
        update: TranscriptUpdate, request: Request
    ) -> SessionView:
        """Replace the transcript with text from an external recognizer."""
        orchestrator = _orchestrator(request)
        orchestrator.update_transcript(update.text)
        return SessionView.from_orchestrator(orchestrator)

    @app.delete("/session/transcript")
    async def delete_transcript(request: Request) -> SessionView:
        """Clear the transcript."""
        orchestrator = _orchestrator(request)
        orchestrator.clear_transcript()
        return SessionView.from_orchestrator(orchestrator)

    @app.post("/session/capture/start")
    async def start_capture(request: Request) -> SessionView:
        """Start microphone capture; failures are reported in the session error."""
        orchestrator = _orchestrator(request)
        orchestrator.start_capture()
        return SessionView.from_orchestrator(orchestrator)

    @app.post("/session/capture/stop")
    async def stop_capture(request: Request) -> SessionView:
        """Stop microphone capture."""
        orchestrator = _orchestrator(request)
        orchestrator.stop_capture()
        return SessionView.from_orchestrator(orchestrator)

    @app.post("/session/submit")
    async def submit(request: Request) -> SubmitResult:
        """Generate code for the current transcript."""
        orchestrator = _orchestrator(request)
        try:
            outcome = await orchestrator.submit()
        except NoInputError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=exc.detail
            ) from exc
        except AlreadyInProgressError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=exc.detail
            ) from exc
        return SubmitResult.from_outcome(outcome)

    @app.get("/history")
    async def list_history(request: Request) -> dict[str, list[HistoryRecordView]]:
        """Return recent sessions, most recent first."""
        orchestrator = _orchestrator(request)
        return {
            "records": [
                HistoryRecordView.from_record(record)
                for record in orchestrator.history
            ]
        }

    @app.post("/history/{record_id}/load")
    async def load_history_record(record_id: int, request: Request) -> SessionView:
        """Make a past session's transcript and artifact active again."""
        orchestrator = _orchestrator(request)
        try:
            orchestrator.load_record(record_id)
        except RecordNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=exc.detail
            ) from exc
        except AlreadyInProgressError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=exc.detail
            ) from exc
        return SessionView.from_orchestrator(orchestrator)

    @app.delete("/history")
    async def clear_history(request: Request) -> dict[str, str]:
        """Forget all past sessions."""
        _orchestrator(request).clear_history()
        return {"status": "ok"}

    @app.get("/artifact", response_class=PlainTextResponse)
    async def get_artifact(request: Request) -> str:
        """Return the raw artifact text."""
        return _orchestrator(request).artifact

    @app.put("/artifact")
    async def put_artifact(update: ArtifactUpdate, request: Request) -> SessionView:
        """Replace the artifact with a user-edited version."""
        orchestrator = _orchestrator(request)
        orchestrator.edit_artifact(update.code)
        return SessionView.from_orchestrator(orchestrator)

    @app.get("/artifact/download")
    async def download_artifact(request: Request) -> Response:
        """Return the artifact as a file attachment."""
        return Response(
            content=_orchestrator(request).artifact,
            media_type="text/html",
            headers={
                "Content-Disposition": f'attachment; filename="{ARTIFACT_FILENAME}"'
            },
        )

    @app.get("/artifact/preview")
    async def preview_artifact(request: Request) -> HTMLResponse:
        """Render the artifact inside a sandboxed document."""
        return HTMLResponse(
            content=_orchestrator(request).artifact,
            headers={"Content-Security-Policy": PREVIEW_CSP},
        )

    @app.get("/backend/status")
    async def backend_status(request: Request) -> dict[str, bool]:
        """Check the generation service health endpoint."""
        available = await _orchestrator(request).refresh_backend_status()
        return {"available": available}

    return app
