"""
Enrollment API Routes

This module provides:
- REST endpoint that runs one enrollment extraction and reports the outcome
- WebSocket endpoint that streams pose progress, guidance and hints while
  the extraction runs, then the final outcome

Extractions block until the sensor is done, so they run in a worker thread;
events from the worker are handed to the event loop through a queue.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from faceprints_api.dependencies import get_service
from faceprints_api.schemas import (
    EnrollRequest,
    EnrollResponse,
    EnrollmentCompleteResponse,
    EnrollmentErrorResponse,
    GuidanceEvent,
    HintEvent,
    ProgressEvent,
)
from faceprints.extraction import DeviceBusyError
from faceprints.service import EnrollOutcome, FaceprintsListener, FaceprintsService
from faceprints.statuses import Status

# Setup logging
logger = logging.getLogger(__name__)

# Create routers
router = APIRouter(prefix="/ws", tags=["enrollment"])
rest_router = APIRouter(prefix="/faceprints", tags=["enrollment"])


def _enroll_message(outcome: EnrollOutcome) -> str:
    if outcome.ok:
        return f"User {outcome.user_id} enrolled"
    if outcome.status != Status.OK:
        return f"Device call failed with status {outcome.status.name}"
    return f"Enrollment failed with status {outcome.enroll_status.name}"


@rest_router.post("/enroll", response_model=EnrollResponse)
def enroll(request: EnrollRequest, service: FaceprintsService = Depends(get_service)):
    """
    Enroll a user from one sensor extraction.

    The call blocks until the sensor reports a result. An extraction
    failure (no face, spoof, ...) is a normal response with success=false.

    Raises:
        400: Invalid user id.
        409: Another extraction is running.
        503: The device call failed (e.g. not connected).
    """
    try:
        outcome = service.enroll_faceprints(request.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DeviceBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if outcome.status != Status.OK:
        raise HTTPException(status_code=503, detail=_enroll_message(outcome))

    return EnrollResponse(
        success=outcome.ok,
        user_id=outcome.user_id,
        status=outcome.status.name,
        enroll_status=outcome.enroll_status.name if outcome.enroll_status is not None else None,
        guidance=outcome.guidance,
        hints=[hint.name for hint in outcome.hints],
        message=_enroll_message(outcome),
    )


class _QueueListener(FaceprintsListener):
    """Hands extraction events from the worker thread to the event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue):
        self._loop = loop
        self._queue = queue

    def _put(self, message: dict) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    def on_progress(self, pose):
        self._put(ProgressEvent(pose=str(pose)).model_dump())

    def on_guidance(self, text):
        self._put(GuidanceEvent(message=text).model_dump())

    def on_hint(self, hint):
        self._put(HintEvent(hint=hint.name).model_dump())


@router.websocket("/enroll/{user_id}")
async def enroll_websocket(websocket: WebSocket, user_id: str):
    """
    WebSocket endpoint for enrollment with live feedback.

    Protocol:
    1. Client connects to /ws/enroll/{user_id}
    2. Server streams {"type": "progress"}, {"type": "guidance"} and
       {"type": "hint"} messages while the sensor works
    3. Server sends {"type": "enrollment_complete"} or {"type": "error"}
       and closes the connection
    """
    await websocket.accept()
    service: Optional[FaceprintsService] = getattr(websocket.app.state, "service", None)

    if service is None:
        await websocket.send_json(EnrollmentErrorResponse(
            error="Faceprints service not initialized",
            code="SERVICE_UNAVAILABLE",
        ).model_dump())
        await websocket.close()
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    listener = _QueueListener(loop, queue)

    logger.info(f"WebSocket enrollment started for user: {user_id}")
    task = asyncio.ensure_future(run_in_threadpool(service.enroll_faceprints, user_id, listener))

    try:
        while not task.done():
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                await websocket.send_json(getter.result())
            else:
                getter.cancel()

        while not queue.empty():
            await websocket.send_json(queue.get_nowait())

        try:
            outcome = task.result()
        except ValueError as e:
            await websocket.send_json(EnrollmentErrorResponse(error=str(e), code="INVALID_USER_ID").model_dump())
            return
        except DeviceBusyError as e:
            await websocket.send_json(EnrollmentErrorResponse(error=str(e), code="DEVICE_BUSY").model_dump())
            return

        if outcome.status != Status.OK:
            await websocket.send_json(EnrollmentErrorResponse(
                error=_enroll_message(outcome),
                code="DEVICE_ERROR",
            ).model_dump())
            return

        await websocket.send_json(EnrollmentCompleteResponse(
            success=outcome.ok,
            user_id=outcome.user_id,
            enroll_status=outcome.enroll_status.name,
        ).model_dump())

    except WebSocketDisconnect:
        # the extraction keeps running to its terminal result
        logger.info(f"WebSocket disconnected during enrollment of {user_id}")

    finally:
        try:
            await websocket.close()
        except RuntimeError:
            pass
