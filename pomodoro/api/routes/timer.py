from __future__ import annotations

import json
import queue
from typing import Any, Iterator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ...timer import TimerStateError
from ..schemas import DurationIn, TimerStateOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["timer"])

KEEPALIVE_SECONDS = 10.0


@router.get("/timer/state", response_model=TimerStateOut)
def timer_state() -> TimerStateOut:
    return TimerStateOut.from_snapshot(timer_service.state())


@router.post("/timer/duration", response_model=TimerStateOut)
def select_duration(payload: DurationIn) -> TimerStateOut:
    try:
        snapshot = timer_service.select_duration(payload.seconds)
    except TimerStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TimerStateOut.from_snapshot(snapshot)


@router.post("/timer/toggle", response_model=TimerStateOut)
def toggle_timer() -> TimerStateOut:
    try:
        snapshot = timer_service.toggle()
    except TimerStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TimerStateOut.from_snapshot(snapshot)


@router.post("/timer/cancel", response_model=TimerStateOut)
def cancel_timer() -> TimerStateOut:
    return TimerStateOut.from_snapshot(timer_service.cancel())


def format_event(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


def event_stream(
    subscriber: queue.Queue[dict[str, Any]],
    keepalive_sec: float = KEEPALIVE_SECONDS,
) -> Iterator[str]:
    """Yield SSE frames from one subscriber queue until the client goes away."""
    try:
        while True:
            try:
                event = subscriber.get(timeout=keepalive_sec)
            except queue.Empty:
                yield ": keepalive\n\n"
                continue
            yield format_event(event)
    finally:
        timer_service.unsubscribe(subscriber)


@router.get("/timer/stream")
def timer_stream() -> StreamingResponse:
    return StreamingResponse(event_stream(timer_service.subscribe()), media_type="text/event-stream")
