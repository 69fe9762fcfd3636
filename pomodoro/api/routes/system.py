from __future__ import annotations

import platform

from fastapi import APIRouter

from ... import __version__
from ..schemas import HealthOut, MetaOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut()


@router.get("/meta", response_model=MetaOut)
def meta() -> MetaOut:
    return MetaOut(
        app="Pomodoro",
        version=__version__,
        settings_path=str(timer_service.settings_path),
        platform=platform.platform(),
    )
