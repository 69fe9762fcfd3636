from __future__ import annotations

from pydantic import BaseModel, Field

from ..timer import MAX_DURATION_SECONDS, TimerSnapshot


class TimerStateOut(BaseModel):
    status: str
    total_sec: int
    remaining_sec: int
    hours: int
    minutes: int
    seconds: int
    display: str
    progress: float = Field(ge=0, le=1)
    ticks: int

    @classmethod
    def from_snapshot(cls, snapshot: TimerSnapshot) -> TimerStateOut:
        return cls(**snapshot.to_dict())


class DurationIn(BaseModel):
    seconds: int = Field(gt=0, le=MAX_DURATION_SECONDS)


class HealthOut(BaseModel):
    status: str = Field(default="ok")


class MetaOut(BaseModel):
    app: str
    version: str
    settings_path: str
    platform: str
