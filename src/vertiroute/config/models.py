from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = Field(default=1, ge=1)


class LimitsModel(BaseModel):
    """Ceilings for path queries; None = unbounded."""

    model_config = ConfigDict(extra="forbid")
    max_nodes: int | None = Field(default=None, gt=0)
    max_edges: int | None = Field(default=None, gt=0)


# ----------------- COST MODELS ---------------------


class CostModelDistanceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["distance"] = "distance"


class CostModelFlightTimeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["flight_time"] = "flight_time"
    cruise_speed_mps: float = Field(default=16.7, gt=0)  # ~60 km/h cargo average
    overhead_s: float = Field(default=0.0, ge=0)  # takeoff + landing per leg


CostModelUnion = Annotated[
    CostModelDistanceModel | CostModelFlightTimeModel,
    Field(discriminator="kind"),
]

# ----------------- PATH FINDERS ---------------------


class PathFinderDijkstraModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["dijkstra"] = "dijkstra"


class PathFinderAStarModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["astar"] = "astar"
    heuristic_scale: float = 1.0

    @field_validator("heuristic_scale")
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if not v >= 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


PathFinderUnion = Annotated[
    PathFinderDijkstraModel | PathFinderAStarModel,
    Field(discriminator="kind"),
]

# ----------------- INVENTORY RECORDS ---------------------


class LocationRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    altitude_m: float | None = None


class NodeRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")
    uid: str = Field(min_length=1)
    location: LocationRecord
    kind: Literal["vertiport", "vertipad", "rooftop", "other"] = "other"
    status: Literal["ok", "closed"] = "ok"
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_coordinates(cls, data):
        # inventory rows often carry latitude/longitude at top level
        if isinstance(data, dict) and "location" not in data and "latitude" in data:
            data = dict(data)
            data["location"] = {
                k: data.pop(k) for k in ("latitude", "longitude", "altitude_m") if k in data
            }
        return data


class ScheduleRecord(BaseModel):
    """Either an RFC 5545 `rrule` or a compact `calendar` block."""

    model_config = ConfigDict(extra="forbid")
    rrule: str | None = None
    calendar: str | None = None
    timezone: str = "UTC"
    duration: timedelta = timedelta(hours=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None

    @model_validator(mode="after")
    def _one_source(self):
        if (self.rrule is None) == (self.calendar is None):
            raise ValueError("exactly one of rrule or calendar must be given")
        if self.duration < timedelta(0):
            raise ValueError("duration must be >= 0")
        return self


class EdgeRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    weight: float | None = Field(default=None, ge=0)
    schedule: ScheduleRecord | None = None
    uid: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    mirrored: bool = False  # also insert target -> source


class InventoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    nodes: list[NodeRecord] = Field(default_factory=list)
    edges: list[EdgeRecord] = Field(default_factory=list)


# ------------------------------------------------------------------


class EngineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "vertiroute"
    seed: int = 123
    log: LogModel = LogModel()
    limits: LimitsModel = LimitsModel()
    cost_model: CostModelUnion = Field(default_factory=CostModelDistanceModel)
    path_finder: PathFinderUnion = Field(default_factory=PathFinderDijkstraModel)
    inventory: InventoryModel | None = None
