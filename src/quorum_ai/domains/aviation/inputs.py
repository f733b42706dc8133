"""Pydantic models for the attribute bags of an aviation submission.

Each evaluator validates only the bags it reads; extra bags and extra keys
pass through untouched.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Bag(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False, str_strip_whitespace=True)


class AircraftBag(_Bag):
    year: int = Field(ge=1900)
    value: float = Field(ge=0)
    make: str = ""
    model: str = ""


class PilotBag(_Bag):
    total_hours: float = Field(ge=0)
    type_hours: float = Field(ge=0)
    endorsements: list[str] = Field(default_factory=list)


class MaintenanceBag(_Bag):
    # Zero or negative means the overhaul is overdue
    months_to_overhaul: float
    engine_hours: float = Field(default=0.0, ge=0)
    service_center: str = ""


class BaseAirportBag(_Bag):
    base_airport: str = Field(min_length=1)
    hurricane_exposure: bool = False


class UseAndLimitsBag(_Bag):
    intended_use: str = ""
    seats: int = Field(default=0, ge=0)
    liability_limit: float = Field(default=0.0, ge=0)


class RegionsBag(_Bag):
    regions: list[str] = Field(default_factory=list)


class HullInput(BaseModel):
    aircraft: AircraftBag


class PilotInput(BaseModel):
    pilot: PilotBag


class MaintenanceInput(BaseModel):
    maintenance: MaintenanceBag


class GroundInput(BaseModel):
    operations: BaseAirportBag


class LiabilityInput(BaseModel):
    operations: UseAndLimitsBag


class GeopoliticalInput(BaseModel):
    operations: RegionsBag
