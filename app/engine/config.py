"""Check-in configuration schema.

One ``CheckInConfig`` value carries every rule constant the engine needs. It is
validated once when loaded from a company's settings, so the engine never sees
a half-formed or internally inconsistent configuration.
"""
from typing import Any, Dict, Literal, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.core.utils import minutes_since_midnight, parse_time_of_day


class InvalidConfigError(ValueError):
    """Check-in configuration is missing or internally inconsistent."""


class CheckInConfig(BaseModel):
    """Company-scoped check-in rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_start: str = "06:00"
    window_end: str = "09:00"
    timezone: str = "America/Denver"
    early_cutoff: str = "07:45"
    on_time_cutoff: str = "08:01"

    early_points: int = Field(2, ge=0)
    on_time_points: int = Field(1, ge=0)
    late_points: int = Field(0, ge=0)

    perfect_week_bonus: int = Field(5, ge=0)
    streak_bonus: int = Field(10, ge=0)
    streak_bonus_interval: int = Field(10, ge=1)
    # One-off bonuses keyed by exact streak day, e.g. {30: 25}
    milestone_bonuses: Dict[int, int] = Field(default_factory=dict)

    streak_policy: Literal["calendar", "weekday"] = "calendar"
    require_qr_code: bool = True

    @field_validator("window_start", "window_end", "early_cutoff", "on_time_cutoff")
    @classmethod
    def validate_time_of_day(cls, v: str) -> str:
        """Normalize HH:MM values (e.g. "7:05" -> "07:05")."""
        parsed = parse_time_of_day(v)
        return parsed.strftime("%H:%M")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @field_validator("milestone_bonuses")
    @classmethod
    def validate_milestones(cls, v: Dict[int, int]) -> Dict[int, int]:
        for day, points in v.items():
            if day < 1:
                raise ValueError("Milestone streak days must be at least 1")
            if points < 0:
                raise ValueError("Milestone bonus points cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_ordering(self) -> "CheckInConfig":
        start = self.window_start_minutes
        end = self.window_end_minutes
        early = self.early_cutoff_minutes
        on_time = self.on_time_cutoff_minutes

        if start >= end:
            raise ValueError("window_start must be before window_end")
        if not (start <= early <= on_time <= end):
            raise ValueError(
                "Cutoffs must satisfy window_start <= early_cutoff <= on_time_cutoff <= window_end"
            )
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def window_start_minutes(self) -> int:
        return _minutes(self.window_start)

    @property
    def window_end_minutes(self) -> int:
        return _minutes(self.window_end)

    @property
    def early_cutoff_minutes(self) -> int:
        return _minutes(self.early_cutoff)

    @property
    def on_time_cutoff_minutes(self) -> int:
        return _minutes(self.on_time_cutoff)

    def points_for(self, classification: str) -> int:
        """Base points awarded for a classification."""
        points = {
            "early": self.early_points,
            "ontime": self.on_time_points,
            "late": self.late_points,
        }
        if classification not in points:
            raise ValueError(f"Unknown classification '{classification}'")
        return points[classification]


def _minutes(value: str) -> int:
    return minutes_since_midnight(parse_time_of_day(value))


def load_config(data: Optional[Mapping[str, Any]]) -> CheckInConfig:
    """
    Build a validated CheckInConfig from stored settings.

    Raises:
        InvalidConfigError: If the settings are missing or fail validation
    """
    if data is None:
        raise InvalidConfigError("Check-in configuration is missing")

    try:
        return CheckInConfig.model_validate(dict(data))
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidConfigError(f"Invalid check-in configuration: {details}") from e


def default_config_dict() -> Dict[str, Any]:
    """Settings payload stored for a freshly created company."""
    return CheckInConfig().model_dump()


__all__ = ["CheckInConfig", "InvalidConfigError", "load_config", "default_config_dict"]
