"""Engine settings from an optional YAML file and FLEET_* environment variables."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Mapping, Optional, Union

import yaml

from .health import DEFAULT_SERVICE_INTERVAL_KM, HEALTH_WINDOW_DAYS, SERVICE_SOON_PERCENT
from .ledger import DEFAULT_HOLD_MINUTES
from .pricing import PER_KM_DELIVERY_RATE

ENV_PREFIX = "FLEET_"


@dataclass
class Settings:
    """Tunable constants of the engine."""

    per_km_delivery_rate: float = PER_KM_DELIVERY_RATE
    hold_minutes: float = DEFAULT_HOLD_MINUTES
    health_window_days: int = HEALTH_WINDOW_DAYS
    service_soon_percent: float = SERVICE_SOON_PERCENT
    default_service_interval_km: float = DEFAULT_SERVICE_INTERVAL_KM
    hubs: List[str] = field(
        default_factory=lambda: ["Nairobi CBD", "JKIA", "Westlands"]
    )
    currency: str = "KES"
    log_level: str = "INFO"


# YAML keys are camelCase like the fleet file
_YAML_KEYS = {
    "perKmDeliveryRate": "per_km_delivery_rate",
    "holdMinutes": "hold_minutes",
    "healthWindowDays": "health_window_days",
    "serviceSoonPercent": "service_soon_percent",
    "defaultServiceIntervalKm": "default_service_interval_km",
    "hubs": "hubs",
    "currency": "currency",
    "logLevel": "log_level",
}


_FIELD_TYPES = {f.name: f.type for f in fields(Settings)}


def _coerce(name: str, value):
    """Convert a raw YAML/env value to the declared type of the setting."""
    field_type = _FIELD_TYPES[name]
    if field_type is float:
        return float(value)
    if field_type is int:
        return int(value)
    if field_type is str:
        return str(value)
    # List[str]
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build settings: defaults, then the YAML file (if given), then environment.

    Environment variables are the upper-cased field names with a FLEET_
    prefix, e.g. FLEET_HOLD_MINUTES=30 or FLEET_HUBS="JKIA,Westlands".
    """
    environ = os.environ if environ is None else environ
    values = {}

    if path is not None:
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        for key, value in data.items():
            if key not in _YAML_KEYS:
                raise ValueError(f"Unknown setting '{key}' in {path}")
            name = _YAML_KEYS[key]
            values[name] = _coerce(name, value)

    for f in fields(Settings):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            values[f.name] = _coerce(f.name, environ[env_key])

    return Settings(**values)
