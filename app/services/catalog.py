"""Metric catalog - which metrics each provider reports and what they are worth.

A metric's ``value_per_fitcoin`` is the amount of raw activity that earns one
Fitcoin, so ``fitcoin = raw_value / value_per_fitcoin``. The catalog is built
once and handed to the activity generator; lookups never fail, unknown
providers get the default wearables set.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_METRIC_SET = "wearables"


class Provider(str, Enum):
    """Data sources a user can connect at onboarding."""
    STRAVA = "strava"
    SAMSUNG_HEALTH = "samsung_health"
    GOOGLE_FIT = "google_fit"
    FITBIT = "fitbit"
    GARMIN = "garmin"
    APPLE_HEALTH = "apple_health"
    GENERIC_WEARABLE = "generic_wearable"


@dataclass(frozen=True)
class MetricDefinition:
    """A measurable metric and its conversion rate into Fitcoin."""

    key: str
    unit: str
    value_per_fitcoin: float

    def __post_init__(self):
        if self.value_per_fitcoin <= 0:
            raise ValueError(
                f"value_per_fitcoin must be positive for {self.key}, got {self.value_per_fitcoin}"
            )

    def to_fitcoin(self, raw_value: float) -> float:
        """Convert a raw reading into Fitcoin, rounded to 2 decimals."""
        return round(raw_value / self.value_per_fitcoin, 2)


# (unit, value_per_fitcoin) per metric, grouped by metric set
FITCOIN_METRICS: dict[str, dict[str, tuple[str, float]]] = {
    "base": {
        "steps": ("steps", 1000),
        "workout_minutes": ("minutes", 30),
        "sleep_hours": ("hours", 7),
        "health_score": ("score_points", 5),
    },
    "strava": {
        "run_distance": ("kilometers", 2),
        "cycle_distance": ("kilometers", 4),
        "moving_time": ("minutes", 15),
        "elevation_gain": ("meters", 100),
        "active_calories": ("kcal", 100),
        "heart_rate_zone_time": ("minutes_in_zone_3_plus", 10),
    },
    "samsung_health": {
        "steps": ("steps", 1000),
        "active_time": ("minutes", 20),
        "active_calories": ("kcal", 150),
        "floors_climbed": ("floors", 10),
        "sleep_hours": ("hours", 7),
        "sleep_score": ("score_points", 10),
        "water_intake": ("ml", 500),
    },
    "google_fit": {
        "move_minutes": ("minutes", 20),
        "heart_points": ("points", 10),
    },
    "fitbit": {
        "steps": ("steps", 1000),
        "run_distance": ("kilometers", 2),
        "cycle_distance": ("kilometers", 4),
        "active_minutes": ("minutes", 20),
        "floors_climbed": ("floors", 10),
        "active_calories": ("kcal", 150),
        "sleep_hours": ("hours", 7),
    },
    "apple_health": {
        "exercise_minutes": ("minutes", 30),
        "active_kcal": ("kcal", 200),
        "stand_hours": ("hours", 2),
    },
    "wearables": {
        "active_zone_minutes": ("minutes", 10),
        "swim_distance": ("meters", 500),
        "mindfulness_minutes": ("minutes", 10),
        "resting_heart_rate_improvement": ("percent_improvement", 5),
    },
}


class MetricCatalog:
    """Immutable provider -> metric table."""

    def __init__(
        self,
        metric_sets: Mapping[str, Mapping[str, MetricDefinition]],
        default_set: str = DEFAULT_METRIC_SET,
    ):
        if default_set not in metric_sets:
            raise ValueError(f"Default metric set '{default_set}' is not in the catalog")
        empty = [name for name, metrics in metric_sets.items() if not metrics]
        if empty:
            raise ValueError(f"Metric sets must not be empty: {empty}")
        self._sets = MappingProxyType({
            name: MappingProxyType(dict(metrics)) for name, metrics in metric_sets.items()
        })
        self.default_set = default_set

    def lookup(self, provider: Optional[str]) -> Mapping[str, MetricDefinition]:
        """Return the metric set for a provider, falling back to the default set."""
        key = provider.value if isinstance(provider, Provider) else provider
        metrics = self._sets.get(key) if key else None
        if metrics is None:
            logger.debug(f"No metric set for provider {provider!r}, using '{self.default_set}'")
            return self._sets[self.default_set]
        return metrics

    def has_metric_set(self, provider: Optional[str]) -> bool:
        key = provider.value if isinstance(provider, Provider) else provider
        return key in self._sets

    def metric_sets(self) -> list[str]:
        return list(self._sets)


def build_catalog(
    table: Mapping[str, Mapping[str, tuple[str, float]]] = FITCOIN_METRICS,
    default_set: str = DEFAULT_METRIC_SET,
) -> MetricCatalog:
    """Build a catalog from a (unit, value_per_fitcoin) table."""
    metric_sets = {
        set_name: {
            key: MetricDefinition(key=key, unit=unit, value_per_fitcoin=rate)
            for key, (unit, rate) in metrics.items()
        }
        for set_name, metrics in table.items()
    }
    return MetricCatalog(metric_sets, default_set=default_set)


@lru_cache()
def get_catalog() -> MetricCatalog:
    """The catalog built from the bundled table, shared process-wide."""
    return build_catalog()
