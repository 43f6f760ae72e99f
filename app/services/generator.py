"""Activity generator - simulates the activities one sync pulls from a provider."""

import logging
import random
from dataclasses import asdict, dataclass
from typing import Optional

from app.services.catalog import MetricCatalog, MetricDefinition

logger = logging.getLogger(__name__)

MIN_ACTIVITIES = 1
MAX_ACTIVITIES = 4


@dataclass(frozen=True)
class GeneratedActivity:
    """One activity event with its Fitcoin value."""

    title: str
    fitcoin: float
    metric: str
    icon: str
    metric_key: str
    unit: str
    raw_value: float

    def to_dict(self) -> dict:
        return asdict(self)


def draw_raw_value(unit: str, rng: random.Random) -> float:
    """Draw a plausible raw reading for a metric based on its unit."""
    if "steps" in unit:
        return rng.randint(1000, 8999)
    if "minutes" in unit:
        return rng.randint(10, 59)
    if "kilometers" in unit:
        return round(rng.uniform(1, 10), 1)
    if "hours" in unit:
        return round(rng.uniform(6, 9), 1)
    if "kcal" in unit:
        return rng.randint(50, 449)
    return rng.randint(10, 99)


def humanize_metric_key(key: str) -> str:
    """'run_distance' -> 'Run Distance'."""
    return " ".join(word.capitalize() for word in key.replace("-", "_").split("_") if word)


def icon_for_metric(key: str) -> str:
    """Pick a UI icon tag from keywords in the metric key."""
    if "sleep" in key:
        return "Moon"
    if "cycle" in key or "bike" in key:
        return "Bike"
    if "run" in key or "step" in key or "walk" in key:
        return "Footprints"
    return "Zap"


def format_metric(raw_value: float, unit: str) -> str:
    """Human-readable reading, e.g. '4,200 steps'."""
    return f"{raw_value:,} {unit}"


class ActivityGenerator:
    """Produces a random but plausible batch of activities for a provider."""

    def __init__(self, catalog: MetricCatalog, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def build_activity(self, definition: MetricDefinition, raw_value: float) -> GeneratedActivity:
        return GeneratedActivity(
            title=humanize_metric_key(definition.key),
            fitcoin=definition.to_fitcoin(raw_value),
            metric=format_metric(raw_value, definition.unit),
            icon=icon_for_metric(definition.key),
            metric_key=definition.key,
            unit=definition.unit,
            raw_value=raw_value,
        )

    def generate(self, provider: Optional[str]) -> list[GeneratedActivity]:
        """
        Generate between 1 and 4 activities for one sync.

        Metrics are picked without replacement from the provider's set
        (shuffle, then take the first N).
        """
        metrics = list(self.catalog.lookup(provider).values())
        count = self.rng.randint(MIN_ACTIVITIES, MAX_ACTIVITIES)
        self.rng.shuffle(metrics)

        activities = [
            self.build_activity(definition, draw_raw_value(definition.unit, self.rng))
            for definition in metrics[:count]
        ]
        logger.debug(f"Generated {len(activities)} activities for provider {provider!r}")
        return activities
