"""Tests for the activity generator.

The generator takes a seeded random.Random, so every run is reproducible.
"""

import random

import pytest

from app.services.catalog import MetricDefinition, build_catalog
from app.services.generator import (
    ActivityGenerator,
    draw_raw_value,
    format_metric,
    humanize_metric_key,
    icon_for_metric,
)


@pytest.fixture
def catalog():
    return build_catalog()


class TestRawValues:

    @pytest.mark.parametrize("unit, low, high, integral", [
        ("steps", 1000, 8999, True),
        ("minutes", 10, 59, True),
        ("minutes_in_zone_3_plus", 10, 59, True),
        ("kilometers", 1.0, 10.0, False),
        ("hours", 6.0, 9.0, False),
        ("kcal", 50, 449, True),
        ("floors", 10, 99, True),
        ("percent_improvement", 10, 99, True),
    ])
    def test_unit_class_ranges(self, unit, low, high, integral):
        rng = random.Random(1)
        for _ in range(300):
            value = draw_raw_value(unit, rng)
            assert low <= value <= high
            if integral:
                assert value == int(value)
            else:
                assert value == round(value, 1)


class TestPresentation:

    @pytest.mark.parametrize("key, title", [
        ("run_distance", "Run Distance"),
        ("steps", "Steps"),
        ("resting_heart_rate_improvement", "Resting Heart Rate Improvement"),
    ])
    def test_humanize(self, key, title):
        assert humanize_metric_key(key) == title

    @pytest.mark.parametrize("key, icon", [
        ("run_distance", "Footprints"),
        ("steps", "Footprints"),
        ("cycle_distance", "Bike"),
        ("sleep_hours", "Moon"),
        ("sleep_score", "Moon"),
        ("heart_points", "Zap"),
        ("walk_to_sleep", "Moon"),
    ])
    def test_icon(self, key, icon):
        assert icon_for_metric(key) == icon

    def test_format_metric(self):
        assert format_metric(4200, "steps") == "4,200 steps"
        assert format_metric(5.2, "kilometers") == "5.2 kilometers"


class TestGenerate:

    def test_never_empty_and_at_most_four(self, catalog):
        generator = ActivityGenerator(catalog, rng=random.Random(3))
        counts = set()
        for _ in range(200):
            activities = generator.generate("fitbit")
            assert 1 <= len(activities) <= 4
            counts.add(len(activities))
        assert counts == {1, 2, 3, 4}

    def test_metrics_selected_without_replacement(self, catalog):
        generator = ActivityGenerator(catalog, rng=random.Random(5))
        for _ in range(100):
            keys = [a.metric_key for a in generator.generate("samsung_health")]
            assert len(keys) == len(set(keys))
            assert set(keys) <= set(catalog.lookup("samsung_health"))

    def test_small_metric_set_caps_count(self, catalog):
        generator = ActivityGenerator(catalog, rng=random.Random(8))
        for _ in range(50):
            assert 1 <= len(generator.generate("google_fit")) <= 2

    @pytest.mark.parametrize("provider", ["strava", "samsung_health", "google_fit", "fitbit", "apple_health", "garmin", None])
    def test_conversion_matches_rate_table(self, catalog, provider):
        generator = ActivityGenerator(catalog, rng=random.Random(11))
        metrics = catalog.lookup(provider)
        for _ in range(50):
            for activity in generator.generate(provider):
                definition = metrics[activity.metric_key]
                assert activity.unit == definition.unit
                assert activity.fitcoin == round(activity.raw_value / definition.value_per_fitcoin, 2)
                assert activity.fitcoin >= 0
                assert activity.metric == format_metric(activity.raw_value, definition.unit)
                assert activity.title == humanize_metric_key(activity.metric_key)

    def test_unknown_provider_uses_fallback_set(self, catalog):
        generator = ActivityGenerator(catalog, rng=random.Random(2))
        keys = {a.metric_key for a in generator.generate("unknown_app")}
        assert keys <= set(catalog.lookup("wearables"))

    def test_same_seed_same_output(self, catalog):
        first = ActivityGenerator(catalog, rng=random.Random(99)).generate("strava")
        second = ActivityGenerator(catalog, rng=random.Random(99)).generate("strava")
        assert first == second

    def test_build_activity(self, catalog):
        generator = ActivityGenerator(catalog)
        activity = generator.build_activity(MetricDefinition("steps", "steps", 1000), 4200)
        assert activity.title == "Steps"
        assert activity.fitcoin == 4.2
        assert activity.metric == "4,200 steps"
        assert activity.icon == "Footprints"
        assert activity.to_dict()["raw_value"] == 4200
