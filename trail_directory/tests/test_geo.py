"""Tests for radius search helpers."""

import pytest

CHAMONIX = (45.9237, 6.8694)
COURMAYEUR = (45.7969, 6.9690)
BARCELONA = (41.3874, 2.1686)


class TestHaversine:
    def test_same_point_is_zero(self):
        from trail_directory.services.geo import haversine_km
        assert haversine_km(*CHAMONIX, *CHAMONIX) == 0

    def test_known_distance(self):
        from trail_directory.services.geo import haversine_km
        # Chamonix to Courmayeur is roughly 16 km as the crow flies
        assert haversine_km(*CHAMONIX, *COURMAYEUR) == pytest.approx(16, abs=2)

    def test_symmetric(self):
        from trail_directory.services.geo import haversine_km
        assert haversine_km(*CHAMONIX, *BARCELONA) == pytest.approx(haversine_km(*BARCELONA, *CHAMONIX))


class TestBoundingBox:
    def test_contains_center(self):
        from trail_directory.services.geo import bounding_box
        min_lat, max_lat, min_lon, max_lon = bounding_box(*CHAMONIX, 50)
        assert min_lat < CHAMONIX[0] < max_lat
        assert min_lon < CHAMONIX[1] < max_lon

    def test_latitude_clamped_at_pole(self):
        from trail_directory.services.geo import bounding_box
        _, max_lat, _, _ = bounding_box(89.9, 0, 100)
        assert max_lat == 90.0

    def test_antimeridian_drops_longitude_filter(self):
        from trail_directory.services.geo import box_filters
        filters = box_filters(0, 179.9, 100)
        assert {col for _, col, _ in filters} == {"latitude"}

    def test_regular_box_filters_both_axes(self):
        from trail_directory.services.geo import box_filters
        filters = box_filters(*CHAMONIX, 50)
        assert len(filters) == 4


class TestWithinRadius:
    def test_filters_sorts_and_annotates(self):
        from trail_directory.services.geo import within_radius
        rows = [
            {"id": "far", "latitude": BARCELONA[0], "longitude": BARCELONA[1]},
            {"id": "near", "latitude": COURMAYEUR[0], "longitude": COURMAYEUR[1]},
            {"id": "here", "latitude": CHAMONIX[0], "longitude": CHAMONIX[1]},
        ]
        hits = within_radius(rows, *CHAMONIX, 50)
        assert [h["id"] for h in hits] == ["here", "near"]
        assert hits[0]["distance_km"] == 0
        assert isinstance(hits[1]["distance_km"], float)

    def test_skips_rows_without_coordinates(self):
        from trail_directory.services.geo import within_radius
        rows = [{"id": "x", "latitude": None, "longitude": None}]
        assert within_radius(rows, *CHAMONIX, 50) == []

    def test_limit(self):
        from trail_directory.services.geo import within_radius
        rows = [{"id": str(i), "latitude": CHAMONIX[0], "longitude": CHAMONIX[1]} for i in range(5)]
        assert len(within_radius(rows, *CHAMONIX, 10, limit=2)) == 2
