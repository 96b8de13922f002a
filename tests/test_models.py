"""
Tests for batch-dem-reader response models.

Covers:
- Valid creation
- extra="forbid" rejects unknown fields
- to_text() output contains expected strings
- format_response() in json/text modes
"""

import json

import pytest
from pydantic import ValidationError

from batch_dem_reader.models.responses import (
    ErrorResponse,
    MultiPointResponse,
    PointElevationResponse,
    PointInfo,
    StatusResponse,
    TileLookupResponse,
    format_response,
)


def _point(**overrides) -> PointElevationResponse:
    defaults = dict(
        x=10.5,
        y=20.5,
        elevation=115.0,
        tile="tileA.tif.bz2",
        interpolation="bilinear",
        message="Elevation at point: 115.0",
    )
    defaults.update(overrides)
    return PointElevationResponse(**defaults)


# ---------------------------------------------------------------------------
# ErrorResponse
# ---------------------------------------------------------------------------


class TestErrorResponse:
    def test_text(self):
        assert ErrorResponse(error="boom").to_text() == "Error: boom"

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            ErrorResponse(error="boom", code=1)


# ---------------------------------------------------------------------------
# PointElevationResponse
# ---------------------------------------------------------------------------


class TestPointElevationResponse:
    def test_create(self):
        r = _point()
        assert r.elevation == 115.0
        assert r.tile == "tileA.tif.bz2"

    def test_null_elevation(self):
        r = _point(elevation=None, tile=None)
        assert json.loads(r.model_dump_json())["elevation"] is None
        assert "no data" in r.to_text()
        assert "Tile: none" in r.to_text()

    def test_text(self):
        text = _point().to_text()
        assert "(10.500000, 20.500000)" in text
        assert "115.0" in text
        assert "bilinear" in text

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            _point(source="cop30")


# ---------------------------------------------------------------------------
# MultiPointResponse
# ---------------------------------------------------------------------------


class TestMultiPointResponse:
    def _make(self, **overrides):
        defaults = dict(
            point_count=2,
            points=[PointInfo(x=1.0, y=2.0, elevation=100.0), PointInfo(x=3.0, y=4.0, elevation=None)],
            elevation_range=[100.0, 100.0],
            missing_count=1,
            interpolation="nearest",
            message="ok",
        )
        defaults.update(overrides)
        return MultiPointResponse(**defaults)

    def test_text_lists_points(self):
        text = self._make().to_text()
        assert "Elevation for 2 point(s)" in text
        assert "(1.000000, 2.000000): 100.0" in text
        assert "(3.000000, 4.000000): no data" in text
        assert "Without data: 1" in text

    def test_text_without_range(self):
        text = self._make(elevation_range=None).to_text()
        assert "Range: no data" in text

    def test_point_count_positive(self):
        with pytest.raises(ValidationError):
            self._make(point_count=0)

    def test_missing_count_non_negative(self):
        with pytest.raises(ValidationError):
            self._make(missing_count=-1)


# ---------------------------------------------------------------------------
# TileLookupResponse
# ---------------------------------------------------------------------------


class TestTileLookupResponse:
    def test_found_text(self):
        r = TileLookupResponse(
            x=10.5,
            y=20.5,
            tile="tileA.tif.bz2",
            bounds=[10.0, 20.0, 11.0, 21.0],
            cached=True,
            open=True,
            message="found",
        )
        text = r.to_text()
        assert "Tile: tileA.tif.bz2" in text
        assert "10.000000" in text
        assert "Cached: yes" in text
        assert "Open: yes" in text

    def test_not_found_defaults(self):
        r = TileLookupResponse(x=0.0, y=0.0, message="none")
        assert r.tile is None
        assert r.cached is False
        assert r.to_text() == "No tile covers (0.000000, 0.000000)"


# ---------------------------------------------------------------------------
# StatusResponse
# ---------------------------------------------------------------------------


class TestStatusResponse:
    def test_defaults(self):
        r = StatusResponse(interpolation="bilinear")
        assert r.server == "batch-dem-reader"
        assert r.reader_open is False
        assert r.downloads == 0
        assert "Tile set: not configured" in r.to_text()

    def test_open_text(self):
        r = StatusResponse(
            base_url="https://dem.example.com/tiles/",
            interpolation="bilinear",
            reader_open=True,
            tiles_indexed=3,
            tiles_open=1,
            lookups=5,
            misses=2,
            downloads=1,
            opens=1,
        )
        text = r.to_text()
        assert "Tiles: 3 indexed, 1 open" in text
        assert "Lookups: 5 (2 without data)" in text

    def test_counters_non_negative(self):
        with pytest.raises(ValidationError):
            StatusResponse(interpolation="bilinear", lookups=-1)


# ---------------------------------------------------------------------------
# format_response
# ---------------------------------------------------------------------------


class TestFormatResponse:
    def test_json_default(self):
        data = json.loads(format_response(_point()))
        assert data["elevation"] == 115.0

    def test_text(self):
        assert format_response(_point(), "text") == _point().to_text()

    def test_unknown_mode_falls_back_to_json(self):
        data = json.loads(format_response(ErrorResponse(error="x"), "yaml"))
        assert data == {"error": "x"}
