"""
Pytest configuration and fixtures
"""
import json
from pathlib import Path

import pytest

from app.config import get_settings
from models.schemas import HeatLossSurvey, Room, RoomDimensions, Surface

FIXTURES_DIR = Path(__file__).parent / "fixtures"
DEMO_SURVEY_PATH = FIXTURES_DIR / "demo_survey.json"


def make_room(room_id="room-1", source_type="LIDAR", floor_area_m2=12.0, volume_m3=30.0, **kwargs):
    return Room(
        room_id=room_id,
        name=kwargs.pop("name", room_id.replace("-", " ").title()),
        dimensions=RoomDimensions(
            floor_area_m2=floor_area_m2,
            volume_m3=volume_m3,
            source_type=source_type,
            measured_days_ago=kwargs.pop("measured_days_ago", None),
        ),
        **kwargs,
    )


def make_surface(surface_id, room_id="room-1", classification="EXTERNAL", source_type="LIDAR", **kwargs):
    kwargs.setdefault("u_value_measured", 0.3)
    return Surface(
        surface_id=surface_id,
        room_id=room_id,
        area_m2=kwargs.pop("area_m2", 10.0),
        surface_classification=classification,
        source_type=source_type,
        **kwargs,
    )


@pytest.fixture
def demo_survey_path():
    return DEMO_SURVEY_PATH


@pytest.fixture
def demo_survey_data():
    """Raw survey document as the mobile app would upload it"""
    with open(DEMO_SURVEY_PATH) as f:
        return json.load(f)


@pytest.fixture
def demo_survey(demo_survey_data):
    return HeatLossSurvey.model_validate(demo_survey_data)


@pytest.fixture
def scanned_room():
    """LiDAR-scanned room with two measured external walls"""
    room = make_room("living-room", source_type="LIDAR")
    surfaces = [
        make_surface("lr-n", "living-room", "EXTERNAL", "LIDAR"),
        make_surface("lr-e", "living-room", "EXTERNAL", "THERMAL_CAMERA"),
    ]
    return room, surfaces


@pytest.fixture
def assumed_room():
    """Room captured with nothing but assumptions and no surfaces"""
    return make_room("bedroom-1", source_type="ASSUMED"), []


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
