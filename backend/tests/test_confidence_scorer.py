"""
Tests for room and whole-house confidence rollups
"""

import logging

import pytest

from conftest import make_room, make_surface
from models.enums import ConfidenceColor, RiskFlag
from services.confidence_scorer import (
    ConfidenceScorer,
    confidence_to_color,
    glazing_score,
    needs_urgent_attention,
    result_confidence,
    room_confidence,
    wall_construction_assumed,
)


class TestConfidenceColor:
    """Traffic-light boundaries are exact"""

    @pytest.mark.parametrize("score,color", [
        (100, ConfidenceColor.GREEN),
        (80, ConfidenceColor.GREEN),
        (79, ConfidenceColor.AMBER),
        (50, ConfidenceColor.AMBER),
        (49, ConfidenceColor.RED),
        (0, ConfidenceColor.RED),
    ])
    def test_boundaries(self, score, color):
        assert confidence_to_color(score) == color

    def test_urgent_attention_below_fifty(self):
        assert needs_urgent_attention(49)
        assert not needs_urgent_attention(50)


class TestRoomConfidence:
    """Weighted room rollup and risk flag derivation"""

    def test_scanned_room_is_green_without_flags(self, scanned_room):
        room, surfaces = scanned_room
        result = room_confidence(room, surfaces)

        # 0.2*95 + 0.4*95 + 0.3*95 + 0.1*80 = 93.5
        assert result.score == 94
        assert result.color == ConfidenceColor.GREEN
        assert result.risk_flags == []

    def test_room_without_external_walls(self, assumed_room):
        room, surfaces = assumed_room
        result = room_confidence(room, surfaces)

        # 0.2*20 + 0.4*20 + 0.3*20 + 0.1*80 = 26
        assert result.score == 26
        assert result.color == ConfidenceColor.RED
        assert result.risk_flags == [
            RiskFlag.GEOMETRY_ASSUMED,
            RiskFlag.MISSING_EXTERNAL_WALLS,
            RiskFlag.GLAZING_ASSUMED,
        ]
        assert result.components["external_walls"] == 20

    def test_internal_walls_only_still_missing_external(self):
        room = make_room("hall", source_type="LIDAR")
        surfaces = [make_surface("h-1", "hall", "INTERNAL"), make_surface("h-2", "hall", "PARTY_WALL")]

        assert RiskFlag.MISSING_EXTERNAL_WALLS in room_confidence(room, surfaces).risk_flags

    def test_table_lookup_wall_flags_construction(self):
        room = make_room("kitchen", source_type="MANUAL")
        surfaces = [make_surface("k-n", "kitchen", "EXTERNAL", "TABLE_LOOKUP", u_value_measured=None, u_value_calculated=1.6)]

        result = room_confidence(room, surfaces)

        # 0.2*70 + 0.4*40 + 0.3*40 + 0.1*80 = 50
        assert result.score == 50
        assert result.color == ConfidenceColor.AMBER
        assert result.risk_flags == [RiskFlag.WALL_CONSTRUCTION_ASSUMED, RiskFlag.GLAZING_ASSUMED]

    def test_measured_wall_without_u_value_flags_construction(self):
        surface = make_surface("w", classification="EXTERNAL", source_type="LIDAR", u_value_measured=None)
        assert wall_construction_assumed(surface)

        result = room_confidence(make_room(), [surface])
        assert RiskFlag.WALL_CONSTRUCTION_ASSUMED in result.risk_flags
        assert RiskFlag.GLAZING_ASSUMED not in result.risk_flags

    def test_unrecognised_wall_source_flags_construction(self):
        surfaces = [
            make_surface("w-1", source_type="GARBAGE_TOKEN"),
            make_surface("w-2", source_type="LIDAR"),
        ]
        assert wall_construction_assumed(surfaces[0])

        result = room_confidence(make_room(), surfaces)

        # unknown provenance scores 20: 0.2*95 + 0.4*57.5 + 0.3*57.5 + 0.1*80 = 67.25
        assert result.score == 67
        assert result.components["external_walls"] == 57.5
        assert result.risk_flags == [RiskFlag.WALL_CONSTRUCTION_ASSUMED]

    def test_unheated_adjacent_lowers_other_component(self, scanned_room):
        room, surfaces = scanned_room
        garage = make_surface("lr-garage", "living-room", "UNHEATED_ADJACENT", "MANUAL")

        result = room_confidence(room, surfaces + [garage])

        # other drops 80 -> 60: 93.5 - 2 = 91.5
        assert result.score == 92
        assert result.components["other"] == 60
        assert result.risk_flags == [RiskFlag.UNHEATED_ADJACENT_MODEL]

    def test_unknown_classification_is_not_an_external_wall(self):
        room = make_room(source_type="LIDAR")
        surfaces = [make_surface("mystery", classification="CONSERVATORY")]

        result = room_confidence(room, surfaces)

        assert RiskFlag.MISSING_EXTERNAL_WALLS in result.risk_flags
        assert RiskFlag.WALL_CONSTRUCTION_ASSUMED in result.risk_flags

    def test_glazing_mirrors_external_walls(self, scanned_room):
        room, surfaces = scanned_room
        result = room_confidence(room, surfaces)

        assert glazing_score(result.components["external_walls"]) == result.components["glazing"]

    def test_extra_flags_do_not_change_score(self, scanned_room):
        room, surfaces = scanned_room
        plain = room_confidence(room, surfaces)
        flagged = room_confidence(room, surfaces, extra_flags=[RiskFlag.ACH_ASSUMED])

        assert flagged.score == plain.score
        assert flagged.risk_flags == [RiskFlag.ACH_ASSUMED]

    def test_flags_are_deduplicated(self):
        room = make_room(source_type="MANUAL")
        surfaces = [
            make_surface("a", classification="EXTERNAL", source_type="ASSUMED"),
            make_surface("b", classification="EXTERNAL", source_type="ASSUMED"),
            make_surface("c", classification="UNKNOWN"),
        ]

        flags = room_confidence(room, surfaces).risk_flags
        assert len(flags) == len(set(flags))

    def test_accepts_plain_dicts(self, scanned_room):
        room, surfaces = scanned_room
        result = room_confidence(room.model_dump(), [s.model_dump() for s in surfaces])

        assert result == room_confidence(room, surfaces)

    def test_deterministic(self, demo_survey):
        for room in demo_survey.rooms:
            surfaces = [s for s in demo_survey.surfaces if s.room_id == room.room_id]
            assert room_confidence(room, surfaces) == room_confidence(room, surfaces)

    def test_stale_geometry_degrades_score(self):
        fresh = room_confidence(make_room(source_type="MANUAL"), [make_surface("w")])
        stale = room_confidence(make_room(source_type="MANUAL", measured_days_ago=3 * 365), [make_surface("w")])

        assert stale.score < fresh.score
        assert stale.components["geometry"] == 56


class TestResultConfidence:
    """Whole-house confidence weighted by heat loss"""

    def test_single_room_equals_room_score(self):
        losses = [{"room_id": "a", "total_loss_w": 1234}]
        assert result_confidence(losses, {"a": 67}) == 67

    def test_weighted_by_heat_loss(self):
        losses = [
            {"room_id": "a", "total_loss_w": 1000},
            {"room_id": "b", "total_loss_w": 3000},
        ]
        assert result_confidence(losses, {"a": 90, "b": 30}) == 45

    def test_missing_room_counts_as_neutral(self):
        losses = [
            {"room_id": "a", "total_loss_w": 1000},
            {"room_id": "b", "total_loss_w": 1000},
        ]
        assert result_confidence(losses, {"a": 90}) == 70

    def test_zero_confidence_room_is_not_neutral(self):
        losses = [
            {"room_id": "a", "total_loss_w": 1000},
            {"room_id": "b", "total_loss_w": 1000},
        ]
        assert result_confidence(losses, {"a": 90, "b": 0}) == 45

    def test_zero_total_loss(self):
        assert result_confidence([], {}) == 0
        assert result_confidence([{"room_id": "a", "total_loss_w": 0}], {"a": 90}) == 0

    def test_total_falls_back_to_sum_of_parts(self):
        losses = [
            {"room_id": "a", "fabric_loss_w": 600, "ventilation_loss_w": 400},
            {"room_id": "b", "total_loss_w": 3000},
        ]
        assert result_confidence(losses, {"a": 90, "b": 30}) == 45

    def test_logs_low_confidence_rooms(self, caplog):
        losses = [{"room_id": "a", "total_loss_w": 1000}]
        with caplog.at_level(logging.WARNING, logger="services.confidence_scorer"):
            ConfidenceScorer().score_result(losses, {"a": 20})

        assert "[DATA_QUALITY] heat_loss_result" in caplog.text
