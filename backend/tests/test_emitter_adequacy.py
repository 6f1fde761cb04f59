"""
Tests for multi-setpoint emitter adequacy classification
"""

import pytest

from models.enums import AdequacyStatus
from models.schemas import Emitter, RawRoomHeatLoss
from services.emitter_adequacy import (
    DEFAULT_FLOW_TEMPS,
    classify_room_adequacy,
    classify_setpoint,
    classify_shortfall,
    emitter_output_at,
)


class TestShortfallThresholds:
    """500 W separates a panel swap from re-engineering the circuit"""

    @pytest.mark.parametrize("shortfall,status", [
        (-100, AdequacyStatus.OK),
        (0, AdequacyStatus.OK),
        (1, AdequacyStatus.UPSIZE),
        (500, AdequacyStatus.UPSIZE),
        (501, AdequacyStatus.MAJOR_UPSIZE),
        (700, AdequacyStatus.MAJOR_UPSIZE),
    ])
    def test_thresholds(self, shortfall, status):
        assert classify_shortfall(shortfall) == status

    def test_shortfall_from_wattages(self):
        outcome = classify_setpoint({"flow_temp_c": 45, "required_w": 1700, "rated_w": 1000})
        assert outcome.status == AdequacyStatus.MAJOR_UPSIZE
        assert outcome.shortfall_w == 700

    def test_exactly_500_is_upsize(self):
        outcome = classify_setpoint({"flow_temp_c": 45, "required_w": 1500, "rated_w": 1000})
        assert outcome.status == AdequacyStatus.UPSIZE

    def test_supplied_shortfall_used_when_wattages_missing(self):
        outcome = classify_setpoint({"flow_temp_c": 55, "shortfall_w": 250})
        assert outcome.status == AdequacyStatus.UPSIZE


class TestBooleanOnlyEntries:

    def test_adequate_true_is_ok(self):
        assert classify_setpoint({"flow_temp_c": 75, "adequate": True}).status == AdequacyStatus.OK

    def test_not_adequate_without_magnitude_is_major(self):
        assert classify_setpoint({"flow_temp_c": 45, "adequate": False}).status == AdequacyStatus.MAJOR_UPSIZE

    def test_wattages_beat_boolean(self):
        outcome = classify_setpoint({"flow_temp_c": 45, "adequate": False, "required_w": 1000, "rated_w": 1200})
        assert outcome.status == AdequacyStatus.OK

    def test_empty_entry_is_unknown(self):
        assert classify_setpoint({"flow_temp_c": 45}).status == AdequacyStatus.UNKNOWN
        assert classify_setpoint(None, 45).status == AdequacyStatus.UNKNOWN


class TestRoomAdequacy:
    """Each setpoint is classified independently"""

    def test_setpoints_are_independent(self):
        raw = RawRoomHeatLoss(room_id="lounge", total_loss_w=1500, adequacy={
            "at_45c": {"adequate": False, "required_w": 2200, "rated_w": 1400},
            "at_55c": {"adequate": False, "required_w": 1650, "rated_w": 1400},
            "at_75c": {"adequate": True, "required_w": 1650, "rated_w": 2100},
        })

        outcomes = classify_room_adequacy(raw)

        assert set(outcomes) == set(DEFAULT_FLOW_TEMPS)
        assert outcomes[45].status == AdequacyStatus.MAJOR_UPSIZE
        assert outcomes[55].status == AdequacyStatus.UPSIZE
        assert outcomes[75].status == AdequacyStatus.OK

    def test_missing_setpoint_without_emitters_is_unknown(self):
        raw = RawRoomHeatLoss(room_id="hall", total_loss_w=400, adequacy={"at_45c": {"adequate": True}})

        outcomes = classify_room_adequacy(raw)

        assert outcomes[45].status == AdequacyStatus.OK
        assert outcomes[55].status == AdequacyStatus.UNKNOWN
        assert outcomes[75].status == AdequacyStatus.UNKNOWN

    def test_derives_missing_setpoints_from_emitter_ratings(self):
        raw = RawRoomHeatLoss(room_id="kitchen", total_loss_w=800)
        emitters = [Emitter(emitter_id="rad", room_id="kitchen", rated_output_w=1000)]

        outcomes = classify_room_adequacy(raw, emitters)

        # required 880 W; output ~493 W at 55 °C flow, ~974 W at 75 °C flow
        assert outcomes[55].status == AdequacyStatus.UPSIZE
        assert outcomes[55].derived
        assert outcomes[55].rated_w == pytest.approx(492.6, abs=0.5)
        assert outcomes[75].status == AdequacyStatus.OK
        assert outcomes[45].status == AdequacyStatus.MAJOR_UPSIZE

    def test_emitters_in_other_rooms_are_ignored(self):
        raw = RawRoomHeatLoss(room_id="kitchen", total_loss_w=800)
        emitters = [Emitter(emitter_id="rad", room_id="lounge", rated_output_w=5000)]

        assert classify_room_adequacy(raw, emitters)[75].status == AdequacyStatus.UNKNOWN

    def test_per_emitter_record_is_classified(self):
        raw = RawRoomHeatLoss.model_validate({
            "room_id": "kitchen",
            "total_loss_w": 1000,
            "emitter_adequacy": {
                "emitter_id": "rad-1",
                "room_heat_loss_w": 1000,
                "current_output_at_mwt_75": 2000,
                "current_output_at_mwt_55": 1200,
                "current_output_at_mwt_45": 800,
                "adequate_at_mwt_75": True,
                "adequate_at_mwt_55": True,
                "adequate_at_mwt_45": False,
            },
        })

        outcomes = classify_room_adequacy(raw)

        # required 1000 * 1.1 = 1100
        assert outcomes[45].status == AdequacyStatus.UPSIZE
        assert outcomes[45].shortfall_w == 300
        assert outcomes[55].status == AdequacyStatus.OK
        assert outcomes[75].status == AdequacyStatus.OK
        assert not outcomes[45].derived

    def test_custom_flow_temps(self):
        raw = RawRoomHeatLoss(room_id="a", total_loss_w=100, adequacy=[{"flow_temp_c": 50, "adequate": True}])

        outcomes = classify_room_adequacy(raw, flow_temps=[50])

        assert list(outcomes) == [50]
        assert outcomes[50].status == AdequacyStatus.OK


class TestEmitterOutput:

    def test_rated_output_at_reference_delta_t(self):
        emitter = Emitter(emitter_id="r", room_id="a", rated_output_w=1000, rated_delta_t_k=50)
        # flow 75 -> mean water 70 -> delta T 50 against a 20 °C room
        assert emitter_output_at(emitter, 75, 20) == pytest.approx(1000)

    def test_no_output_when_water_cooler_than_room(self):
        emitter = Emitter(emitter_id="r", room_id="a", rated_output_w=1000)
        assert emitter_output_at(emitter, 25, 21) == 0.0
