"""
Heat Loss Assessment
Turns surveyed rooms, surfaces, emitters and the physics engine's raw output
into the payload the dashboard reads: room summaries, whole-house confidence,
readiness gate and per-room upgrade actions.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from domain.core.models import HeatLossAssessment, RoomSummary, SurfaceRow, ValidationResult
from models.enums import ConfidenceColor, DataSourceType, RiskFlag, ValidationState
from models.schemas import Emitter, HeatLossCalculation, RawRoomHeatLoss, Room, Surface, coerce_model, coerce_models
from services.confidence_scorer import confidence_to_color, confidence_scorer
from services.emitter_adequacy import DEFAULT_FLOW_TEMPS, classify_room_adequacy
from services.error_types import DataQualityError, log_error_with_context
from services.field_confidence import field_confidence, source_badge_label
from services.upgrade_actions import get_next_best_action_message, get_upgrade_actions
from services.validation_gates import evaluate_validation
from utils.logging_utils import log_stage

logger = logging.getLogger(__name__)

DANGLING_ROOM_FLAGS = (RiskFlag.MISSING_EXTERNAL_WALLS,)

NOT_CALCULATED = ValidationResult(
    state=ValidationState.INCOMPLETE,
    rule="not_calculated",
    message="Heat loss has not been calculated for the surveyed rooms",
    user_action="Run the heat loss calculation",
)

# Audit trail fields that carry the airtightness assumption
AIRTIGHTNESS_FIELDS = frozenset({"air_changes_per_hour", "airchangesperhour", "ach"})
UNVERIFIED_SOURCES = frozenset({DataSourceType.ASSUMED, DataSourceType.TABLE_LOOKUP, DataSourceType.UNKNOWN})


def _group_by_room(items: Iterable[Union[Surface, Emitter]]) -> Dict[str, list]:
    grouped = defaultdict(list)
    for item in items:
        grouped[item.room_id].append(item)
    return grouped


def airtightness_assumed(calculation: Optional[HeatLossCalculation]) -> bool:
    """True when the physics audit trail reports an unverified air change rate"""
    if calculation is None:
        return False
    return any(
        entry.field_name.strip().lower() in AIRTIGHTNESS_FIELDS and entry.source_type in UNVERIFIED_SOURCES
        for entry in calculation.audit_trail
    )


def _dangling_summary(raw: RawRoomHeatLoss, emitters: Sequence[Emitter], flow_temps: Sequence[int]) -> RoomSummary:
    log_error_with_context(
        DataQualityError(
            f"Heat loss result references unknown room '{raw.room_id}'",
            {'heat_loss_w': raw.heat_loss_w},
        ),
        {'room_id': raw.room_id, 'stage': 'build_room_summaries'},
    )
    return RoomSummary(
        room_id=raw.room_id,
        room_name=raw.room_id,
        heat_loss_w=raw.heat_loss_w,
        confidence_score=0,
        confidence_color=ConfidenceColor.RED,
        risk_flags=list(DANGLING_ROOM_FLAGS),
        adequacy=classify_room_adequacy(raw, emitters, flow_temps),
        room_found=False,
    )


def build_room_summaries(
    rooms: Iterable[Union[Room, Dict[str, Any]]],
    surfaces: Iterable[Union[Surface, Dict[str, Any]]],
    raw_room_losses: Iterable[Union[RawRoomHeatLoss, Dict[str, Any]]],
    emitters: Optional[Iterable[Union[Emitter, Dict[str, Any]]]] = None,
    flow_temps: Sequence[int] = DEFAULT_FLOW_TEMPS,
    extra_flags: Optional[Iterable[RiskFlag]] = None,
) -> List[RoomSummary]:
    """
    Build one summary per raw room result, in the physics engine's order.

    A result citing a room that was never surveyed still gets a summary
    (red, confidence 0, MISSING_EXTERNAL_WALLS) so its watts stay visible.
    """
    rooms_by_id = {room.room_id: room for room in coerce_models(Room, rooms)}
    surfaces_by_room = _group_by_room(coerce_models(Surface, surfaces))
    emitters_by_room = _group_by_room(coerce_models(Emitter, emitters))
    extra_flags = list(extra_flags or [])

    summaries = []
    for raw in coerce_models(RawRoomHeatLoss, raw_room_losses):
        room_emitters = emitters_by_room.get(raw.room_id, [])
        room = rooms_by_id.get(raw.room_id)
        if room is None:
            summaries.append(_dangling_summary(raw, room_emitters, flow_temps))
            continue

        confidence = confidence_scorer.score_room(room, surfaces_by_room.get(room.room_id, []), extra_flags)
        summaries.append(RoomSummary(
            room_id=room.room_id,
            room_name=room.display_name,
            heat_loss_w=raw.heat_loss_w,
            confidence_score=confidence.score,
            confidence_color=confidence.color,
            risk_flags=confidence.risk_flags,
            adequacy=classify_room_adequacy(raw, room_emitters, flow_temps, room.design_temp_c),
        ))

    return summaries


def assess_heat_loss(
    rooms: Iterable[Union[Room, Dict[str, Any]]],
    surfaces: Iterable[Union[Surface, Dict[str, Any]]],
    emitters: Optional[Iterable[Union[Emitter, Dict[str, Any]]]],
    calculation: Optional[Union[HeatLossCalculation, Dict[str, Any]]],
    flow_temps: Optional[Sequence[int]] = None,
) -> HeatLossAssessment:
    """
    Run the full confidence pipeline for one survey.

    Args:
        rooms: Surveyed rooms
        surfaces: Surveyed surfaces for all rooms
        emitters: Installed emitters for all rooms
        calculation: Physics engine response, or None before it has run
        flow_temps: Design flow temperatures to classify adequacy at

    Returns:
        HeatLossAssessment ready for presentation
    """
    rooms = coerce_models(Room, rooms)
    surfaces = coerce_models(Surface, surfaces)
    emitters = coerce_models(Emitter, emitters)
    calculation = coerce_model(HeatLossCalculation, calculation) or HeatLossCalculation()
    flow_temps = list(flow_temps) if flow_temps else list(DEFAULT_FLOW_TEMPS)

    with log_stage(
        "heat_loss_assessment",
        logger,
        rooms=len(rooms),
        surfaces=len(surfaces),
        room_results=len(calculation.room_heat_losses),
    ):
        extra_flags = [RiskFlag.ACH_ASSUMED] if airtightness_assumed(calculation) else []
        summaries = build_room_summaries(
            rooms, surfaces, calculation.room_heat_losses, emitters, flow_temps, extra_flags
        )

        room_confidence_by_id = {s.room_id: s.confidence_score for s in summaries}
        whole_house_confidence = confidence_scorer.score_result(calculation.room_heat_losses, room_confidence_by_id)
        if rooms and not summaries:
            validation = NOT_CALCULATED
            logger.warning(f"❌ Validation INCOMPLETE: {validation.message}")
        else:
            validation = evaluate_validation(rooms, surfaces, room_confidence_by_id)

        surfaces_by_room = _group_by_room(surfaces)
        upgrade_actions = {}
        next_best_actions = {}
        for summary in summaries:
            room_surfaces = surfaces_by_room.get(summary.room_id, [])
            upgrade_actions[summary.room_id] = get_upgrade_actions(summary.room_id, summary.risk_flags, room_surfaces)
            next_best_actions[summary.room_id] = get_next_best_action_message(summary.risk_flags, room_surfaces)

        if calculation.whole_house_heat_loss_w is not None:
            whole_house_w = calculation.whole_house_heat_loss_w
        else:
            whole_house_w = sum(s.heat_loss_w for s in summaries)

    return HeatLossAssessment(
        room_summaries=summaries,
        whole_house_confidence=whole_house_confidence,
        whole_house_color=confidence_to_color(whole_house_confidence),
        validation=validation,
        upgrade_actions=upgrade_actions,
        next_best_actions=next_best_actions,
        whole_house_heat_loss_w=whole_house_w,
        flow_temps=flow_temps,
    )


def surface_rows(room_id: str, surfaces: Iterable[Union[Surface, Dict[str, Any]]]) -> List[SurfaceRow]:
    """Per-surface detail rows for one room"""
    rows = []
    for surface in coerce_models(Surface, surfaces):
        if surface.room_id != room_id:
            continue
        rows.append(SurfaceRow(
            surface_id=surface.surface_id,
            classification=surface.surface_classification,
            source_badge=surface.source_type,
            source_label=source_badge_label(surface.source_type),
            confidence_score=field_confidence(surface.source_type, surface.measured_days_ago),
            u_value=surface.u_value,
            area_m2=surface.area_m2,
        ))
    return rows
