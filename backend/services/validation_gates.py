"""
Readiness Gate for heat-loss results
INCOMPLETE: missing or degenerate input, PROVISIONAL: computable but risky,
READY: safe to use as a quote or compliance input.

Recomputed on every call; no transition history is kept.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from domain.core.models import ValidationResult
from models.enums import ValidationState
from models.schemas import Room, Surface, coerce_models

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 50
MAJORITY_LOW_CONFIDENCE_RATIO = 0.5


def evaluate_validation(
    rooms: Iterable[Union[Room, Dict[str, Any]]],
    surfaces: Optional[Iterable[Union[Surface, Dict[str, Any]]]],
    room_confidence_by_id: Mapping[str, int],
) -> ValidationResult:
    """
    Run the readiness rules in order and report the first one that fires.

    Args:
        rooms: Surveyed rooms
        surfaces: Surveyed surfaces (accepted for parity with the other
            engine entry points; the current rules read rooms and scores only)
        room_confidence_by_id: Room confidence scores keyed by room id

    Returns:
        ValidationResult with the state, rule name and offending room ids
    """
    rooms = coerce_models(Room, rooms)

    # Rule 1: nothing surveyed
    if not rooms:
        result = ValidationResult(
            state=ValidationState.INCOMPLETE,
            rule="no_rooms",
            message="No rooms surveyed",
            user_action="Add at least one room before calculating heat loss",
        )
        logger.warning(f"❌ Validation INCOMPLETE: {result.message}")
        return result

    # Rule 2: invalid geometry is a hard stop, never just low confidence
    invalid = [
        room.room_id for room in rooms
        if room.dimensions.floor_area_m2 <= 0 or room.dimensions.volume_m3 <= 0
    ]
    if invalid:
        result = ValidationResult(
            state=ValidationState.INCOMPLETE,
            rule="invalid_geometry",
            message=f"Invalid geometry in {len(invalid)} room(s): floor area and volume must be positive",
            user_action="Re-measure or scan the listed rooms",
            room_ids=invalid,
        )
        logger.warning(f"❌ Validation INCOMPLETE: {result.message} {invalid}")
        return result

    low = [room_id for room_id, score in room_confidence_by_id.items() if score < LOW_CONFIDENCE_THRESHOLD]

    # Rule 3: most surveyed rooms are low confidence; scores for rooms outside
    # the survey (dangling results) only count towards rule 4
    surveyed_ids = {room.room_id for room in rooms}
    low_surveyed = [room_id for room_id in low if room_id in surveyed_ids]
    if len(low_surveyed) / len(surveyed_ids) > MAJORITY_LOW_CONFIDENCE_RATIO:
        result = ValidationResult(
            state=ValidationState.PROVISIONAL,
            rule="majority_low_confidence",
            message=f"{len(low_surveyed)} of {len(surveyed_ids)} rooms have confidence below {LOW_CONFIDENCE_THRESHOLD}",
            user_action="Resolve the top upgrade action in each red room",
            room_ids=low_surveyed,
        )
        logger.warning(f"⚠️ Validation PROVISIONAL: {result.message}")
        return result

    # Rule 4: any low-confidence room at all blocks READY
    if low:
        result = ValidationResult(
            state=ValidationState.PROVISIONAL,
            rule="low_confidence_room",
            message=f"{len(low)} room(s) have confidence below {LOW_CONFIDENCE_THRESHOLD}",
            user_action="Resolve the top upgrade action in each red room",
            room_ids=low,
        )
        logger.warning(f"⚠️ Validation PROVISIONAL: {result.message}")
        return result

    result = ValidationResult(
        state=ValidationState.READY,
        rule="all_checks_passed",
        message="All validation checks passed",
    )
    logger.info(f"✅ Validation READY: {len(rooms)} rooms")
    return result


def get_validation_state(
    rooms: Iterable[Union[Room, Dict[str, Any]]],
    surfaces: Optional[Iterable[Union[Surface, Dict[str, Any]]]],
    room_confidence_by_id: Mapping[str, int],
) -> ValidationState:
    return evaluate_validation(rooms, surfaces, room_confidence_by_id).state


def is_presentable(state: ValidationState) -> bool:
    """Only READY results may be presented as final quote or compliance figures"""
    return ValidationState(state) == ValidationState.READY
