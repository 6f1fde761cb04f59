"""
Emitter Adequacy Classification
Classifies radiator sufficiency at each tracked design flow temperature.
Each setpoint is classified on its own; no outcome depends on another.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Union

from domain.core.models import AdequacyOutcome
from models.enums import AdequacyStatus
from models.schemas import DESIGN_MARGIN, Emitter, RawRoomHeatLoss, SetpointAdequacy, coerce_model, coerce_models

logger = logging.getLogger(__name__)

DEFAULT_FLOW_TEMPS = (45, 55, 75)

# Shortfall above this means re-engineering the emitter circuit rather than
# swapping a radiator for the next panel size up
MAJOR_UPSIZE_THRESHOLD_W = 500

RADIATOR_EXPONENT = 1.3
FLOW_RETURN_DROP_K = 10.0


def classify_shortfall(shortfall_w: float) -> AdequacyStatus:
    """Map a shortfall in watts to an adequacy status (500 W counts as a plain upsize)"""
    if shortfall_w <= 0:
        return AdequacyStatus.OK
    if shortfall_w <= MAJOR_UPSIZE_THRESHOLD_W:
        return AdequacyStatus.UPSIZE
    return AdequacyStatus.MAJOR_UPSIZE


def classify_setpoint(
    entry: Optional[Union[SetpointAdequacy, Dict[str, Any]]],
    flow_temp_c: Optional[int] = None,
    derived: bool = False,
) -> AdequacyOutcome:
    """
    Classify one setpoint.

    Wattages beat booleans: when required and rated output are both known the
    shortfall is computed from them, otherwise the reported shortfall is used,
    and only then the bare adequate flag. A bare "not adequate" with no
    magnitude is treated as a major upsize.
    """
    entry = coerce_model(SetpointAdequacy, entry)
    if entry is None:
        return AdequacyOutcome(flow_temp_c=flow_temp_c or 0, status=AdequacyStatus.UNKNOWN)

    temp = flow_temp_c if flow_temp_c is not None else entry.flow_temp_c

    if entry.required_w is not None and entry.rated_w is not None:
        shortfall = max(0.0, entry.required_w - entry.rated_w)
    elif entry.shortfall_w is not None:
        shortfall = max(0.0, entry.shortfall_w)
    elif entry.adequate is not None:
        status = AdequacyStatus.OK if entry.adequate else AdequacyStatus.MAJOR_UPSIZE
        return AdequacyOutcome(flow_temp_c=temp, status=status, derived=derived)
    else:
        return AdequacyOutcome(flow_temp_c=temp, status=AdequacyStatus.UNKNOWN, derived=derived)

    return AdequacyOutcome(
        flow_temp_c=temp,
        status=classify_shortfall(shortfall),
        required_w=entry.required_w,
        rated_w=entry.rated_w,
        shortfall_w=round(shortfall, 1),
        derived=derived,
    )


def emitter_output_at(emitter: Emitter, flow_temp_c: float, room_temp_c: float) -> float:
    """Rated output corrected to a flow temperature with the radiator power law"""
    if emitter.rated_output_w is None:
        return 0.0
    mean_water_temp = flow_temp_c - FLOW_RETURN_DROP_K / 2
    delta_t = mean_water_temp - room_temp_c
    if delta_t <= 0:
        return 0.0
    return emitter.rated_output_w * (delta_t / emitter.rated_delta_t_k) ** RADIATOR_EXPONENT


def derive_setpoint(
    raw: RawRoomHeatLoss,
    emitters: Sequence[Emitter],
    flow_temp_c: int,
    room_temp_c: float,
) -> Optional[SetpointAdequacy]:
    """Build a setpoint verdict from emitter ratings when the physics output has none"""
    rated_emitters = [e for e in emitters if e.room_id == raw.room_id and e.rated_output_w is not None]
    if not rated_emitters:
        return None

    rated = sum(emitter_output_at(e, flow_temp_c, room_temp_c) for e in rated_emitters)
    required = raw.heat_loss_w * DESIGN_MARGIN
    return SetpointAdequacy(
        flow_temp_c=flow_temp_c,
        adequate=rated >= required,
        required_w=round(required, 1),
        rated_w=round(rated, 1),
    )


def classify_room_adequacy(
    raw: Union[RawRoomHeatLoss, Dict[str, Any]],
    emitters: Optional[Iterable[Union[Emitter, Dict[str, Any]]]] = None,
    flow_temps: Iterable[int] = DEFAULT_FLOW_TEMPS,
    room_temp_c: float = 21.0,
) -> Dict[int, AdequacyOutcome]:
    """
    Classify emitter adequacy for one room at every tracked flow temperature.

    Args:
        raw: Physics engine output for the room
        emitters: Emitters installed in the room, used only for setpoints the
            physics output does not cover
        flow_temps: Design flow temperatures to classify
        room_temp_c: Room design temperature for derived outputs

    Returns:
        Mapping of flow temperature to AdequacyOutcome
    """
    raw = coerce_model(RawRoomHeatLoss, raw)
    emitters = coerce_models(Emitter, emitters)
    outcomes = {}

    for flow_temp in flow_temps:
        entry = raw.adequacy_at(flow_temp)
        if entry is not None:
            outcomes[flow_temp] = classify_setpoint(entry, flow_temp)
            continue

        derived = derive_setpoint(raw, emitters, flow_temp, room_temp_c)
        if derived is not None:
            logger.debug(f"Room {raw.room_id}: derived adequacy at {flow_temp}°C from emitter ratings")
        outcomes[flow_temp] = classify_setpoint(derived, flow_temp, derived=derived is not None)

    return outcomes
