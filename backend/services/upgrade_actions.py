"""
Deterministic Upgrade Actions
Maps a room's risk flags to a prioritised list of surveyor actions.
Priorities sort ascending (1 = most urgent); 99 is reserved for the
photo-evidence action that every room gets.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from domain.core.models import UpgradeAction
from models.enums import RiskFlag, SurfaceClassification, UpgradeActionType
from models.schemas import Surface, coerce_models
from services.confidence_scorer import wall_construction_assumed

logger = logging.getLogger(__name__)

PHOTO_EVIDENCE_PRIORITY = 99
NO_URGENT_ACTION_MESSAGE = "Confidence is high - no urgent actions needed"


def _no_surfaces(surfaces: List[Surface]) -> List[str]:
    return []


def _unclassified(surfaces: List[Surface]) -> List[str]:
    return [s.surface_id for s in surfaces if s.surface_classification == SurfaceClassification.UNKNOWN]


def _assumed_construction(surfaces: List[Surface]) -> List[str]:
    return [
        s.surface_id for s in surfaces
        if s.surface_classification == SurfaceClassification.UNKNOWN
        or (s.surface_classification == SurfaceClassification.EXTERNAL and wall_construction_assumed(s))
    ]


def _external(surfaces: List[Surface]) -> List[str]:
    return [s.surface_id for s in surfaces if s.surface_classification == SurfaceClassification.EXTERNAL]


def _unheated_adjacent(surfaces: List[Surface]) -> List[str]:
    return [s.surface_id for s in surfaces if s.surface_classification == SurfaceClassification.UNHEATED_ADJACENT]


@dataclass(frozen=True)
class ActionTemplate:
    """One row of the risk-flag to action table"""
    flag: Optional[RiskFlag]
    id_suffix: str
    type: UpgradeActionType
    label: str
    reason: str
    estimated_time_sec: int
    priority: int
    select_surfaces: Callable[[List[Surface]], List[str]] = _no_surfaces


# Equal priorities keep table order
ACTION_TABLE = (
    ActionTemplate(
        flag=RiskFlag.MISSING_EXTERNAL_WALLS,
        id_suffix="scan_external_walls",
        type=UpgradeActionType.SCAN_GEOMETRY,
        label="Scan to Identify External Walls",
        reason="No external walls detected - scan room to identify surfaces",
        estimated_time_sec=60,
        priority=1,
        select_surfaces=_unclassified,
    ),
    ActionTemplate(
        flag=RiskFlag.GEOMETRY_ASSUMED,
        id_suffix="scan_geometry",
        type=UpgradeActionType.SCAN_GEOMETRY,
        label="Scan Geometry (RoomPlan)",
        reason="Room dimensions assumed - scan for accurate floor area & volume",
        estimated_time_sec=60,
        priority=1,
    ),
    ActionTemplate(
        flag=RiskFlag.WALL_CONSTRUCTION_ASSUMED,
        id_suffix="confirm_wall",
        type=UpgradeActionType.CONFIRM_WALL,
        label="Confirm Wall Type",
        reason="Wall construction type assumed - confirm solid/cavity/timber (10 sec)",
        estimated_time_sec=10,
        priority=2,
        select_surfaces=_assumed_construction,
    ),
    ActionTemplate(
        flag=RiskFlag.WALL_CONSTRUCTION_ASSUMED,
        id_suffix="confirm_insulation",
        type=UpgradeActionType.CONFIRM_INSULATION,
        label="Confirm Insulation Status",
        reason="Insulation status unknown - confirm none/filled/partial (10 sec)",
        estimated_time_sec=10,
        priority=3,
        select_surfaces=_assumed_construction,
    ),
    ActionTemplate(
        flag=RiskFlag.GLAZING_ASSUMED,
        id_suffix="confirm_glazing",
        type=UpgradeActionType.CONFIRM_GLAZING,
        label="Confirm Glazing Type",
        reason="Glazing U-value assumed - confirm single/double/triple (10 sec)",
        estimated_time_sec=10,
        priority=4,
        select_surfaces=_external,
    ),
    ActionTemplate(
        flag=RiskFlag.UNHEATED_ADJACENT_MODEL,
        id_suffix="set_unheated_temp",
        type=UpgradeActionType.SET_UNHEATED_TEMP,
        label="Set Unheated Space Temp Model",
        reason="Garage/porch temp assumed - set fixed temp or offset from external (15 sec)",
        estimated_time_sec=15,
        priority=5,
        select_surfaces=_unheated_adjacent,
    ),
    ActionTemplate(
        flag=RiskFlag.ACH_ASSUMED,
        id_suffix="set_ach_method",
        type=UpgradeActionType.SET_ACH_METHOD,
        label="Set Airtightness Method",
        reason="Air changes assumed from age band - confirm age or enter test result (20 sec)",
        estimated_time_sec=20,
        priority=6,
    ),
)

PHOTO_EVIDENCE_TEMPLATE = ActionTemplate(
    flag=None,
    id_suffix="attach_photo",
    type=UpgradeActionType.ATTACH_PHOTO,
    label="Attach Photo Evidence",
    reason="Add visual evidence (photo/thermal/borescope)",
    estimated_time_sec=30,
    priority=PHOTO_EVIDENCE_PRIORITY,
)


def _build(template: ActionTemplate, room_id: str, surfaces: List[Surface]) -> UpgradeAction:
    return UpgradeAction(
        action_id=f"{room_id}_{template.id_suffix}",
        type=template.type,
        label=template.label,
        reason=template.reason,
        estimated_time_sec=template.estimated_time_sec,
        target_risk_flags=[template.flag] if template.flag else [],
        priority=template.priority,
        surface_ids=template.select_surfaces(surfaces),
    )


def get_upgrade_actions(
    room_id: str,
    risk_flags: Iterable[Union[RiskFlag, str]],
    surfaces: Optional[Iterable[Union[Surface, Dict[str, Any]]]] = None,
) -> List[UpgradeAction]:
    """
    Generate upgrade actions for a room based on its risk flags.

    Args:
        room_id: Room the actions belong to (used in action ids)
        risk_flags: Risk flags from the room confidence rollup
        surfaces: The room's surfaces, used to point each action at the
            surfaces it concerns

    Returns:
        Actions sorted by ascending priority, photo evidence always last
    """
    flags = {RiskFlag(flag) for flag in risk_flags}
    surfaces = coerce_models(Surface, surfaces)

    actions = [_build(t, room_id, surfaces) for t in ACTION_TABLE if t.flag in flags]
    actions.append(_build(PHOTO_EVIDENCE_TEMPLATE, room_id, surfaces))

    return sorted(actions, key=lambda action: action.priority)


def get_top_priority_action(
    room_id: str,
    risk_flags: Iterable[Union[RiskFlag, str]],
    surfaces: Optional[Iterable[Union[Surface, Dict[str, Any]]]] = None,
) -> Optional[UpgradeAction]:
    """The "next best action": first non-photo action, else the photo action"""
    actions = get_upgrade_actions(room_id, risk_flags, surfaces)
    for action in actions:
        if action.type != UpgradeActionType.ATTACH_PHOTO:
            return action
    return actions[0] if actions else None


def get_next_best_action_message(
    risk_flags: Iterable[Union[RiskFlag, str]],
    surfaces: Optional[Iterable[Union[Surface, Dict[str, Any]]]] = None,
) -> str:
    """One-liner for the dashboard"""
    flags = list(risk_flags)
    if not flags:
        return NO_URGENT_ACTION_MESSAGE

    top = get_top_priority_action("", flags, surfaces)
    return top.reason if top else "Review assumptions"
