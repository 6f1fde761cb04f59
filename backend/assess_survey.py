#!/usr/bin/env python3
"""
Assess a heat-loss survey and report confidence, readiness and next actions

Usage:
    python assess_survey.py survey.json [--output assessment.json] [--flow-temps 45,55,75] [--summary]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as SchemaValidationError

from app.config import get_settings, setup_logging
from models.enums import AdequacyStatus
from models.schemas import HeatLossSurvey
from services.error_types import (
    ConfigurationError,
    categorize_exception,
    log_error_with_context,
)
from services.heat_loss_assessment import assess_heat_loss

logger = logging.getLogger(__name__)

COLOR_ICONS = {'green': '🟢', 'amber': '🟠', 'red': '🔴'}


def load_survey(path: Path) -> HeatLossSurvey:
    """Read and validate a survey document"""
    with open(path) as f:
        data = json.load(f)
    return HeatLossSurvey.model_validate(data)


def parse_flow_temps(value: str) -> List[int]:
    try:
        return [int(item) for item in value.split(',') if item.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"flow temperatures must be comma-separated integers: {value!r}")


def print_summary(assessment, default_flow_temp: int):
    """Human-readable overview"""
    print("\n=== HEAT LOSS ASSESSMENT ===")
    print(f"Whole house: {assessment.whole_house_heat_loss_kw} kW")
    print(f"Confidence: {assessment.whole_house_confidence}% ({assessment.whole_house_color.value})")
    print(f"Validation: {assessment.validation_state.value} - {assessment.validation.message}")
    print("\n--- Rooms ---")

    for summary in assessment.room_summaries:
        icon = COLOR_ICONS.get(summary.confidence_color.value, '')
        status = summary.adequacy_at(default_flow_temp)
        print(f"\n{icon} {summary.room_name}: {summary.heat_loss_w:.0f} W, confidence {summary.confidence_score}%")
        if status != AdequacyStatus.UNKNOWN:
            print(f"  - Emitters @ {default_flow_temp}°C: {status.value}")
        for flag in summary.risk_flags:
            print(f"  - ⚠️ {flag.label}")
        print(f"  - Next: {assessment.next_best_actions.get(summary.room_id)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Assess confidence and readiness of a heat-loss survey")
    parser.add_argument('survey', type=Path, help="Survey JSON (rooms, walls, emitters, calculation)")
    parser.add_argument('--output', '-o', type=Path, help="Write the assessment JSON here instead of stdout")
    parser.add_argument('--flow-temps', type=parse_flow_temps, help="Override tracked flow temperatures, e.g. 45,55,75")
    parser.add_argument('--summary', action='store_true', help="Print a human-readable summary instead of JSON")
    parser.add_argument('--debug', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        setup_logging(args.debug)
        log_error_with_context(e, {'stage': 'configuration'})
        return 1

    setup_logging(args.debug or settings.debug)

    try:
        survey = load_survey(args.survey)
    except (OSError, json.JSONDecodeError, SchemaValidationError) as e:
        error = categorize_exception(e)
        log_error_with_context(error, {'stage': 'load_survey', 'file': str(args.survey)})
        return 1

    flow_temps = args.flow_temps or survey.flow_temps or list(settings.flow_temps)
    assessment = assess_heat_loss(
        survey.rooms,
        survey.surfaces,
        survey.emitters,
        survey.calculation,
        flow_temps,
    )

    if args.summary:
        default_flow_temp = settings.default_flow_temp if settings.default_flow_temp in flow_temps else flow_temps[0]
        print_summary(assessment, default_flow_temp)
    elif args.output:
        with open(args.output, 'w') as f:
            json.dump(assessment.to_json(), f, indent=2)
        logger.info(f"Saved assessment to: {args.output}")
    else:
        json.dump(assessment.to_json(), sys.stdout, indent=2)
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
