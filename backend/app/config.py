import logging
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from core.environment import get_env_bool, get_env_list, load_environment
from services.emitter_adequacy import DEFAULT_FLOW_TEMPS
from services.error_types import ConfigurationError

DEFAULT_DISPLAY_FLOW_TEMP = 55


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings read from the environment"""
    debug: bool = False
    flow_temps: Tuple[int, ...] = DEFAULT_FLOW_TEMPS
    default_flow_temp: int = DEFAULT_DISPLAY_FLOW_TEMP


def _parse_flow_temps(values) -> Tuple[int, ...]:
    try:
        temps = tuple(int(value) for value in values)
    except ValueError as e:
        raise ConfigurationError(
            f"HEATLOSS_FLOW_TEMPS must be comma-separated integers: {e}",
            {'value': list(values)},
        )
    if any(temp <= 0 for temp in temps):
        raise ConfigurationError("HEATLOSS_FLOW_TEMPS must be positive", {'value': list(temps)})
    return tuple(dict.fromkeys(temps))


def load_settings() -> EngineSettings:
    """Build settings from the current environment (no caching)"""
    flow_temps = _parse_flow_temps(get_env_list("HEATLOSS_FLOW_TEMPS", default=list(DEFAULT_FLOW_TEMPS)))

    raw_default = get_env_list("HEATLOSS_DEFAULT_FLOW_TEMP", default=[str(DEFAULT_DISPLAY_FLOW_TEMP)])[0]
    try:
        default_flow_temp = int(raw_default)
    except ValueError:
        raise ConfigurationError(
            "HEATLOSS_DEFAULT_FLOW_TEMP must be an integer", {'value': raw_default}
        )
    if default_flow_temp not in flow_temps:
        raise ConfigurationError(
            f"HEATLOSS_DEFAULT_FLOW_TEMP {default_flow_temp} is not a tracked flow temperature",
            {'flow_temps': list(flow_temps)},
        )

    return EngineSettings(
        debug=get_env_bool("HEATLOSS_DEBUG", get_env_bool("DEBUG")),
        flow_temps=flow_temps,
        default_flow_temp=default_flow_temp,
    )


@lru_cache()
def get_settings() -> EngineSettings:
    """Cached settings; loads .env files on first use"""
    load_environment()
    return load_settings()


# Logging configuration
def setup_logging(debug: bool = False):
    """Configure application logging"""
    log_level = logging.DEBUG if debug else logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )

    logger = logging.getLogger('heatloss')
    logger.setLevel(log_level)

    return logger
