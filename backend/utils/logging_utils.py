"""
Structured logging for assessment stages

Records carry a `stage` and, where one applies, a `room_id` in `extra`, so
the lines for one survey can be filtered per stage or per room.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional

# Confidence below this is reported at WARNING
DATA_QUALITY_WARNING_BELOW = 80


def stage_fields(stage: str, room_id: Optional[str] = None, **fields) -> Dict[str, Any]:
    """`extra` payload shared by every engine log record"""
    payload = {'stage': stage, **fields}
    if room_id is not None:
        payload['room_id'] = room_id
    return payload


@contextmanager
def log_stage(stage: str, logger: logging.Logger, **counts: int):
    """
    Log the start and end of an assessment stage with its input counts and duration.

    Usage:
        with log_stage("heat_loss_assessment", logger, rooms=4, room_results=5):
            ...
    """
    fields = stage_fields(stage, counts=counts)
    sizes = ", ".join(f"{name}={count}" for name, count in counts.items())
    started = time.perf_counter()
    logger.info(f"Starting {stage} ({sizes})", extra=fields)

    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - started
        logger.error(f"❌ {stage} failed after {elapsed:.3f}s: {e}", extra={
            **fields,
            'elapsed_s': elapsed,
            'error_type': type(e).__name__,
        })
        raise

    elapsed = time.perf_counter() - started
    logger.info(f"Completed {stage} in {elapsed:.3f}s", extra={**fields, 'elapsed_s': elapsed})


def log_data_quality(stage: str, score: int, issues: Iterable[str] = (),
                     logger: Optional[logging.Logger] = None, room_id: Optional[str] = None):
    """
    Report a 0-100 confidence score with the issues that pulled it down.

    Args:
        stage: Stage that produced the score (room_confidence, heat_loss_result)
        score: Rounded confidence score
        issues: Risk flags or low-scoring room ids behind the score
        logger: Logger of the calling module
        room_id: Set for room-level scores
    """
    logger = logger or logging.getLogger(__name__)
    issues = list(issues)
    level = logging.INFO if score >= DATA_QUALITY_WARNING_BELOW else logging.WARNING
    subject = f" room {room_id}" if room_id else ""

    logger.log(
        level,
        f"[DATA_QUALITY] {stage}{subject}: {score}/100 ({len(issues)} issues)",
        extra=stage_fields(stage, room_id, score=score, issues=issues),
    )
