# src/monolith/observability.py
"""
Wide event logging for Monolith.

Following the principle of wide events: one comprehensive event per
operation with high cardinality and high dimensionality. Each SVG
sanitization pass and each video import produces exactly one event.

Usage:
    event = SvgSanitizeEvent(source_hash="...")
    event.ids_renamed += 1
    emit_event(event)
"""

import json
import random
import time
from dataclasses import asdict, dataclass, field
from typing import Any

from monolith.utils import get_iso_timestamp, get_logger

# Thresholds above which an operation is always kept
SLOW_SANITIZE_MS = 250
SLOW_VIDEO_IMPORT_MS = 2000


@dataclass
class SvgSanitizeEvent:
    """
    Canonical log line for an SVG reset/sanitize pass.

    Emitted once per reset(), including the implicit reset in parse().
    """

    event_type: str = field(default="svg_sanitize", init=False)
    timestamp: str = ""

    # Identifiers
    source_hash: str = ""
    instance_number: int = 0
    suffix: str = ""

    # Timing
    wall_time_ms: float = 0

    # Document stats
    source_size_bytes: int = 0
    elements_total: int = 0
    viewbox_synthesized: bool = False

    # Rewrite counts
    ids_renamed: int = 0
    classes_renamed: int = 0
    references_rewritten: int = 0
    style_elements_rewritten: int = 0

    # Outcome
    outcome: str = "success"  # "success" | "error"

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = get_iso_timestamp()


@dataclass
class VideoImportEvent:
    """
    Canonical log line for a video URL/embed import.

    Emitted once per Video construction.
    """

    event_type: str = field(default="video_import", init=False)
    timestamp: str = ""

    # Input
    input_kind: str = "url"  # "url" | "iframe"
    service: str | None = None
    video_id: str | None = None

    # Metadata fetch
    metadata_fetched: bool = False
    metadata_cached: bool = False
    wall_time_ms: float = 0

    # Outcome
    outcome: str = "success"  # "success" | "unrecognized" | "error"
    error_type: str | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = get_iso_timestamp()


# Slow-operation thresholds, by event type
_SLOW_THRESHOLDS_MS = {
    "svg_sanitize": SLOW_SANITIZE_MS,
    "video_import": SLOW_VIDEO_IMPORT_MS,
}


def should_sample(event: dict[str, Any], sample_rate: float = 0.10) -> bool:
    """Decide whether to keep an event once its outcome is known.

    Failed operations and operations slower than their event type's
    threshold are always kept. Everything else is kept with probability
    sample_rate.
    """
    if event.get("outcome") == "error":
        return True

    threshold = _SLOW_THRESHOLDS_MS.get(event.get("event_type", ""))
    if threshold is not None and event.get("wall_time_ms", 0) > threshold:
        return True

    return random.random() < sample_rate


def emit_event(
    event: SvgSanitizeEvent | VideoImportEvent | dict[str, Any],
    sample_rate: float = 0.10,
    force: bool = False,
) -> bool:
    """Log an event as one JSON line, subject to tail sampling.

    Args:
        event: Event dataclass or plain dict
        sample_rate: Probability of keeping a successful, fast event
        force: Bypass sampling

    Returns:
        Whether the event was logged
    """
    payload = event if isinstance(event, dict) else asdict(event)

    if not (force or should_sample(payload, sample_rate)):
        return False

    get_logger().info(json.dumps(payload))
    return True


class Timer:
    """Measure wall time of a with-block in milliseconds."""

    def __init__(self) -> None:
        self._started = 0.0
        self.elapsed_ms: float = 0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
