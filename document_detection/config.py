"""
Detector configuration loaded from environment variables
"""

import os
from dataclasses import dataclass
from typing import Optional

# load envs
from dotenv import load_dotenv
load_dotenv()


FRAME_MIN_AREA_FRACTION = 0.25

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default

    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _env_fraction(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip().lower() in ("", "none"):
        return default

    try:
        fraction = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None

    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {fraction}")
    return fraction


@dataclass
class DetectorConfig:
    """
    Options recognized by DocumentDetector.

    Attributes:
        apply_background_removal: Run GrabCut before edge detection in the frame variant (slow)
        apply_perspective_rectification: Return the rectified frame instead of the corner list
        min_area_fraction: Quad acceptance gate for the mask variant (None disables it)
        frame_min_area_fraction: Quad acceptance gate for the frame variant
        edge_method: Edge extraction before contour search in the mask variant ("none", "sobel", "canny")
        log_level: Logging level name used by the command line entry point
    """
    apply_background_removal: bool = False
    apply_perspective_rectification: bool = False
    min_area_fraction: Optional[float] = None
    frame_min_area_fraction: Optional[float] = FRAME_MIN_AREA_FRACTION
    edge_method: str = "none"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "DetectorConfig":
        """Build configuration from DOCDETECT_* environment variables."""
        return cls(
            apply_background_removal=_env_bool("DOCDETECT_BACKGROUND_REMOVAL", False),
            apply_perspective_rectification=_env_bool("DOCDETECT_RECTIFY", False),
            min_area_fraction=_env_fraction("DOCDETECT_MIN_AREA_FRACTION", None),
            frame_min_area_fraction=_env_fraction("DOCDETECT_FRAME_MIN_AREA_FRACTION", FRAME_MIN_AREA_FRACTION),
            edge_method=os.getenv("DOCDETECT_EDGE_METHOD", "none").strip().lower(),
            log_level=os.getenv("DOCDETECT_LOG_LEVEL", "INFO").strip().upper(),
        )
