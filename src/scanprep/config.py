"""Pipeline configuration from environment variables and CLI flags."""

import os
from dataclasses import dataclass
from typing import Optional

from scanprep.transform import CARD_ASPECT_RATIO

ENV_KEYS = {
    "aspect_ratio": "SCANPREP_CARD_ASPECT_RATIO",
    "blur_radius": "SCANPREP_BLUR_RADIUS",
    "threshold": "SCANPREP_THRESHOLD",
    "grayscale": "SCANPREP_GRAYSCALE",
    "auto_adjust": "SCANPREP_AUTO_ADJUST",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_float(field: str) -> Optional[float]:
    raw = os.environ.get(ENV_KEYS[field], "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{ENV_KEYS[field]} must be a number, got {raw!r}.") from None


def _env_bool(field: str) -> Optional[bool]:
    raw = os.environ.get(ENV_KEYS[field], "").strip().lower()
    if not raw:
        return None
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise RuntimeError(f"{ENV_KEYS[field]} must be true or false, got {raw!r}.")


def _pick(override, env_value, default):
    if override is not None:
        return override
    if env_value is not None:
        return env_value
    return default


@dataclass
class PipelineConfig:
    aspect_ratio: float = CARD_ASPECT_RATIO
    blur_radius: float = 0.0
    threshold: Optional[float] = None
    grayscale: bool = False
    auto_adjust: bool = True

    @classmethod
    def from_env(
        cls,
        aspect_ratio: Optional[float] = None,
        blur_radius: Optional[float] = None,
        threshold: Optional[float] = None,
        grayscale: Optional[bool] = None,
        auto_adjust: Optional[bool] = None,
    ) -> "PipelineConfig":
        config = cls(
            aspect_ratio=_pick(aspect_ratio, _env_float("aspect_ratio"), CARD_ASPECT_RATIO),
            blur_radius=_pick(blur_radius, _env_float("blur_radius"), 0.0),
            threshold=_pick(threshold, _env_float("threshold"), None),
            grayscale=_pick(grayscale, _env_bool("grayscale"), False),
            auto_adjust=_pick(auto_adjust, _env_bool("auto_adjust"), True),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.aspect_ratio <= 0:
            raise RuntimeError(
                f"Aspect ratio must be positive (got {self.aspect_ratio}). "
                f"Check {ENV_KEYS['aspect_ratio']} or --aspect-ratio."
            )
        if self.blur_radius < 0:
            raise RuntimeError(
                f"Blur radius cannot be negative (got {self.blur_radius}). "
                f"Check {ENV_KEYS['blur_radius']} or --blur."
            )
        if self.threshold is not None and not 0 <= self.threshold < 1:
            raise RuntimeError(
                f"Threshold must be in [0, 1) (got {self.threshold}). "
                f"Check {ENV_KEYS['threshold']} or --threshold."
            )
