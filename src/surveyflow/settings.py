"""Engine tunables.

Loads thresholds used by the checkers and the score rollup:
- Defaults: DEFAULT_SETTINGS, matching the product's published limits.
- Optional YAML file: path argument, else the SURVEYFLOW_SETTINGS variable.
- Overrides: SURVEYFLOW_MAX_QUESTIONS and SURVEYFLOW_OVERALL_ROLLUP.
- Validation: Pydantic enforces types and ranges.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from surveyflow.rollup import ROLLUP_POLICIES

logger = logging.getLogger(__name__)

SETTINGS_PATH_ENV = "SURVEYFLOW_SETTINGS"
ROLLUP_POLICY_NAMES = tuple(ROLLUP_POLICIES)


class SettingsError(ValueError):
    """Raised when engine settings cannot be loaded or are invalid."""


class EngineSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_questions: int = Field(default=200, ge=1)
    weight_dominance_percent: float = Field(default=50.0, gt=0, le=100)
    weight_variance_ratio: float = Field(default=5.0, gt=1)
    min_scorable_for_weight_checks: int = Field(default=3, ge=1)
    text_preview_length: int = Field(default=50, ge=1)
    overall_rollup: str = Field(default="mean")

    @field_validator("overall_rollup")
    @classmethod
    def rollup_must_be_known(cls, v: str) -> str:
        if v not in ROLLUP_POLICY_NAMES:
            raise ValueError(f"overall_rollup must be one of {', '.join(ROLLUP_POLICY_NAMES)}")
        return v


DEFAULT_SETTINGS = EngineSettings()


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    return data


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    max_questions = os.environ.get("SURVEYFLOW_MAX_QUESTIONS")
    if max_questions:
        overrides["max_questions"] = max_questions
    rollup = os.environ.get("SURVEYFLOW_OVERALL_ROLLUP")
    if rollup:
        overrides["overall_rollup"] = rollup.strip()
    return overrides


def load_settings(path: Optional[Union[str, Path]] = None) -> EngineSettings:
    """Build EngineSettings from an optional YAML file plus environment overrides.

    A missing file named by the environment is logged and ignored; a missing
    file passed explicitly is an error.
    """
    values: Dict[str, Any] = {}

    if path is not None:
        values.update(_read_yaml(Path(path)))
    else:
        env_path = os.environ.get(SETTINGS_PATH_ENV)
        if env_path:
            candidate = Path(env_path)
            if candidate.exists():
                values.update(_read_yaml(candidate))
            else:
                logger.warning("Settings file %s from %s not found; using defaults", candidate, SETTINGS_PATH_ENV)

    values.update(_env_overrides())

    try:
        return EngineSettings(**values)
    except PydanticValidationError as e:
        raise SettingsError(str(e)) from e
