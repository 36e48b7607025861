"""
Configuration Validation Module
===============================
Schema for the evaluation configuration using pydantic.

Key Principle: Fail fast on bad configs. A typo in a config should
raise an immediate, clear error - not silently produce wrong results.

The defaults reproduce the reference case (water at 20 °C in a 1 m pipe),
so EvaluationConfig() is a complete, valid configuration.
"""

import logging
import warnings
from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .quantities import DEFAULT_PIPE, WATER_20C, FluidProperties, PipeGeometry

logger = logging.getLogger(__name__)

DEFAULT_N_SAMPLES = 100_000
MIN_STABLE_N_SAMPLES = 10_000


class FluidConfig(BaseModel):
    """Fluid flow and property configuration (SI units)."""
    model_config = ConfigDict(extra='forbid', frozen=True)

    mean_flow_rate: float = Field(WATER_20C.mean_flow_rate, ge=0, description="Flow rate in m³/s")
    flow_rate_uncertainty: float = Field(WATER_20C.flow_rate_uncertainty, ge=0)
    mean_viscosity: float = Field(WATER_20C.mean_viscosity, gt=0, description="Dynamic viscosity in Pa·s")
    viscosity_uncertainty: float = Field(WATER_20C.viscosity_uncertainty, ge=0)

    def to_properties(self) -> FluidProperties:
        return FluidProperties(**self.model_dump())


class PipeConfig(BaseModel):
    """Pipe geometry configuration (SI units)."""
    model_config = ConfigDict(extra='forbid', frozen=True)

    length: float = Field(DEFAULT_PIPE.length, ge=0, description="Pipe length in m")
    length_tolerance: float = Field(DEFAULT_PIPE.length_tolerance, ge=0)
    cross_section: float = Field(DEFAULT_PIPE.cross_section, gt=0, description="Cross-sectional area in m²")
    cross_section_tolerance: float = Field(DEFAULT_PIPE.cross_section_tolerance, ge=0)

    def to_geometry(self) -> PipeGeometry:
        return PipeGeometry(**self.model_dump())


class EvaluationConfig(BaseModel):
    """Complete pressure-drop evaluation configuration."""
    model_config = ConfigDict(extra='forbid', frozen=True)

    fluid: FluidConfig = Field(default_factory=FluidConfig)
    pipe: PipeConfig = Field(default_factory=PipeConfig)
    n_samples: int = Field(DEFAULT_N_SAMPLES, ge=2, description="Monte Carlo trial count")
    seed: Optional[int] = Field(None, ge=0, description="Random seed (None for unseeded)")
    confidence: float = Field(0.95, gt=0, lt=1, description="Coverage probability")

    @field_validator('n_samples')
    @classmethod
    def warn_low_trial_count(cls, v):
        if v < MIN_STABLE_N_SAMPLES:
            warnings.warn(
                f"n_samples={v} is below {MIN_STABLE_N_SAMPLES}; "
                f"quantile estimates may be unstable."
            )
        return v


def validate_config(config: Optional[Dict[str, Any]] = None) -> EvaluationConfig:
    """
    Validate a configuration dictionary.

    Missing keys take the reference defaults.

    Args:
        config: Configuration dictionary (None for all defaults)

    Returns:
        Validated EvaluationConfig

    Raises:
        ValueError: If validation fails with detailed error message
    """
    try:
        validated = EvaluationConfig(**(config or {}))
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed:\n{e}") from e

    logger.debug(f"Validated configuration: {validated.model_dump()}")
    return validated
