"""
Pressure Drop Evaluator
=======================
Hagen–Poiseuille pressure drop for laminar flow in a cylindrical pipe,
with input uncertainty propagated to the result.

    Δp = 8 · π · μ · L · Q / A²

    μ  dynamic viscosity (Pa·s)
    L  pipe length (m)
    Q  volumetric flow rate (m³/s)
    A  cross-sectional area (m²)

The flow is assumed laminar throughout; this is not checked. The model
is only valid for a sufficiently long pipe with a modest cross-section.

Usage:
    from poiseuille.pressure_drop import evaluate_pressure_drop
    from poiseuille.config_validation import EvaluationConfig

    result = evaluate_pressure_drop(EvaluationConfig(seed=42))
    print(result.monte_carlo.mean, result.monte_carlo.std)
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import pandas as pd

from .config_validation import EvaluationConfig
from .distributions import DegenerateDivision, Distribution, LogNormal
from .quantities import (
    QUANTITY_RULES,
    FluidProperties,
    PipeGeometry,
    QuantityRule,
    draw_inputs,
    materialize_inputs,
    nominal_values,
)
from .uncertainty import (
    MeasurementWithUncertainty,
    MonteCarloResult,
    UncertainValue,
    propagate_power_law_uncertainty,
)

logger = logging.getLogger(__name__)

# Δp ∝ μ¹ · L¹ · Q¹ · A⁻²
PRESSURE_DROP_EXPONENTS: Dict[str, float] = {
    'viscosity': 1.0,
    'length': 1.0,
    'flow_rate': 1.0,
    'cross_section': -2.0,
}


def hagen_poiseuille(viscosity, length, flow_rate, cross_section):
    """
    Evaluate 8·π·μ·L·Q / A².

    Works on floats, numpy arrays and UncertainValue alike. The area is
    squared as A * A so paired Monte Carlo samples stay paired.
    """
    return 8 * math.pi * viscosity * length * flow_rate / (cross_section * cross_section)


def closed_form_pressure_drop(fluid: FluidProperties, pipe: PipeGeometry) -> float:
    """Pressure drop (Pa) at the nominal input values, ignoring uncertainty."""
    if pipe.cross_section == 0:
        raise DegenerateDivision("Cross-section is zero")
    return hagen_poiseuille(
        fluid.mean_viscosity, pipe.length, fluid.mean_flow_rate, pipe.cross_section
    )


def check_preconditions(distributions: Mapping[str, Distribution]) -> None:
    """
    Verify that no draw can make the formula degenerate.

    The cross-section must stay strictly positive over its whole support.
    For a bounded shape this holds when its tolerance is smaller than its
    mean; a log-normal never draws zero, its support bound at 0 is open.
    Inputs whose support reaches below zero only produce a warning.

    Raises:
        DegenerateDivision: If the cross-section support includes zero
    """
    cross_section = distributions['cross_section']
    low, _ = cross_section.support()
    if not isinstance(cross_section, LogNormal) and low <= 0:
        raise DegenerateDivision(
            f"Cross-section support reaches {low:g} m²; "
            f"tolerance must be smaller than the mean area"
        )

    for name in ('length', 'flow_rate'):
        low, _ = distributions[name].support()
        if low < 0:
            logger.warning(f"{name} support reaches {low:g}; negative draws are unphysical")


# =============================================================================
# ANALYTICAL CROSS-CHECK
# =============================================================================

def analytical_pressure_drop(
    fluid: FluidProperties,
    pipe: PipeGeometry,
    distributions: Optional[Mapping[str, Distribution]] = None,
    rules: Mapping[str, QuantityRule] = QUANTITY_RULES,
) -> MeasurementWithUncertainty:
    """
    First-order (GUM) estimate of the pressure drop and its uncertainty.

    Relative uncertainty (RSS):
    (u_Δp/Δp)² = (u_μ/μ)² + (u_L/L)² + (u_Q/Q)² + 4×(u_A/A)²

    Standard uncertainties come from each input distribution, so a
    uniform band of half-width a contributes a/√3.
    """
    if distributions is None:
        distributions = materialize_inputs(fluid, pipe, rules)

    dp = closed_form_pressure_drop(fluid, pipe)
    rel_u = propagate_power_law_uncertainty(
        values=nominal_values(fluid, pipe, rules),
        uncertainties={name: dist.std for name, dist in distributions.items()},
        exponents=PRESSURE_DROP_EXPONENTS,
    )

    return MeasurementWithUncertainty(
        value=dp,
        uncertainty=abs(dp) * rel_u,
        unit='Pa',
        name='delta_p',
    )


def uncertainty_budget(
    fluid: FluidProperties,
    pipe: PipeGeometry,
    distributions: Optional[Mapping[str, Distribution]] = None,
    rules: Mapping[str, QuantityRule] = QUANTITY_RULES,
) -> pd.DataFrame:
    """
    Contribution of each input to the pressure-drop variance.

    Returns:
        DataFrame indexed by input name with columns: nominal, unit,
        distribution, std_uncertainty, exponent, rel_contribution,
        pct_contribution. Sorted by contribution, largest first.
    """
    if distributions is None:
        distributions = materialize_inputs(fluid, pipe, rules)

    nominal = nominal_values(fluid, pipe, rules)
    rows = []

    for name, dist in distributions.items():
        p = PRESSURE_DROP_EXPONENTS[name]
        x = nominal[name]
        rel = abs(p * dist.std / x) if x != 0 else float('inf')
        rows.append({
            'input': name,
            'nominal': x,
            'unit': rules[name].unit,
            'distribution': type(dist).__name__,
            'std_uncertainty': dist.std,
            'exponent': p,
            'rel_contribution': rel,
        })

    budget = pd.DataFrame(rows).set_index('input')
    total = (budget['rel_contribution'] ** 2).sum()
    budget['pct_contribution'] = (
        budget['rel_contribution'] ** 2 / total * 100 if total > 0 else 0.0
    )
    return budget.sort_values('pct_contribution', ascending=False, kind='stable')


# =============================================================================
# MONTE CARLO EVALUATION
# =============================================================================

@dataclass
class PressureDropResult:
    """
    Outcome of one pressure-drop evaluation.

    Attributes:
        nominal: Closed-form value at the input means (Pa)
        samples: Pushforward sample set of the pressure drop
        monte_carlo: Summary statistics of the samples
        analytical: First-order estimate for comparison
        budget: Per-input uncertainty contributions
        confidence: Coverage probability used for intervals
    """
    nominal: float
    samples: UncertainValue
    monte_carlo: MonteCarloResult
    analytical: MeasurementWithUncertainty
    budget: pd.DataFrame
    confidence: float = 0.95

    @property
    def value(self) -> float:
        """Reported pressure drop: the Monte Carlo mean (Pa)."""
        return self.monte_carlo.mean

    def to_measurement(self) -> MeasurementWithUncertainty:
        return self.monte_carlo.to_measurement(
            unit='Pa', name='delta_p', confidence=self.confidence
        )


def evaluate_pressure_drop(
    config: Optional[EvaluationConfig] = None,
    rules: Mapping[str, QuantityRule] = QUANTITY_RULES,
) -> PressureDropResult:
    """
    Evaluate the pressure drop with full uncertainty propagation.

    Args:
        config: Evaluation configuration (defaults to the reference case)
        rules: Quantity rule table (defaults to QUANTITY_RULES)

    Returns:
        PressureDropResult

    Raises:
        InvalidDistributionParameter: If an input pair is invalid
        DegenerateDivision: If the cross-section can reach zero
    """
    if config is None:
        config = EvaluationConfig()

    fluid = config.fluid.to_properties()
    pipe = config.pipe.to_geometry()

    distributions = materialize_inputs(fluid, pipe, rules)
    check_preconditions(distributions)

    logger.info(
        f"Evaluating pressure drop with {config.n_samples} trials "
        f"(seed={config.seed})"
    )

    inputs = draw_inputs(distributions, config.n_samples, seed=config.seed, rules=rules)
    samples = hagen_poiseuille(
        inputs['viscosity'],
        inputs['length'],
        inputs['flow_rate'],
        inputs['cross_section'],
    )
    samples.name = 'delta_p'
    samples.unit = 'Pa'

    monte_carlo = samples.summarize(confidence=config.confidence)
    nominal = closed_form_pressure_drop(fluid, pipe)

    logger.info(
        f"Pressure drop: nominal={nominal:.6g} Pa, "
        f"MC mean={monte_carlo.mean:.6g} Pa, std={monte_carlo.std:.4g} Pa"
    )

    return PressureDropResult(
        nominal=nominal,
        samples=samples,
        monte_carlo=monte_carlo,
        analytical=analytical_pressure_drop(fluid, pipe, distributions, rules),
        budget=uncertainty_budget(fluid, pipe, distributions, rules),
        confidence=config.confidence,
    )
