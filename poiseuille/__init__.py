"""
Poiseuille - Pressure Drop with Uncertainty
===========================================
Hagen–Poiseuille pressure drop for laminar pipe flow, with measurement
uncertainty in length, cross-section, flow rate and viscosity propagated
to the result by Monte Carlo sampling.

Modules:
- distributions: bounded-uniform / log-normal input distributions
- uncertainty: UncertainValue sample arithmetic and summaries
- quantities: input records and quantity-to-distribution rules
- config_validation: pydantic evaluation configuration
- pressure_drop: formula evaluation, analytical cross-check, budget
- reporting: result line and text report

Usage:
    from poiseuille import EvaluationConfig, evaluate_pressure_drop

    result = evaluate_pressure_drop(EvaluationConfig(seed=42))
    print(result.monte_carlo.mean)
"""

from .distributions import (
    DistributionShape,
    PointMass,
    BoundedUniform,
    LogNormal,
    InvalidDistributionParameter,
    DegenerateDivision,
    make_distribution,
)

from .uncertainty import (
    UncertainValue,
    MonteCarloResult,
    MeasurementWithUncertainty,
    propagate_power_law_uncertainty,
    format_with_uncertainty,
)

from .quantities import (
    FluidProperties,
    PipeGeometry,
    QuantityRule,
    QUANTITY_RULES,
    WATER_20C,
    DEFAULT_PIPE,
    materialize_inputs,
    draw_inputs,
    nominal_values,
)

from .config_validation import (
    FluidConfig,
    PipeConfig,
    EvaluationConfig,
    validate_config,
)

from .pressure_drop import (
    PressureDropResult,
    hagen_poiseuille,
    closed_form_pressure_drop,
    check_preconditions,
    analytical_pressure_drop,
    uncertainty_budget,
    evaluate_pressure_drop,
)

from .reporting import (
    format_pressure_drop_line,
    format_measurement_table,
    generate_text_report,
)

__version__ = "1.0.0"
