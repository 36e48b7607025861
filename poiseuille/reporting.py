"""
Result Reporting
================
Human-readable output for pressure-drop results.
"""

from typing import Dict

from .pressure_drop import PressureDropResult
from .uncertainty import MeasurementWithUncertainty, format_with_uncertainty


def format_pressure_drop_line(value: float) -> str:
    """The single line printed by the program."""
    return f"Pressure difference is given by: {value:.6f} Pa"


def format_measurement_table(
    measurements: Dict[str, MeasurementWithUncertainty]
) -> str:
    """
    Format measurements as a markdown table.

    Args:
        measurements: Dictionary of measurements

    Returns:
        Markdown table string
    """
    lines = [
        "| Parameter | Value | Uncertainty | Rel. Uncertainty |",
        "|-----------|-------|-------------|------------------|",
    ]

    for name, meas in measurements.items():
        rel_pct = meas.relative_uncertainty_percent
        lines.append(
            f"| {name} | {meas.value:.6g} {meas.unit} | "
            f"±{meas.uncertainty:.4g} | {rel_pct:.3f}% |"
        )

    return "\n".join(lines)


def format_budget_table(result: PressureDropResult) -> str:
    """Uncertainty budget as aligned text, largest contributor first."""
    lines = [
        f"  {'Input':<14} {'Nominal':<12} {'Unit':<6} {'u(x)':<12} {'Exp':<5} {'Contribution'}",
        "  " + "-" * 66,
    ]
    for name, row in result.budget.iterrows():
        bar = "█" * int(row['pct_contribution'] / 5)
        lines.append(
            f"  {name:<14} {row['nominal']:<12.6g} {row['unit']:<6} "
            f"{row['std_uncertainty']:<12.4g} {row['exponent']:<5g} "
            f"{row['pct_contribution']:5.1f}%  {bar}"
        )
    return "\n".join(lines)


def generate_text_report(result: PressureDropResult) -> str:
    """
    Multi-line summary of a pressure-drop evaluation.

    Includes the nominal value, Monte Carlo statistics, the coverage
    interval, the first-order estimate and the uncertainty budget.
    """
    mc = result.monte_carlo
    low, high = mc.coverage_interval(result.confidence)
    w = 72

    lines = [
        "=" * w,
        "  PRESSURE DROP: Hagen-Poiseuille, Δp = 8·π·μ·L·Q / A²",
        "=" * w,
        f"    Nominal (closed form):    {result.nominal:.6g} Pa",
        f"    Monte Carlo mean ± std:   {format_with_uncertainty(mc.mean, mc.std)} Pa",
        f"    {result.confidence*100:.0f}% coverage interval:   [{low:.6g}, {high:.6g}] Pa",
        f"    First-order estimate:     {result.analytical}",
        f"    Trials:                   {mc.n_samples}"
        + (f" ({mc.n_rejected} rejected)" if mc.n_rejected else ""),
        "",
        "  UNCERTAINTY BUDGET",
        "-" * w,
        format_budget_table(result),
        "=" * w,
    ]
    return "\n".join(lines)
