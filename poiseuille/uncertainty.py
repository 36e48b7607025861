"""
Uncertainty Quantification Module
=================================
Runtime representation of uncertain values and their summaries.

Key principle: a derived quantity is not a number, it is a distribution.
Every reported value carries its error bars.

Propagation Methods:
- Monte Carlo: UncertainValue holds one sample per trial and propagates
  arithmetic elementwise, so the result is the pushforward of the inputs
- Analytical: first-order (GUM) RSS for power-law products, used as a
  cross-check on the Monte Carlo result
"""

import numbers
import warnings
from dataclasses import dataclass
from typing import Dict, Any, Optional, Sequence

import numpy as np
from scipy import stats


PERCENTILE_LEVELS = [0.5, 2.5, 5.0, 16.0, 25.0, 50.0, 75.0, 84.0, 95.0, 97.5, 99.5]


def coverage_levels(confidence: float) -> tuple:
    """Lower and upper percentile (0-100) of a symmetric coverage interval."""
    if not 0 < confidence < 1:
        raise ValueError(f"Confidence must be in (0, 1), got {confidence}")
    return round((1 - confidence) / 2 * 100, 6), round((1 + confidence) / 2 * 100, 6)


@dataclass
class MeasurementWithUncertainty:
    """
    A value with its associated uncertainty (GUM-aligned).

    Attributes:
        value: Central/mean value
        uncertainty: Standard uncertainty u(y) (1-sigma equivalent)
        unit: Physical unit
        name: Parameter name for display
        coverage_factor: k-factor for expanded uncertainty (default k=1)
        confidence_level: Confidence level associated with coverage factor

    Expanded uncertainty U = k * u(y) is accessible via `expanded_uncertainty`.
    """
    value: float
    uncertainty: float
    unit: str = ""
    name: str = ""
    coverage_factor: float = 1.0
    confidence_level: float = 0.6827

    @property
    def relative_uncertainty(self) -> float:
        """Relative standard uncertainty as fraction."""
        if abs(self.value) < 1e-300:
            return float('inf')
        return self.uncertainty / abs(self.value)

    @property
    def relative_uncertainty_percent(self) -> float:
        return self.relative_uncertainty * 100

    @property
    def expanded_uncertainty(self) -> float:
        """Expanded uncertainty U = k * u(y)."""
        return self.coverage_factor * self.uncertainty

    def at_confidence(self, confidence: float = 0.95) -> 'MeasurementWithUncertainty':
        """
        Return a copy with expanded uncertainty at the given confidence level.

        Uses the normal distribution k-factor (k=1.96 for 95%).
        """
        k = stats.norm.ppf((1 + confidence) / 2)

        return MeasurementWithUncertainty(
            value=self.value,
            uncertainty=self.uncertainty,
            unit=self.unit,
            name=self.name,
            coverage_factor=float(k),
            confidence_level=confidence,
        )

    def __str__(self) -> str:
        if self.coverage_factor != 1.0:
            return (f"{self.value:.4g} ± {self.expanded_uncertainty:.4g} {self.unit} "
                    f"(k={self.coverage_factor:.2f}, {self.confidence_level*100:.0f}%)")
        return f"{self.value:.4g} ± {self.uncertainty:.4g} {self.unit} ({self.relative_uncertainty_percent:.2f}%)"

    def to_dict(self) -> Dict[str, Any]:
        d = {
            f"{self.name}_value": self.value,
            f"{self.name}_uncertainty": self.uncertainty,
            f"{self.name}_rel_uncertainty_pct": self.relative_uncertainty_percent,
        }
        if self.coverage_factor != 1.0:
            d[f"{self.name}_coverage_factor"] = self.coverage_factor
            d[f"{self.name}_expanded_uncertainty"] = self.expanded_uncertainty
        return d


# =============================================================================
# MONTE CARLO VALUES
# =============================================================================

@dataclass
class MonteCarloResult:
    """
    Summary statistics of a Monte Carlo sample set.

    Attributes:
        mean: Mean of MC samples
        std: Standard deviation of MC samples
        percentiles: Dictionary of percentile values (e.g., {2.5: val, 97.5: val})
        n_samples: Number of valid MC samples used
        n_rejected: Number of non-finite samples excluded
    """
    mean: float
    std: float
    percentiles: Dict[float, float]
    n_samples: int
    n_rejected: int = 0

    def coverage_interval(self, confidence: float = 0.95) -> tuple:
        """
        Probabilistically symmetric coverage interval from the samples.

        Raises:
            ValueError: If the percentiles for this confidence were not
                computed (pass the confidence to UncertainValue.summarize)
        """
        lower_p, upper_p = coverage_levels(confidence)
        if lower_p not in self.percentiles or upper_p not in self.percentiles:
            raise ValueError(
                f"Percentiles for {confidence*100:g}% coverage were not computed; "
                f"available levels: {sorted(self.percentiles)}"
            )
        return self.percentiles[lower_p], self.percentiles[upper_p]

    def to_measurement(self, unit: str = "", name: str = "",
                       confidence: float = 0.95) -> MeasurementWithUncertainty:
        """Convert to MeasurementWithUncertainty using MC statistics."""
        if self.std > 0 and np.isfinite(self.std):
            low, high = self.coverage_interval(confidence)
            k = (high - low) / 2 / self.std
        else:
            k = 2.0

        return MeasurementWithUncertainty(
            value=self.mean,
            uncertainty=self.std,
            unit=unit,
            name=name,
            coverage_factor=k,
            confidence_level=confidence,
        )


class UncertainValue:
    """
    A real-valued quantity known only up to a probability distribution.

    Stored as one sample per Monte Carlo trial. Arithmetic between two
    UncertainValues pairs samples by trial index, so independent inputs
    stay independent and a value combined with itself (A * A) stays
    perfectly correlated with itself.
    """

    __array_priority__ = 1000

    def __init__(self, samples, name: str = "", unit: str = ""):
        self.samples = np.asarray(samples, dtype=float)
        if self.samples.ndim != 1 or self.samples.size == 0:
            raise ValueError("UncertainValue needs a non-empty 1-D sample array")
        self.name = name
        self.unit = unit

    @classmethod
    def from_distribution(cls, distribution, n_samples: int,
                          rng: Optional[np.random.Generator] = None,
                          name: str = "", unit: str = "") -> 'UncertainValue':
        """Draw n_samples independent values from a distribution."""
        if n_samples < 1:
            raise ValueError(f"n_samples must be >= 1, got {n_samples}")
        rng = rng if rng is not None else np.random.default_rng()
        return cls(distribution.sample(rng, n_samples), name=name, unit=unit)

    def __len__(self) -> int:
        return self.samples.size

    def __repr__(self) -> str:
        return (f"UncertainValue({self.name or '?'}: mean={self.mean:.6g}, "
                f"std={self.std:.4g}, n={len(self)})")

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _operand(self, other):
        if isinstance(other, UncertainValue):
            if len(other) != len(self):
                raise ValueError(
                    f"Sample count mismatch: {len(self)} vs {len(other)}"
                )
            return other.samples
        if isinstance(other, numbers.Real):
            return float(other)
        return NotImplemented

    def _apply(self, other, op):
        operand = self._operand(other)
        if operand is NotImplemented:
            return NotImplemented
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            return UncertainValue(op(self.samples, operand))

    def __add__(self, other):
        return self._apply(other, np.add)

    def __radd__(self, other):
        return self._apply(other, lambda a, b: np.add(b, a))

    def __sub__(self, other):
        return self._apply(other, np.subtract)

    def __rsub__(self, other):
        return self._apply(other, lambda a, b: np.subtract(b, a))

    def __mul__(self, other):
        return self._apply(other, np.multiply)

    def __rmul__(self, other):
        return self._apply(other, lambda a, b: np.multiply(b, a))

    def __truediv__(self, other):
        return self._apply(other, np.divide)

    def __rtruediv__(self, other):
        return self._apply(other, lambda a, b: np.divide(b, a))

    def __neg__(self):
        return UncertainValue(-self.samples)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    @property
    def finite_samples(self) -> np.ndarray:
        return self.samples[np.isfinite(self.samples)]

    @property
    def mean(self) -> float:
        return float(np.mean(self.finite_samples))

    @property
    def std(self) -> float:
        finite = self.finite_samples
        if finite.size < 2:
            return 0.0
        return float(np.std(finite, ddof=1))

    def support(self) -> tuple:
        finite = self.finite_samples
        return float(finite.min()), float(finite.max())

    def summarize(self, percentile_levels: Sequence[float] = PERCENTILE_LEVELS,
                  confidence: Optional[float] = None) -> MonteCarloResult:
        """
        Reduce the sample set to a MonteCarloResult.

        Non-finite samples are excluded and reported through warnings.

        Args:
            percentile_levels: Percentiles to record
            confidence: Coverage probability whose interval bounds are
                added to the recorded percentiles
        """
        levels = list(percentile_levels)
        if confidence is not None:
            levels.extend(p for p in coverage_levels(confidence) if p not in levels)
        levels.sort()

        finite = self.finite_samples
        n_rejected = len(self) - finite.size

        if n_rejected:
            warnings.warn(
                f"Monte Carlo: {n_rejected}/{len(self)} samples were non-finite "
                f"and were excluded."
            )

        if finite.size == 0:
            return MonteCarloResult(
                mean=0.0, std=float('inf'),
                percentiles={}, n_samples=0, n_rejected=n_rejected,
            )

        if finite.size < 100:
            warnings.warn(
                f"Monte Carlo: only {finite.size} valid samples. "
                f"Results may be unreliable."
            )

        if finite.min() == finite.max():
            # Point mass: report the value itself, not a rounded average
            value = float(finite[0])
            return MonteCarloResult(
                mean=value, std=0.0,
                percentiles={p: value for p in levels},
                n_samples=int(finite.size), n_rejected=n_rejected,
            )

        percentiles = dict(zip(levels, (float(v) for v in np.percentile(finite, levels))))

        return MonteCarloResult(
            mean=float(np.mean(finite)),
            std=float(np.std(finite, ddof=1)) if finite.size > 1 else 0.0,
            percentiles=percentiles,
            n_samples=int(finite.size),
            n_rejected=n_rejected,
        )


# =============================================================================
# ANALYTICAL PROPAGATION
# =============================================================================

def propagate_power_law_uncertainty(
    values: Dict[str, float],
    uncertainties: Dict[str, float],
    exponents: Dict[str, float],
) -> float:
    """
    Relative standard uncertainty of a power-law product.

    For y = c * Π xᵢ^pᵢ with uncorrelated inputs, to first order:

        (u_y/y)² = Σ (pᵢ · u(xᵢ)/xᵢ)²

    Args:
        values: {variable_name: nominal value}
        uncertainties: {variable_name: standard uncertainty}
        exponents: {variable_name: exponent pᵢ}

    Returns:
        Relative standard uncertainty of y (fraction)
    """
    rel_sq = 0.0
    for var, p in exponents.items():
        x = values[var]
        u = uncertainties.get(var, 0.0)
        if u == 0:
            continue
        if x == 0:
            return float('inf')
        rel_sq += (p * u / x) ** 2
    return float(np.sqrt(rel_sq))


def format_with_uncertainty(
    value: float,
    uncertainty: float,
    significant_figures: int = 2
) -> str:
    """
    Format a value with uncertainty using proper significant figures.

    The uncertainty determines the precision of the value.

    Args:
        value: Central value
        uncertainty: Absolute uncertainty
        significant_figures: Significant figures for uncertainty

    Returns:
        Formatted string like "0.1257 ± 0.0016"
    """
    if uncertainty == 0:
        return f"{value:.6g} ± 0"
    if np.isinf(uncertainty) or np.isnan(uncertainty):
        return f"{value:.4g} ± ?"

    # Determine decimal places from uncertainty
    if uncertainty >= 1:
        u_decimals = max(0, significant_figures - int(np.floor(np.log10(uncertainty))) - 1)
    else:
        u_decimals = -int(np.floor(np.log10(uncertainty))) + significant_figures - 1

    u_decimals = max(0, min(12, u_decimals))

    return f"{value:.{u_decimals}f} ± {uncertainty:.{u_decimals}f}"
