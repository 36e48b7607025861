"""
Input Distributions Module
==========================
Probability distributions used to describe uncertain physical inputs.

Only the shapes the pressure-drop model needs are supported:
- Bounded-uniform: instrument tolerance bands (mean ± tolerance)
- Log-normal: strictly positive quantities with multiplicative error
- Point mass: any quantity whose uncertainty is exactly zero

Every distribution is built from a (mean, uncertainty) pair through
make_distribution(), which fails fast on parameters that cannot describe
a physical quantity.

Usage:
    from poiseuille.distributions import DistributionShape, make_distribution

    dist = make_distribution(DistributionShape.BOUNDED_UNIFORM, 1.0, 0.01)
    samples = dist.sample(np.random.default_rng(42), 10000)
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np
from scipy import stats


class InvalidDistributionParameter(ValueError):
    """Raised when a (mean, uncertainty) pair cannot define a distribution."""


class DegenerateDivision(ZeroDivisionError):
    """Raised when a divisor's distribution can reach zero."""


class DistributionShape(Enum):
    """Supported distribution shapes."""
    BOUNDED_UNIFORM = "uniform"
    LOG_NORMAL = "lognormal"


# =============================================================================
# DISTRIBUTION TYPES
# =============================================================================

@dataclass(frozen=True)
class PointMass:
    """
    Degenerate distribution: all probability at a single value.

    Produced for any shape when the uncertainty is zero, so that a
    zero-tolerance model evaluates to the exact closed-form value.
    """
    value: float

    @property
    def mean(self) -> float:
        return self.value

    @property
    def std(self) -> float:
        return 0.0

    def support(self) -> Tuple[float, float]:
        return self.value, self.value

    def sample(self, rng: np.random.Generator, n: int) -> np.ndarray:
        return np.full(n, self.value, dtype=float)

    def to_scipy(self):
        """Zero-width scipy.stats equivalent: a single-point discrete distribution."""
        return stats.rv_discrete(name='point_mass', values=([self.value], [1.0]))


@dataclass(frozen=True)
class BoundedUniform:
    """
    Uniform distribution over the closed interval [low, high].

    Attributes:
        low: Lower bound of the tolerance band
        high: Upper bound of the tolerance band
    """
    low: float
    high: float

    def __post_init__(self):
        if not (np.isfinite(self.low) and np.isfinite(self.high)):
            raise InvalidDistributionParameter(
                f"Uniform bounds must be finite, got [{self.low}, {self.high}]"
            )
        if self.low >= self.high:
            raise InvalidDistributionParameter(
                f"Uniform lower bound must be below upper bound, got [{self.low}, {self.high}]"
            )

    @property
    def half_width(self) -> float:
        return (self.high - self.low) / 2

    @property
    def mean(self) -> float:
        return (self.low + self.high) / 2

    @property
    def std(self) -> float:
        """Standard uncertainty of a rectangular distribution: a / √3."""
        return self.half_width / math.sqrt(3)

    def support(self) -> Tuple[float, float]:
        return self.low, self.high

    def sample(self, rng: np.random.Generator, n: int) -> np.ndarray:
        return rng.uniform(self.low, self.high, size=n)

    def to_scipy(self):
        """Frozen scipy.stats equivalent."""
        return stats.uniform(loc=self.low, scale=self.high - self.low)


@dataclass(frozen=True)
class LogNormal:
    """
    Log-normal distribution, ln(X) ~ Normal(mu, sigma).

    Use LogNormal.from_mean_std() to build one from the physical mean and
    standard deviation of the quantity itself.

    Attributes:
        mu: Location (mean of ln X)
        sigma: Scale (standard deviation of ln X), strictly positive
    """
    mu: float
    sigma: float

    def __post_init__(self):
        if not np.isfinite(self.mu):
            raise InvalidDistributionParameter(f"Log-normal location must be finite, got {self.mu}")
        if not (np.isfinite(self.sigma) and self.sigma > 0):
            raise InvalidDistributionParameter(
                f"Log-normal scale must be positive, got {self.sigma}"
            )

    @classmethod
    def from_mean_std(cls, mean: float, std: float) -> 'LogNormal':
        """
        Derive (mu, sigma) so the distribution has the given mean and std.

            sigma² = ln(1 + (std/mean)²)
            mu     = ln(mean) - sigma²/2

        Args:
            mean: Mean of the quantity (must be > 0)
            std: Standard deviation of the quantity (must be > 0)

        Returns:
            LogNormal instance

        Raises:
            InvalidDistributionParameter: If mean <= 0 or the derived scale
                underflows to zero
        """
        if mean <= 0:
            raise InvalidDistributionParameter(
                f"Log-normal mean must be positive, got {mean}"
            )
        # log1p keeps precision when std/mean is ~1e-6
        variance_log = math.log1p((std / mean) ** 2)
        sigma = math.sqrt(variance_log)
        if sigma <= 0:
            raise InvalidDistributionParameter(
                f"Derived log-normal scale is not positive for mean={mean}, std={std}"
            )
        return cls(mu=math.log(mean) - variance_log / 2, sigma=sigma)

    @property
    def mean(self) -> float:
        return math.exp(self.mu + self.sigma ** 2 / 2)

    @property
    def std(self) -> float:
        return self.mean * math.sqrt(math.expm1(self.sigma ** 2))

    def support(self) -> Tuple[float, float]:
        return 0.0, math.inf

    def sample(self, rng: np.random.Generator, n: int) -> np.ndarray:
        return rng.lognormal(mean=self.mu, sigma=self.sigma, size=n)

    def to_scipy(self):
        """Frozen scipy.stats equivalent."""
        return stats.lognorm(s=self.sigma, scale=math.exp(self.mu))


Distribution = Union[PointMass, BoundedUniform, LogNormal]


# =============================================================================
# CONSTRUCTION
# =============================================================================

def make_distribution(
    shape: DistributionShape,
    mean: float,
    uncertainty: float
) -> Distribution:
    """
    Build a distribution from a nominal value and its uncertainty.

    For BOUNDED_UNIFORM the uncertainty is the half-width of the tolerance
    band; for LOG_NORMAL it is the standard deviation of the quantity.
    A zero uncertainty yields a PointMass regardless of shape.

    Args:
        shape: Distribution shape
        mean: Nominal value
        uncertainty: Uncertainty parameter (must be >= 0)

    Returns:
        Distribution instance

    Raises:
        InvalidDistributionParameter: On negative or non-finite parameters
    """
    if not (np.isfinite(mean) and np.isfinite(uncertainty)):
        raise InvalidDistributionParameter(
            f"Parameters must be finite, got mean={mean}, uncertainty={uncertainty}"
        )
    if uncertainty < 0:
        raise InvalidDistributionParameter(
            f"Uncertainty cannot be negative, got {uncertainty}"
        )

    if shape == DistributionShape.LOG_NORMAL and mean <= 0:
        raise InvalidDistributionParameter(
            f"Log-normal mean must be positive, got {mean}"
        )

    if uncertainty == 0:
        return PointMass(float(mean))

    if shape == DistributionShape.BOUNDED_UNIFORM:
        return BoundedUniform(low=mean - uncertainty, high=mean + uncertainty)

    elif shape == DistributionShape.LOG_NORMAL:
        return LogNormal.from_mean_std(mean, uncertainty)

    else:
        raise InvalidDistributionParameter(f"Unknown distribution shape: {shape}")
