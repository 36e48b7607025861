"""
Quantity Model Tests
====================
Tests for input records, quantity rules, independent drawing and the
evaluation configuration schema.

Run with: python -m pytest tests/test_quantities.py -v
Or:       python tests/test_quantities.py
"""

import sys
import dataclasses
import warnings
import numpy as np
import pytest
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from poiseuille.distributions import (
    BoundedUniform,
    DistributionShape,
    InvalidDistributionParameter,
    LogNormal,
    PointMass,
)
from poiseuille.quantities import (
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
from poiseuille.config_validation import (
    EvaluationConfig,
    FluidConfig,
    PipeConfig,
    validate_config,
)


ZERO_FLUID = FluidProperties(0.5, 0.0, 0.001, 0.0)
ZERO_PIPE = PipeGeometry(1.0, 0.0, 0.1, 0.0)


class TestInputRecords:
    """Test FluidProperties and PipeGeometry."""

    def test_defaults(self):
        assert WATER_20C.mean_viscosity == 0.001
        assert WATER_20C.viscosity_uncertainty == 0.002e-6
        assert WATER_20C.mean_flow_rate == 0.5
        assert WATER_20C.flow_rate_uncertainty == 0.0001
        assert DEFAULT_PIPE.length == 1.0
        assert DEFAULT_PIPE.length_tolerance == 0.01
        assert DEFAULT_PIPE.cross_section == 0.1
        assert DEFAULT_PIPE.cross_section_tolerance == 0.001

        print("[PASS] Reference parameters")

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            FluidProperties(0.5, -0.0001, 0.001, 0.0)

        with pytest.raises(ValueError):
            PipeGeometry(-1.0, 0.01, 0.1, 0.001)

        with pytest.raises(ValueError):
            PipeGeometry(1.0, 0.01, float('nan'), 0.001)

        print("[PASS] Negative and non-finite fields rejected")

    def test_records_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            WATER_20C.mean_flow_rate = 1.0

        print("[PASS] Input records are immutable")


class TestMaterializeInputs:
    """Test the quantity-to-distribution rules."""

    def test_default_shapes(self):
        dists = materialize_inputs(WATER_20C, DEFAULT_PIPE)

        assert list(dists) == ['viscosity', 'length', 'flow_rate', 'cross_section']
        assert isinstance(dists['viscosity'], LogNormal)
        assert isinstance(dists['length'], BoundedUniform)
        assert isinstance(dists['flow_rate'], BoundedUniform)
        assert isinstance(dists['cross_section'], BoundedUniform)

        assert abs(dists['length'].low - 0.99) < 1e-12
        assert abs(dists['length'].high - 1.01) < 1e-12
        assert abs(dists['cross_section'].low - 0.099) < 1e-12
        assert abs(dists['cross_section'].high - 0.101) < 1e-12
        assert abs(dists['flow_rate'].low - 0.4999) < 1e-12
        assert abs(dists['flow_rate'].high - 0.5001) < 1e-12
        assert abs(dists['viscosity'].mean - 0.001) < 1e-15

        print("[PASS] Default distribution shapes and bounds")

    def test_zero_tolerances_give_point_masses(self):
        dists = materialize_inputs(ZERO_FLUID, ZERO_PIPE)

        assert all(isinstance(d, PointMass) for d in dists.values())
        assert nominal_values(ZERO_FLUID, ZERO_PIPE) == {
            'viscosity': 0.001,
            'length': 1.0,
            'flow_rate': 0.5,
            'cross_section': 0.1,
        }

        print("[PASS] Zero tolerances give point masses")

    def test_alternate_rule_table(self):
        """Shapes are data: a different table swaps the distribution."""
        rules = dict(QUANTITY_RULES)
        rules['cross_section'] = QuantityRule(
            'pipe', 'cross_section', 'cross_section_tolerance',
            DistributionShape.LOG_NORMAL, 'm²',
        )

        dists = materialize_inputs(WATER_20C, DEFAULT_PIPE, rules)
        assert isinstance(dists['cross_section'], LogNormal)
        assert abs(dists['cross_section'].std - 0.001) / 0.001 < 1e-9

        print("[PASS] Alternate rule table")

    def test_zero_viscosity_rejected(self):
        fluid = FluidProperties(0.5, 0.0001, 0.0, 0.0001)
        with pytest.raises(InvalidDistributionParameter):
            materialize_inputs(fluid, DEFAULT_PIPE)

        print("[PASS] Zero-mean log-normal input rejected")


class TestDrawInputs:
    """Test independent, reproducible drawing."""

    def test_draws_within_support(self):
        dists = materialize_inputs(WATER_20C, DEFAULT_PIPE)
        values = draw_inputs(dists, 10000, seed=1)

        for name in ('length', 'flow_rate', 'cross_section'):
            low, high = dists[name].support()
            assert values[name].samples.min() >= low
            assert values[name].samples.max() <= high
            assert len(values[name]) == 10000

        assert values['viscosity'].samples.min() > 0
        assert values['cross_section'].unit == 'm²'

        print("[PASS] Draws within support")

    def test_seed_reproducible(self):
        dists = materialize_inputs(WATER_20C, DEFAULT_PIPE)
        a = draw_inputs(dists, 1000, seed=42)
        b = draw_inputs(dists, 1000, seed=42)
        c = draw_inputs(dists, 1000, seed=43)

        for name in dists:
            assert np.array_equal(a[name].samples, b[name].samples)
        assert not np.array_equal(a['length'].samples, c['length'].samples)

        print("[PASS] Seeded draws reproducible")

    def test_inputs_independent(self):
        """Each input gets its own stream: no correlation between inputs."""
        dists = materialize_inputs(WATER_20C, DEFAULT_PIPE)
        values = draw_inputs(dists, 20000, seed=7)

        r = np.corrcoef(values['length'].samples, values['cross_section'].samples)[0, 1]
        assert abs(r) < 0.05
        r = np.corrcoef(values['flow_rate'].samples, values['length'].samples)[0, 1]
        assert abs(r) < 0.05

        print("[PASS] Inputs drawn independently")


class TestEvaluationConfig:
    """Test pydantic configuration schema."""

    def test_defaults_match_reference(self):
        config = validate_config()

        assert config.fluid.to_properties() == WATER_20C
        assert config.pipe.to_geometry() == DEFAULT_PIPE
        assert config.n_samples == 100_000
        assert config.seed is None
        assert config.confidence == 0.95

        print("[PASS] Default configuration")

    def test_partial_override(self):
        config = validate_config({
            'fluid': {'mean_flow_rate': 0.6},
            'seed': 3,
            'n_samples': 20000,
        })

        assert config.fluid.mean_flow_rate == 0.6
        assert config.fluid.mean_viscosity == 0.001
        assert config.pipe == PipeConfig()
        assert config.seed == 3

        print("[PASS] Partial override keeps defaults")

    def test_invalid_values_rejected(self):
        bad_configs = [
            {'fluid': {'mean_flow_rate': -1.0}},
            {'fluid': {'mean_viscosity': 0.0}},
            {'pipe': {'cross_section': 0.0}},
            {'pipe': {'length_tolerance': -0.01}},
            {'confidence': 1.5},
            {'n_samples': 1},
            {'seed': -1},
            {'unknown_key': 1},
            {'pipe': {'diameter': 0.3}},
        ]

        for bad in bad_configs:
            with pytest.raises(ValueError, match="Configuration validation failed"):
                validate_config(bad)

        print("[PASS] Invalid configurations rejected")

    def test_low_trial_count_warns(self):
        with pytest.warns(UserWarning, match="unstable"):
            EvaluationConfig(n_samples=1000)

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            EvaluationConfig(n_samples=10000)

        print("[PASS] Low trial count warns")

    def test_config_is_frozen(self):
        config = EvaluationConfig()
        with pytest.raises(Exception):
            config.seed = 5

        assert FluidConfig().to_properties() == WATER_20C

        print("[PASS] Configuration is immutable")


def run_all_tests():
    """Run all tests without pytest runner."""
    print("=" * 60)
    print("Quantity Model Tests")
    print("=" * 60)

    test_classes = [
        TestInputRecords,
        TestMaterializeInputs,
        TestDrawInputs,
        TestEvaluationConfig,
    ]

    passed = 0
    failed = 0

    for test_class in test_classes:
        print(f"\n{test_class.__name__}")
        print("-" * 40)

        instance = test_class()
        methods = [m for m in dir(instance) if m.startswith('test_')]

        for method_name in methods:
            method = getattr(instance, method_name)
            try:
                method()
                passed += 1
            except Exception as e:
                print(f"[FAIL] {method_name}: {e}")
                import traceback
                traceback.print_exc()
                failed += 1

    print("\n" + "=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == '__main__':
    success = run_all_tests()
    sys.exit(0 if success else 1)
