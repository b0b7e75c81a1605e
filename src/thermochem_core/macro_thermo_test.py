"""Unit tests for MacroThermoEvaluator and curve fit diagnostics"""

import warnings

import jax
import jax.numpy as jnp
import pytest
from pathlib import Path

from thermochem_core import curve_fit, diagnose
from thermochem_core.chemistry_utils import load_chemical_mixture
from thermochem_core.curve_fit_utils import load_curve_fit_table
from thermochem_core.exceptions import CurveFitExtrapolationWarning
from thermochem_core.macro_thermo import MacroThermoEvaluator

# Configure JAX for testing
jax.config.update("jax_enable_x64", True)

# Load test data
data_dir = Path(__file__).parent.parent.parent / "data"
general_data = str(data_dir / "air_5_species.json")
nasa7_data = str(data_dir / "air_5_nasa7.json")

Y_AIR = jnp.array([0.767, 0.233, 0.0, 0.0, 0.0])


def _evaluator():
    mixture = load_chemical_mixture(general_data)
    table = load_curve_fit_table(nasa7_data, mixture, "nasa7")
    return MacroThermoEvaluator(mixture, table)


def test_species_and_all_species_queries_agree():
    evaluator = _evaluator()
    T = jnp.array([400.0, 2000.0])

    cp_all = evaluator.cp(T)
    assert cp_all.shape == (5, 2)
    for s in range(5):
        assert jnp.allclose(evaluator.cp(T, species=s), cp_all[s])
        assert jnp.allclose(evaluator.h_over_RT(T, species=s), evaluator.h_over_RT(T)[s])


def test_dimensional_values_scale_with_gas_constant():
    evaluator = _evaluator()
    T = jnp.array(1200.0)
    R_s = evaluator.mixture.gas_constants

    assert jnp.allclose(evaluator.cp(T), R_s * evaluator.cp_over_R(T))
    assert jnp.allclose(evaluator.cv(T), evaluator.cp(T) - R_s)
    assert jnp.allclose(evaluator.h(T), R_s * T * evaluator.h_over_RT(T))
    assert jnp.allclose(evaluator.s(T), R_s * evaluator.s_over_R(T))


def test_mixture_values_are_mass_fraction_weighted():
    evaluator = _evaluator()
    T = jnp.array([500.0, 1500.0])
    Y = jnp.stack([Y_AIR, Y_AIR], axis=1)

    cp_mix = evaluator.cp_mix(T, Y)
    expected = jnp.sum(Y * evaluator.cp(T), axis=0)
    assert cp_mix.shape == (2,)
    assert jnp.allclose(cp_mix, expected, rtol=1e-14)

    # A single composition may be broadcast against a temperature batch
    assert jnp.allclose(evaluator.h_mix(T, Y_AIR), evaluator.h_mix(T, Y), rtol=1e-14)
    assert jnp.allclose(
        evaluator.cp_over_R_mix(T, Y_AIR),
        jnp.sum(Y * evaluator.cp_over_R(T), axis=0),
        rtol=1e-14,
    )


def test_pure_species_mixture_reduces_to_species_value():
    evaluator = _evaluator()
    T = jnp.array(800.0)
    Y = jnp.array([0.0, 0.0, 0.0, 0.0, 1.0])

    assert jnp.isclose(evaluator.s_mix(T, Y), evaluator.s(T, species=4))
    assert jnp.isclose(evaluator.cv_mix(T, Y), evaluator.cv(T, species=4))
    assert jnp.isclose(evaluator.s_over_R_mix(T, Y), evaluator.s_over_R(T, species=4))
    assert jnp.isclose(evaluator.h_over_RT_mix(T, Y), evaluator.h_over_RT(T, species=4))


def test_species_index_out_of_range():
    evaluator = _evaluator()

    with pytest.raises(IndexError):
        evaluator.cp(jnp.array(300.0), species=5)


def test_mismatched_table_rejected():
    mixture = load_chemical_mixture(general_data)
    other = load_chemical_mixture(general_data, ["N2", "O2"])
    table = load_curve_fit_table(nasa7_data, other, "nasa7")

    with pytest.raises(ValueError, match="do not match"):
        MacroThermoEvaluator(mixture, table)


def test_extrapolation_is_reported_not_raised():
    evaluator = _evaluator()
    T = jnp.array([250.0, 1000.0])

    with pytest.warns(CurveFitExtrapolationWarning, match="N2"):
        in_range = diagnose.check_curve_fit_range(T, evaluator)
    assert not in_range

    # Values are still produced with the clamped interval
    assert jnp.all(jnp.isfinite(evaluator.cp(T)))


def test_no_warning_inside_range():
    evaluator = _evaluator()

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert diagnose.check_curve_fit_range(jnp.array([400.0, 3000.0]), evaluator)


def test_non_positive_temperature_rejected_by_diagnostics():
    evaluator = _evaluator()

    with pytest.raises(ValueError, match="positive"):
        diagnose.check_curve_fit_range(jnp.array([0.0, 300.0]), evaluator)


@pytest.mark.parametrize("T_value", [0.0, -300.0])
@pytest.mark.parametrize("query", ["cp_over_R", "h_over_RT", "s_over_R", "cp", "h", "s"])
def test_non_positive_temperature_rejected(query, T_value):
    evaluator = _evaluator()

    with pytest.raises(ValueError, match="positive"):
        getattr(evaluator, query)(T_value, species=0)
    with pytest.raises(ValueError, match="positive"):
        getattr(evaluator, query)(jnp.array([300.0, T_value]))


def test_non_positive_temperature_rejected_by_mixture_queries():
    evaluator = _evaluator()

    with pytest.raises(ValueError, match="positive"):
        evaluator.cp_mix(jnp.array(-300.0), Y_AIR)


def test_integer_temperature_accepted():
    evaluator = _evaluator()

    assert jnp.allclose(evaluator.cp_over_R(300), evaluator.cp_over_R(300.0))


def test_jit_compatible():
    evaluator = _evaluator()
    T = jnp.linspace(300.0, 3000.0, 8)

    cp_jit = jax.jit(lambda ev, T: ev.cp_mix(T, Y_AIR))(evaluator, T)
    assert jnp.allclose(cp_jit, evaluator.cp_mix(T, Y_AIR))
    assert jnp.array_equal(
        evaluator.extrapolation_mask(T), curve_fit.extrapolation_mask(T, evaluator.table)
    )


# Tests are automatically discovered and run by pytest
# Run with: pytest src/thermochem_core/macro_thermo_test.py
