"""Unit tests for the micro-thermo models in micro_thermo.py"""

import jax
import jax.numpy as jnp
import pytest
from pathlib import Path

from thermochem_core import stat_mech
from thermochem_core.chemistry_utils import load_chemical_mixture
from thermochem_core.curve_fit_utils import load_curve_fit_table
from thermochem_core.macro_thermo import MacroThermoEvaluator
from thermochem_core.micro_thermo import (
    build_ideal_gas_micro_thermo,
    build_micro_thermo_from_config,
    build_stat_mech_micro_thermo,
)
from thermochem_core.micro_thermo_types import MicroThermoConfig
from thermochem_core.stat_mech_utils import load_stat_mech_data

# Configure JAX for testing
jax.config.update("jax_enable_x64", True)

# Load test data
data_dir = Path(__file__).parent.parent.parent / "data"
general_data = str(data_dir / "air_5_species.json")
stat_mech_data = str(data_dir / "air_5_stat_mech.json")
nasa7_data = str(data_dir / "air_5_nasa7.json")
nasa9_data = str(data_dir / "air_5_nasa9.json")

Y_5 = jnp.array([0.5, 0.2, 0.1, 0.1, 0.1])


def _models():
    mixture = load_chemical_mixture(general_data)
    stat_mech_model = build_stat_mech_micro_thermo(
        mixture, load_stat_mech_data(stat_mech_data, mixture)
    )
    ideal_gas_model = build_ideal_gas_micro_thermo(
        MacroThermoEvaluator(mixture, load_curve_fit_table(nasa7_data, mixture, "nasa7"))
    )
    return mixture, stat_mech_model, ideal_gas_model


@pytest.mark.parametrize("variant", ["stat_mech", "ideal_gas"])
def test_structure_only_heat_capacities(variant):
    """cv_trans, cv_tr and cv_rot depend on the mixture only."""
    mixture, stat_mech_model, ideal_gas_model = _models()
    model = stat_mech_model if variant == "stat_mech" else ideal_gas_model
    R_s = mixture.gas_constants

    for T_value in [10.0, 300.0, 25000.0]:
        T = jnp.array(T_value)
        assert jnp.allclose(model.cv_trans(T), 1.5 * R_s, rtol=1e-15)
        assert jnp.allclose(model.cv_tr(T), mixture.n_tr_dofs * R_s, rtol=1e-15)
        assert jnp.allclose(
            model.cv_rot(T), mixture.n_tr_dofs * R_s - 1.5 * R_s, rtol=1e-15
        )

    assert jnp.allclose(model.cv_trans_over_R(jnp.array(1.0)), 1.5)
    assert jnp.array_equal(model.cv_rot_over_R(jnp.array(1.0))[2:4], jnp.zeros(2))


@pytest.mark.parametrize("variant", ["stat_mech", "ideal_gas"])
def test_linear_mixing_law(variant):
    mixture, stat_mech_model, ideal_gas_model = _models()
    model = stat_mech_model if variant == "stat_mech" else ideal_gas_model
    T = jnp.array([600.0, 2400.0])

    for quantity in ["cv_trans", "cv_tr", "cv_rot", "cv_vib", "cv_el"]:
        species_values = getattr(model, quantity)(T)
        mixture_value = getattr(model, f"{quantity}_mix")(T, Y_5)
        expected = jnp.sum(Y_5[:, None] * species_values, axis=0)
        assert jnp.allclose(mixture_value, expected, rtol=1e-14), quantity

        over_R_mix = getattr(model, f"{quantity}_over_R_mix")(T, Y_5)
        expected_over_R = jnp.sum(
            Y_5[:, None] * getattr(model, f"{quantity}_over_R")(T), axis=0
        )
        assert jnp.allclose(over_R_mix, expected_over_R, rtol=1e-14), quantity


def test_single_species_queries():
    mixture, stat_mech_model, _ = _models()
    T = jnp.array([1000.0, 8000.0])

    for s in range(mixture.n_species):
        assert jnp.allclose(stat_mech_model.cv_vib(T, species=s), stat_mech_model.cv_vib(T)[s])
        assert jnp.allclose(stat_mech_model.cv_tr(T, species=s), stat_mech_model.cv_tr(T)[s])

    with pytest.raises(IndexError):
        stat_mech_model.cv_el(T, species=7)


def test_stat_mech_variant_matches_stat_mech_functions():
    mixture, stat_mech_model, _ = _models()
    table = load_stat_mech_data(stat_mech_data, mixture)
    T = jnp.array(3141.5)

    assert jnp.allclose(stat_mech_model.cv_vib(T), stat_mech.compute_cv_vib(T, mixture, table))
    assert jnp.allclose(stat_mech_model.cv_el(T), stat_mech.compute_cv_el(T, mixture, table))


@pytest.mark.parametrize("data_path,family", [(nasa7_data, "nasa7"), (nasa9_data, "nasa9")])
@pytest.mark.parametrize("T_value", [501.2, 1501.2])
def test_ideal_gas_cv_vib_is_curve_fit_residual(data_path, family, T_value):
    mixture = load_chemical_mixture(general_data)
    evaluator = MacroThermoEvaluator(
        mixture, load_curve_fit_table(data_path, mixture, family)
    )
    model = build_ideal_gas_micro_thermo(evaluator)
    T = jnp.array(T_value)

    cv_vib = model.cv_vib(T)
    residual = (evaluator.cp_over_R(T) - 1.0 - mixture.n_tr_dofs) * mixture.gas_constants

    for s in [0, 1, 4]:
        assert jnp.isclose(cv_vib[s], residual[s], rtol=1e-10), mixture.names[s]
    assert jnp.all(cv_vib[2:4] == 0.0), "Atoms get no vibrational heat capacity"
    assert jnp.all(model.cv_el(T) == 0.0)
    assert jnp.all(model.cv_el_mix(T, Y_5) == 0.0)


def test_variants_agree_for_molecules_at_moderate_temperature():
    """Curve-fit residual and harmonic oscillator agree roughly at 1500 K."""
    mixture, stat_mech_model, ideal_gas_model = _models()
    T = jnp.array(1500.0)

    cv_sm = stat_mech_model.cv_vib_over_R(T)
    cv_ig = ideal_gas_model.cv_vib_over_R(T)

    assert jnp.allclose(cv_sm[jnp.array([0, 1, 4])], cv_ig[jnp.array([0, 1, 4])], atol=0.1)


def test_build_from_config():
    mixture = load_chemical_mixture(general_data)
    T = jnp.array(2000.0)

    model_sm = build_micro_thermo_from_config(
        MicroThermoConfig(model="stat_mech", data_path=stat_mech_data), mixture=mixture
    )
    model_ig = build_micro_thermo_from_config(
        MicroThermoConfig(model="ideal_gas", data_path=nasa9_data, curve_fit_family="nasa9"),
        mixture=mixture,
    )

    assert model_sm.cv_el(T).shape == (5,)
    assert jnp.all(model_ig.cv_el(T) == 0.0)


def test_build_from_config_errors():
    mixture = load_chemical_mixture(general_data)

    with pytest.raises(ValueError, match="requires data_path"):
        build_micro_thermo_from_config(None, mixture=mixture)
    with pytest.raises(ValueError, match="Unknown micro-thermo model"):
        build_micro_thermo_from_config(
            MicroThermoConfig(model="bird", data_path=stat_mech_data), mixture=mixture
        )


@pytest.mark.parametrize("variant", ["stat_mech", "ideal_gas"])
@pytest.mark.parametrize("query", ["cv_tr", "cv_vib", "cv_el", "cv_vib_over_R"])
@pytest.mark.parametrize("T_value", [0.0, -100.0])
def test_non_positive_temperature_rejected(variant, query, T_value):
    _, stat_mech_model, ideal_gas_model = _models()
    model = stat_mech_model if variant == "stat_mech" else ideal_gas_model

    with pytest.raises(ValueError, match="positive"):
        getattr(model, query)(T_value)
    with pytest.raises(ValueError, match="positive"):
        model.cv_vib_mix(jnp.array([300.0, T_value]), Y_5)


@pytest.mark.parametrize("variant", ["stat_mech", "ideal_gas"])
def test_integer_temperature_accepted(variant):
    mixture, stat_mech_model, ideal_gas_model = _models()
    model = stat_mech_model if variant == "stat_mech" else ideal_gas_model

    for query in ["cv_tr", "cv_vib", "cv_el"]:
        from_int = getattr(model, query)(300)
        assert from_int.shape == (mixture.n_species,)
        assert jnp.allclose(from_int, getattr(model, query)(300.0))


def test_jit_through_container():
    _, stat_mech_model, ideal_gas_model = _models()
    T = jnp.linspace(500.0, 5000.0, 4)

    for model in [stat_mech_model, ideal_gas_model]:
        cv_jit = jax.jit(lambda m, T: m.cv_vib_mix(T, Y_5))(model, T)
        assert jnp.allclose(cv_jit, model.cv_vib_mix(T, Y_5))


# Tests are automatically discovered and run by pytest
# Run with: pytest src/thermochem_core/micro_thermo_test.py
