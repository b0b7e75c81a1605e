"""Unit tests for Species and ChemicalMixture in chemistry_types.py"""

import jax
import jax.numpy as jnp
import numpy as np
import pytest
from pathlib import Path

from thermochem_core import constants
from thermochem_core.chemistry_types import (
    ChemicalMixture,
    Species,
    compute_mixture_property,
)
from thermochem_core.chemistry_utils import load_chemical_mixture

# Configure JAX for testing
jax.config.update("jax_enable_x64", True)

# Load test data
data_dir = Path(__file__).parent.parent.parent / "data"
general_data = str(data_dir / "air_5_species.json")


def test_load_all_species_in_file_order():
    mixture = load_chemical_mixture(general_data)

    assert mixture.names == ("N2", "O2", "N", "O", "NO")
    assert mixture.n_species == 5
    assert jnp.isclose(mixture.molar_mass(0), 28.016e-3), (
        "Molar mass should be converted from g/mol to kg/mol"
    )


def test_load_preserves_requested_order():
    mixture = load_chemical_mixture(general_data, ["O", "N2"])

    assert mixture.names == ("O", "N2")
    assert jnp.allclose(mixture.molar_masses, jnp.array([16.0e-3, 28.016e-3]))
    assert jnp.allclose(mixture.formation_enthalpy, jnp.array([1.542e7, 0.0]))


def test_load_missing_species_raises():
    with pytest.raises(ValueError, match="Ar"):
        load_chemical_mixture(general_data, ["N2", "Ar"])


def test_load_empty_species_list_raises():
    with pytest.raises(ValueError, match="empty"):
        load_chemical_mixture(general_data, [])


def test_gas_constants():
    mixture = load_chemical_mixture(general_data)

    expected = constants.R_universal / mixture.molar_masses
    assert jnp.allclose(mixture.gas_constants, expected)
    assert jnp.isclose(mixture.gas_constant(1), constants.R_universal / 32.0e-3)


def test_species_index_lookup():
    mixture = load_chemical_mixture(general_data)

    assert mixture.species_index("O") == 3
    with pytest.raises(ValueError, match="not found"):
        mixture.species_index("Ar")


@pytest.mark.parametrize("s", [-1, 5, 100])
def test_species_index_out_of_range(s):
    mixture = load_chemical_mixture(general_data)

    with pytest.raises(IndexError):
        mixture.check_species_index(s)
    with pytest.raises(IndexError):
        mixture.molar_mass(s)


@pytest.mark.parametrize("s", [np.int64(1), np.int32(1), jnp.array(1)])
def test_species_index_accepts_integer_scalars(s):
    mixture = load_chemical_mixture(general_data)

    assert mixture.check_species_index(s) == 1
    assert isinstance(mixture.check_species_index(s), int)
    assert mixture.molar_mass(s) == mixture.molar_masses[1]


@pytest.mark.parametrize("s", [1.0, True, "N2", jnp.array([1])])
def test_species_index_rejects_non_integers(s):
    mixture = load_chemical_mixture(general_data)

    with pytest.raises(IndexError, match="integer"):
        mixture.check_species_index(s)


def test_is_monoatomic():
    mixture = load_chemical_mixture(general_data)

    expected = jnp.array([False, False, True, True, False])
    assert jnp.array_equal(mixture.is_monoatomic, expected), (
        f"Expected {expected}, got {mixture.is_monoatomic}"
    )


def test_mean_molar_mass_pure_species():
    mixture = load_chemical_mixture(general_data)
    Y = jnp.array([0.0, 0.0, 0.0, 1.0, 0.0])

    assert jnp.isclose(mixture.mean_molar_mass(Y), 16.0e-3, rtol=1e-14)


def test_mean_molar_mass_and_mole_fractions_batch():
    mixture = load_chemical_mixture(general_data)
    Y = jnp.array(
        [
            [0.767, 0.5, 0.2],
            [0.233, 0.1, 0.2],
            [0.0, 0.2, 0.2],
            [0.0, 0.1, 0.2],
            [0.0, 0.1, 0.2],
        ]
    )

    M = mixture.mean_molar_mass(Y)
    chi = mixture.mole_fractions(Y)

    assert M.shape == (3,)
    assert chi.shape == Y.shape
    assert jnp.allclose(jnp.sum(chi, axis=0), 1.0, rtol=1e-14)

    # Air: 1 / (0.767/28.016 + 0.233/32) g/mol
    expected_air = 1.0 / (0.767 / 28.016e-3 + 0.233 / 32.0e-3)
    assert jnp.isclose(M[0], expected_air, rtol=1e-14)


def test_mass_fractions_with_wrong_length_raise():
    mixture = load_chemical_mixture(general_data)

    with pytest.raises(ValueError, match="leading axis"):
        mixture.mean_molar_mass(jnp.array([0.5, 0.5]))


def test_species_rejects_non_positive_molar_mass():
    with pytest.raises(ValueError, match="positive molar mass"):
        Species(index=0, name="X", molar_mass=0.0)


def test_species_rejects_unsupported_dofs():
    with pytest.raises(ValueError, match="n_tr_dofs"):
        Species(index=0, name="X", molar_mass=0.028, n_tr_dofs=3.0)


def test_mixture_rejects_empty_and_duplicates():
    with pytest.raises(ValueError, match="at least one"):
        ChemicalMixture.from_species([])

    duplicates = [
        Species(index=0, name="N2", molar_mass=0.028),
        Species(index=1, name="N2", molar_mass=0.028),
    ]
    with pytest.raises(ValueError, match="unique"):
        ChemicalMixture.from_species(duplicates)


def test_mixture_rejects_misplaced_index():
    with pytest.raises(ValueError, match="position"):
        ChemicalMixture.from_species([Species(index=1, name="N2", molar_mass=0.028)])


def test_species_view_round_trip():
    mixture = load_chemical_mixture(general_data)

    nitrogen = mixture.species[2]
    assert nitrogen.name == "N"
    assert nitrogen.n_tr_dofs == 1.5
    assert nitrogen.formation_enthalpy == pytest.approx(3.3621610e7)


def test_compute_mixture_property_broadcasts_constants():
    Y = jnp.array([[0.25, 1.0], [0.75, 0.0]])
    values = jnp.array([4.0, 8.0])

    result = compute_mixture_property(Y, values)

    assert jnp.allclose(result, jnp.array([7.0, 4.0]))


# Tests are automatically discovered and run by pytest
# Run with: pytest src/thermochem_core/chemistry_types_test.py
