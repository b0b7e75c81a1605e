"""Species-level transport models.

Viscosities from Blottner, Sutherland and a variable hard sphere power law,
and the Eucken relation for species thermal conductivity. Each ``build_*``
function returns a SpeciesTransportModel, a callable T -> (n_species, *batch)
that the Wilke evaluator mixes.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Mapping

import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core import constants
from thermochem_core.chemistry_types import ChemicalMixture, broadcast_species
from thermochem_core.chemistry_utils import read_json_entries, select_entries_by_name
from thermochem_core.micro_thermo_types import MicroThermo
from thermochem_core.transport_types import (
    BlottnerTable,
    PowerLawTable,
    SpeciesTransportModel,
    SutherlandTable,
)

logger = logging.getLogger(__name__)

EUCKEN_TRANS_FACTOR = 2.5
EUCKEN_ROT_FACTOR = 1.0
EUCKEN_VE_FACTOR = 1.2


def load_blottner_table(
    json_path: str | Path, mixture: ChemicalMixture
) -> BlottnerTable:
    """Load Blottner coefficients from a JSON list of {name, A, B, C}."""
    raw_data = read_json_entries(json_path)
    entries = select_entries_by_name(raw_data, mixture.names, str(json_path))

    logger.debug("Loaded Blottner coefficients for %s", mixture.names)
    return BlottnerTable(
        species_names=mixture.names,
        A=jnp.array([float(entry["A"]) for entry in entries]),
        B=jnp.array([float(entry["B"]) for entry in entries]),
        C=jnp.array([float(entry["C"]) for entry in entries]),
    )


def build_sutherland_table(
    mixture: ChemicalMixture, coefficients: Mapping[str, Mapping[str, float]]
) -> SutherlandTable:
    """Collect {mu_ref, T_ref, S} per species into a SutherlandTable."""
    missing = [name for name in mixture.names if name not in coefficients]
    if missing:
        raise ValueError(f"Sutherland data missing for species: {missing}")
    entries = [coefficients[name] for name in mixture.names]
    return SutherlandTable(
        species_names=mixture.names,
        mu_ref=jnp.array([float(entry["mu_ref"]) for entry in entries]),
        T_ref=jnp.array([float(entry["T_ref"]) for entry in entries]),
        S=jnp.array([float(entry["S"]) for entry in entries]),
    )


# =============================================================================
# Viscosity
# =============================================================================


def compute_species_viscosity_blottner(
    T: Float[Array, "*batch"],
    table: BlottnerTable,
) -> Float[Array, "n_species *batch"]:
    """Species viscosity [Pa s] from Blottner's curve fit."""
    T = jnp.asarray(T)
    log_T = jnp.log(jnp.clip(T, 1e-12, None))[None, ...]
    A = broadcast_species(table.A, T.ndim)
    B = broadcast_species(table.B, T.ndim)
    C = broadcast_species(table.C, T.ndim)
    return 0.1 * jnp.exp((A * log_T + B) * log_T + C)


def compute_species_viscosity_sutherland(
    T: Float[Array, "*batch"],
    table: SutherlandTable,
) -> Float[Array, "n_species *batch"]:
    """Species viscosity [Pa s] from Sutherland's law."""
    T = jnp.asarray(T)[None, ...]
    mu_ref = broadcast_species(table.mu_ref, T.ndim - 1)
    T_ref = broadcast_species(table.T_ref, T.ndim - 1)
    S = broadcast_species(table.S, T.ndim - 1)
    return mu_ref * (T / T_ref) ** 1.5 * (T_ref + S) / (T + S)


def compute_species_viscosity_powerlaw(
    T: Float[Array, "*batch"],
    table: PowerLawTable,
    molar_masses: Float[Array, " n_species"],
) -> Float[Array, "n_species *batch"]:
    """Species viscosity [Pa s] of variable hard spheres, mu_ref (T/T_ref)^omega."""
    T = jnp.asarray(T)
    m_s = molar_masses / constants.N_A  # [kg]
    d_ref = table.d_ref
    omega = table.omega

    mu_ref = (
        15.0
        * jnp.sqrt(jnp.pi * m_s * constants.k * table.T_ref)
        / (2.0 * jnp.pi * d_ref**2 * (5.0 - 2.0 * omega) * (7.0 - 2.0 * omega))
    )

    return broadcast_species(mu_ref, T.ndim) * (
        T[None, ...] / table.T_ref
    ) ** broadcast_species(omega, T.ndim)


def build_blottner_viscosity(table: BlottnerTable) -> SpeciesTransportModel:
    return functools.partial(compute_species_viscosity_blottner, table=table)


def build_sutherland_viscosity(table: SutherlandTable) -> SpeciesTransportModel:
    return functools.partial(compute_species_viscosity_sutherland, table=table)


def build_powerlaw_viscosity(
    table: PowerLawTable, mixture: ChemicalMixture
) -> SpeciesTransportModel:
    return functools.partial(
        compute_species_viscosity_powerlaw,
        table=table,
        molar_masses=mixture.molar_masses,
    )


# =============================================================================
# Thermal conductivity
# =============================================================================


def compute_species_conductivity_eucken(
    T: Float[Array, "*batch"],
    viscosity: SpeciesTransportModel,
    micro_thermo: MicroThermo,
) -> Float[Array, "n_species *batch"]:
    """Species thermal conductivity [W/(m K)] from the modified Eucken relation.

    k_s = mu_s (2.5 cv_trans + cv_rot + 1.2 (cv_vib + cv_el))

    All modes are evaluated at T (thermal equilibrium).
    """
    T = jnp.asarray(T)
    mu_s = viscosity(T)
    cv_ve = micro_thermo.cv_vib(T) + micro_thermo.cv_el(T)
    return mu_s * (
        EUCKEN_TRANS_FACTOR * micro_thermo.cv_trans(T)
        + EUCKEN_ROT_FACTOR * micro_thermo.cv_rot(T)
        + EUCKEN_VE_FACTOR * cv_ve
    )


def build_eucken_conductivity(
    viscosity: SpeciesTransportModel, micro_thermo: MicroThermo
) -> SpeciesTransportModel:
    return functools.partial(
        compute_species_conductivity_eucken,
        viscosity=viscosity,
        micro_thermo=micro_thermo,
    )
