from __future__ import annotations

import functools
import logging

import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core import stat_mech
from thermochem_core.chemistry_types import ChemicalMixture, broadcast_species
from thermochem_core.curve_fit_utils import load_curve_fit_table
from thermochem_core.macro_thermo import MacroThermoEvaluator
from thermochem_core.micro_thermo_types import MicroThermo, MicroThermoConfig
from thermochem_core.stat_mech_types import StatMechTable
from thermochem_core.stat_mech_utils import load_stat_mech_data

logger = logging.getLogger(__name__)


def _stat_mech_mode(
    T: Float[Array, "*batch"], *, fn, theta: Float[Array, "..."], g: Float[Array, "..."]
) -> Float[Array, "n_species *batch"]:
    return fn(jnp.asarray(T, dtype=theta.dtype), theta, g)


def build_stat_mech_micro_thermo(
    mixture: ChemicalMixture, table: StatMechTable
) -> MicroThermo:
    """Build the micro-thermo model from harmonic-oscillator and electronic-level data."""
    if table.species_names != mixture.names:
        raise ValueError(
            f"StatMechTable species {table.species_names} do not match mixture "
            f"species {mixture.names}."
        )

    vib_over_R = functools.partial(
        _stat_mech_mode,
        fn=stat_mech.compute_cv_vib_over_R,
        theta=table.theta_v,
        g=table.g_v,
    )
    el_over_R = functools.partial(
        _stat_mech_mode,
        fn=stat_mech.compute_cv_el_over_R,
        theta=table.theta_el,
        g=table.g_el,
    )
    return MicroThermo(mixture=mixture, vib_over_R=vib_over_R, el_over_R=el_over_R)


def build_ideal_gas_micro_thermo(evaluator: MacroThermoEvaluator) -> MicroThermo:
    """Build the micro-thermo model from curve fits.

    Everything in cp/R beyond 1 + n_tr_dofs is attributed to vibration:

        cv_vib/R_s = cp/R_s - 1 - n_tr_dofs

    Atoms have no vibrational mode and get exactly zero. The electronic
    contribution is zero.
    """
    mixture = evaluator.mixture

    def vib_over_R(T: Float[Array, "*batch"]) -> Float[Array, "n_species *batch"]:
        T = jnp.asarray(T)
        residual = (
            evaluator.cp_over_R(T) - 1.0 - broadcast_species(mixture.n_tr_dofs, T.ndim)
        )
        is_monoatomic = broadcast_species(mixture.is_monoatomic, T.ndim)
        return jnp.where(is_monoatomic, 0.0, residual)

    def el_over_R(T: Float[Array, "*batch"]) -> Float[Array, "n_species *batch"]:
        T = jnp.asarray(T)
        return jnp.zeros((mixture.n_species,) + T.shape, dtype=evaluator.table.coefficients.dtype)

    return MicroThermo(mixture=mixture, vib_over_R=vib_over_R, el_over_R=el_over_R)


def build_micro_thermo_from_config(
    config: MicroThermoConfig | None,
    *,
    mixture: ChemicalMixture,
) -> MicroThermo:
    """Build a micro-thermo model from a configuration object."""
    if config is None:
        config = MicroThermoConfig()

    if not config.data_path:
        raise ValueError(f"Micro-thermo model '{config.model}' requires data_path.")

    model = config.model.lower()
    if model == "stat_mech":
        table = load_stat_mech_data(config.data_path, mixture)
        logger.debug("Building stat_mech micro-thermo from %s", config.data_path)
        return build_stat_mech_micro_thermo(mixture, table)

    if model == "ideal_gas":
        table = load_curve_fit_table(
            config.data_path, mixture, config.curve_fit_family
        )
        logger.debug(
            "Building ideal_gas micro-thermo from %s (%s)",
            config.data_path,
            config.curve_fit_family,
        )
        return build_ideal_gas_micro_thermo(MacroThermoEvaluator(mixture, table))

    raise ValueError(f"Unknown micro-thermo model '{config.model}'.")
