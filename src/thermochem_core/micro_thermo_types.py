from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core.chemistry_types import (
    MONOATOMIC_TR_DOFS,
    ChemicalMixture,
    broadcast_species,
    compute_mixture_property,
)
from thermochem_core.curve_fit_types import CurveFitFamily
from thermochem_core.diagnose import as_temperature


SpeciesFn = Callable[[Float[Array, "*batch"]], Float[Array, "n_species *batch"]]


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class MicroThermo:
    """Heat capacities decomposed by internal mode.

    Translational and rotational modes follow from ``mixture`` alone. The
    vibrational and electronic contributions are model dependent and are
    supplied as callables returning cv/R_s for all species at once.

    Every ``<quantity>(T, species=None)`` query returns shape
    (n_species, *batch), or (*batch) when a species index is given.
    Every ``<quantity>_mix(T, mass_fractions)`` query returns shape (*batch).
    """

    mixture: ChemicalMixture
    vib_over_R: SpeciesFn = field(metadata=dict(static=True))
    el_over_R: SpeciesFn = field(metadata=dict(static=True))

    def _constant(self, values, T):
        T = jnp.asarray(T)
        return jnp.broadcast_to(
            broadcast_species(values, T.ndim), (self.mixture.n_species,) + T.shape
        )

    def _select(self, values, species: int | None):
        if species is None:
            return values
        return values[self.mixture.check_species_index(species)]

    def _dimensional(self, values_over_R, T):
        return broadcast_species(self.mixture.gas_constants, jnp.ndim(T)) * values_over_R

    def _mix(self, values, mass_fractions):
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, values)

    # -------------------------------------------------------------------------
    # Per species, dimensionless
    # -------------------------------------------------------------------------

    def cv_trans_over_R(self, T, species: int | None = None):
        """Translational cv/R_s = 3/2."""
        T = as_temperature(T)
        values = self._constant(
            jnp.full(self.mixture.n_species, MONOATOMIC_TR_DOFS), T
        )
        return self._select(values, species)

    def cv_tr_over_R(self, T, species: int | None = None):
        """Translational-rotational cv/R_s = n_tr_dofs."""
        T = as_temperature(T)
        return self._select(self._constant(self.mixture.n_tr_dofs, T), species)

    def cv_rot_over_R(self, T, species: int | None = None):
        """Rotational cv/R_s = n_tr_dofs - 3/2 (zero for atoms)."""
        T = as_temperature(T)
        values = self._constant(self.mixture.n_tr_dofs - MONOATOMIC_TR_DOFS, T)
        return self._select(values, species)

    def cv_vib_over_R(self, T, species: int | None = None):
        return self._select(self.vib_over_R(as_temperature(T)), species)

    def cv_el_over_R(self, T, species: int | None = None):
        return self._select(self.el_over_R(as_temperature(T)), species)

    # -------------------------------------------------------------------------
    # Per species, dimensional [J/(kg K)]
    # -------------------------------------------------------------------------

    def cv_trans(self, T, species: int | None = None):
        return self._select(self._dimensional(self.cv_trans_over_R(T), T), species)

    def cv_tr(self, T, species: int | None = None):
        return self._select(self._dimensional(self.cv_tr_over_R(T), T), species)

    def cv_rot(self, T, species: int | None = None):
        return self._select(self._dimensional(self.cv_rot_over_R(T), T), species)

    def cv_vib(self, T, species: int | None = None):
        return self._select(self._dimensional(self.cv_vib_over_R(T), T), species)

    def cv_el(self, T, species: int | None = None):
        return self._select(self._dimensional(self.cv_el_over_R(T), T), species)

    # -------------------------------------------------------------------------
    # Mixture, sum_s Y_s * value_s
    # -------------------------------------------------------------------------

    def cv_trans_over_R_mix(self, T, mass_fractions):
        return self._mix(self.cv_trans_over_R(T), mass_fractions)

    def cv_tr_over_R_mix(self, T, mass_fractions):
        return self._mix(self.cv_tr_over_R(T), mass_fractions)

    def cv_rot_over_R_mix(self, T, mass_fractions):
        return self._mix(self.cv_rot_over_R(T), mass_fractions)

    def cv_vib_over_R_mix(self, T, mass_fractions):
        return self._mix(self.cv_vib_over_R(T), mass_fractions)

    def cv_el_over_R_mix(self, T, mass_fractions):
        return self._mix(self.cv_el_over_R(T), mass_fractions)

    def cv_trans_mix(self, T, mass_fractions):
        return self._mix(self.cv_trans(T), mass_fractions)

    def cv_tr_mix(self, T, mass_fractions):
        return self._mix(self.cv_tr(T), mass_fractions)

    def cv_rot_mix(self, T, mass_fractions):
        return self._mix(self.cv_rot(T), mass_fractions)

    def cv_vib_mix(self, T, mass_fractions):
        return self._mix(self.cv_vib(T), mass_fractions)

    def cv_el_mix(self, T, mass_fractions):
        return self._mix(self.cv_el(T), mass_fractions)


@dataclass(frozen=True)
class MicroThermoConfig:
    """Configuration for selecting and building a micro-thermo model.

    Attributes:
        model: "stat_mech" (structure data) or "ideal_gas" (curve fits)
        data_path: Structure data JSON for "stat_mech", curve fit JSON for
            "ideal_gas"
        curve_fit_family: Polynomial family of the curve fit file
    """

    model: Literal["stat_mech", "ideal_gas"] = "stat_mech"
    data_path: str | None = None
    curve_fit_family: CurveFitFamily = "nasa7"
