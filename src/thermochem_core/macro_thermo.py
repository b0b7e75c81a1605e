"""Macroscopic thermodynamics from NASA curve fits.

The evaluator wraps a CurveFitTable together with its ChemicalMixture and
exposes cp, h and s at species and mixture granularity. Species-level
queries return shape (n_species, *batch) when ``species`` is None and shape
(*batch) otherwise. Mixture queries weight species values with mass
fractions of shape (n_species, *batch).
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core import curve_fit
from thermochem_core.chemistry_types import (
    ChemicalMixture,
    broadcast_species,
    compute_mixture_property,
)
from thermochem_core.curve_fit_types import CurveFitTable
from thermochem_core.diagnose import as_temperature


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class MacroThermoEvaluator:
    """Curve-fit cp/h/s for a mixture."""

    mixture: ChemicalMixture
    table: CurveFitTable

    def __post_init__(self):
        if self.table.species_names != self.mixture.names:
            raise ValueError(
                "Curve fit table species "
                f"{self.table.species_names} do not match mixture species "
                f"{self.mixture.names}."
            )

    def _select(
        self, values: Float[Array, "n_species *batch"], species: int | None
    ) -> Float[Array, "..."]:
        if species is None:
            return values
        return values[self.mixture.check_species_index(species)]

    def _R_s(self, T: Float[Array, "*batch"]) -> Float[Array, "n_species ..."]:
        return broadcast_species(self.mixture.gas_constants, jnp.ndim(T))

    # -------------------------------------------------------------------------
    # Dimensionless, per species
    # -------------------------------------------------------------------------

    def cp_over_R(self, T, species: int | None = None):
        """cp/R [-] from the active curve fit interval."""
        T = as_temperature(T)
        return self._select(curve_fit.compute_cp_over_R(T, self.table), species)

    def h_over_RT(self, T, species: int | None = None):
        """h/(R T) [-] from the active curve fit interval."""
        T = as_temperature(T)
        return self._select(curve_fit.compute_h_over_RT(T, self.table), species)

    def s_over_R(self, T, species: int | None = None):
        """s/R [-] from the active curve fit interval."""
        T = as_temperature(T)
        return self._select(curve_fit.compute_s_over_R(T, self.table), species)

    # -------------------------------------------------------------------------
    # Dimensional, per species
    # -------------------------------------------------------------------------

    def cp(self, T, species: int | None = None):
        """cp [J/(kg K)]."""
        T = as_temperature(T)
        values = self._R_s(T) * curve_fit.compute_cp_over_R(T, self.table)
        return self._select(values, species)

    def cv(self, T, species: int | None = None):
        """cv = cp - R_s [J/(kg K)]."""
        T = as_temperature(T)
        R_s = self._R_s(T)
        values = R_s * (curve_fit.compute_cp_over_R(T, self.table) - 1.0)
        return self._select(values, species)

    def h(self, T, species: int | None = None):
        """Specific enthalpy [J/kg]."""
        T = as_temperature(T)
        values = self._R_s(T) * T[None, ...] * curve_fit.compute_h_over_RT(
            T, self.table
        )
        return self._select(values, species)

    def s(self, T, species: int | None = None):
        """Specific entropy at the curve fit reference pressure [J/(kg K)]."""
        T = as_temperature(T)
        values = self._R_s(T) * curve_fit.compute_s_over_R(T, self.table)
        return self._select(values, species)

    # -------------------------------------------------------------------------
    # Mixture
    # -------------------------------------------------------------------------

    def cp_over_R_mix(self, T, mass_fractions):
        """sum_s Y_s cp_s/R [-]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.cp_over_R(T))

    def h_over_RT_mix(self, T, mass_fractions):
        """sum_s Y_s h_s/(R T) [-]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.h_over_RT(T))

    def s_over_R_mix(self, T, mass_fractions):
        """sum_s Y_s s_s/R [-]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.s_over_R(T))

    def cp_mix(self, T, mass_fractions):
        """Mixture cp [J/(kg K)]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.cp(T))

    def cv_mix(self, T, mass_fractions):
        """Mixture cv [J/(kg K)]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.cv(T))

    def h_mix(self, T, mass_fractions):
        """Mixture enthalpy [J/kg]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.h(T))

    def s_mix(self, T, mass_fractions):
        """Mixture entropy, without mixing entropy [J/(kg K)]."""
        Y = self.mixture.check_mass_fractions(mass_fractions)
        return compute_mixture_property(Y, self.s(T))

    def extrapolation_mask(self, T):
        """True where T lies outside the fitted range of a species."""
        T = as_temperature(T)
        return curve_fit.extrapolation_mask(T, self.table)
