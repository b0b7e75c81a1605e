"""Wilke mixing rule for mixture viscosity.

For species viscosities mu_s and mole fractions chi_s:

    phi_s  = sum_r chi_r (1 + sqrt(mu_s/mu_r) (M_r/M_s)^(1/4))^2 / sqrt(8 (1 + M_s/M_r))
    mu_mix = sum_s chi_s mu_s / phi_s

The r = s term of phi_s equals chi_s, so a single species reduces to its own
viscosity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core import chemistry_types
from thermochem_core.chemistry_types import ChemicalMixture, broadcast_species
from thermochem_core.diagnose import as_temperature
from thermochem_core.transport_types import SpeciesTransportModel, WilkeMixtureTable

logger = logging.getLogger(__name__)


def build_wilke_mixture_table(mixture: ChemicalMixture) -> WilkeMixtureTable:
    """Precompute the molar-mass terms of the Wilke rule."""
    M = mixture.molar_masses
    # [r, s] = M_r / M_s
    M_ratio = M[:, None] / M[None, :]

    logger.debug("Built Wilke mixture table for %d species.", mixture.n_species)
    return WilkeMixtureTable(
        species_names=mixture.names,
        molar_masses=M,
        mass_ratio_term=M_ratio**0.25,
        denom=jnp.sqrt(8.0 * (1.0 + 1.0 / M_ratio)),
    )


def compute_mole_fractions(
    mass_fractions: Float[Array, "n_species *batch"],
    table: WilkeMixtureTable,
) -> Float[Array, "n_species *batch"]:
    """chi_s = Y_s M_mix / M_s."""
    return chemistry_types.compute_mole_fractions(mass_fractions, table.molar_masses)


def compute_phi(
    mu_s: Float[Array, "n_species *batch"],
    chi: Float[Array, "n_species *batch"],
    table: WilkeMixtureTable,
) -> Float[Array, "n_species *batch"]:
    """Wilke weighting phi_s for every species."""
    batch_ndim = mu_s.ndim - 1
    mu_safe = jnp.clip(mu_s, 1e-30, None)

    # [r, s, *batch] = mu_s / mu_r
    mu_ratio = mu_safe[None, :, ...] / mu_safe[:, None, ...]
    mass_ratio = broadcast_species(table.mass_ratio_term, batch_ndim)
    denom = broadcast_species(table.denom, batch_ndim)

    term = (1.0 + jnp.sqrt(mu_ratio) * mass_ratio) ** 2 / denom
    return jnp.sum(chi[:, None, ...] * term, axis=0)


def compute_mixture_viscosity(
    mu_s: Float[Array, "n_species *batch"],
    chi: Float[Array, "n_species *batch"],
    table: WilkeMixtureTable,
) -> Float[Array, "*batch"]:
    """Mixture viscosity [Pa s] from species viscosities and mole fractions."""
    phi = compute_phi(mu_s, chi, table)
    return jnp.sum(mu_s * chi / jnp.clip(phi, 1e-30, None), axis=0)


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class WilkeEvaluator:
    """Mixture transport properties from species models and the Wilke rule.

    Attributes:
        table: Molar-mass terms of the Wilke rule
        viscosity: Species viscosity model T -> (n_species, *batch)
        conductivity: Species thermal conductivity model, optional
    """

    table: WilkeMixtureTable
    viscosity: SpeciesTransportModel = field(metadata=dict(static=True))
    conductivity: SpeciesTransportModel | None = field(
        default=None, metadata=dict(static=True)
    )

    def _mole_fractions(self, mass_fractions, batch_ndim: int):
        Y = jnp.asarray(mass_fractions)
        if Y.ndim == 0 or Y.shape[0] != self.table.n_species:
            raise ValueError(
                f"mass_fractions leading axis must have length {self.table.n_species}, "
                f"got shape {Y.shape}."
            )
        chi = compute_mole_fractions(Y, self.table)
        if chi.ndim - 1 < batch_ndim:
            chi = broadcast_species(chi, batch_ndim - (chi.ndim - 1))
        return chi

    def species_value(
        self,
        s: int,
        T,
        quantity: Literal["viscosity", "conductivity"] = "viscosity",
    ):
        """Viscosity [Pa s] or conductivity [W/(m K)] of species ``s``."""
        s = chemistry_types.check_species_index(s, self.table.n_species)
        if quantity == "viscosity":
            return self.viscosity(as_temperature(T))[s]
        if quantity == "conductivity":
            if self.conductivity is None:
                raise ValueError("No species conductivity model configured.")
            return self.conductivity(as_temperature(T))[s]
        raise ValueError(f"Unknown transport quantity '{quantity}'.")

    def mu(self, T, mass_fractions):
        """Mixture viscosity [Pa s]."""
        T = as_temperature(T)
        mu_s = self.viscosity(T)
        chi = self._mole_fractions(mass_fractions, mu_s.ndim - 1)
        if mu_s.ndim < chi.ndim:
            mu_s = broadcast_species(mu_s, chi.ndim - mu_s.ndim)
        shape = jnp.broadcast_shapes(mu_s.shape, chi.shape)
        mu_s = jnp.broadcast_to(mu_s, shape)
        chi = jnp.broadcast_to(chi, shape)
        return compute_mixture_viscosity(mu_s, chi, self.table)

    def k(self, T, mass_fractions):
        raise NotImplementedError(
            "Wilke mixing of thermal conductivity is not implemented; "
            "only the mixture viscosity is available."
        )

    def mu_and_k(self, T, mass_fractions):
        raise NotImplementedError(
            "Wilke mixing of thermal conductivity is not implemented; "
            "use mu() for the mixture viscosity."
        )
