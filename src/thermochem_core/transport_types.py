from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import jax
from jaxtyping import Array, Float


SpeciesTransportModel = Callable[
    [Float[Array, "*batch"]], Float[Array, "n_species *batch"]
]


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class WilkeMixtureTable:
    """Molar-mass terms of the Wilke rule for every ordered species pair (r, s).

    mass_ratio_term[r, s] = (M_r / M_s)^(1/4)
    denom[r, s] = sqrt(8 (1 + M_s / M_r))
    """

    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    molar_masses: Float[Array, " n_species"]  # [kg/mol]
    mass_ratio_term: Float[Array, "n_species n_species"]  # [-]
    denom: Float[Array, "n_species n_species"]  # [-]

    def __post_init__(self):
        n_sp = len(self.species_names)
        assert self.molar_masses.shape == (n_sp,), (
            f"molar_masses shape {self.molar_masses.shape} != ({n_sp},)"
        )
        assert self.mass_ratio_term.shape == (n_sp, n_sp), (
            f"mass_ratio_term shape {self.mass_ratio_term.shape} != ({n_sp}, {n_sp})"
        )
        assert self.denom.shape == (n_sp, n_sp), (
            f"denom shape {self.denom.shape} != ({n_sp}, {n_sp})"
        )

    @property
    def n_species(self) -> int:
        return len(self.species_names)


@jax.tree_util.register_dataclass
@dataclass(frozen=True, slots=True)
class BlottnerTable:
    """Blottner curve fit coefficients, mu = 0.1 exp((A ln T + B) ln T + C) [Pa s]."""

    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    A: Float[Array, " n_species"]  # [-]
    B: Float[Array, " n_species"]  # [-]
    C: Float[Array, " n_species"]  # [-]


@jax.tree_util.register_dataclass
@dataclass(frozen=True, slots=True)
class SutherlandTable:
    """Sutherland law, mu = mu_ref (T/T_ref)^(3/2) (T_ref + S)/(T + S)."""

    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    mu_ref: Float[Array, " n_species"]  # [Pa s]
    T_ref: Float[Array, " n_species"]  # [K]
    S: Float[Array, " n_species"]  # [K]


@jax.tree_util.register_dataclass
@dataclass(frozen=True, slots=True)
class PowerLawTable:
    """Variable hard sphere data for the power-law viscosity."""

    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    d_ref: Float[Array, " n_species"]  # [m]
    omega: Float[Array, " n_species"]  # [-]
    T_ref: float = field(metadata=dict(static=True), default=273.0)  # [K]
