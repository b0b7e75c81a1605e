from __future__ import annotations

from dataclasses import dataclass, field

import jax
import jaxtyping as jt
import pydantic
from jaxtyping import Bool, Float


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class StatMechTable:
    """Molecular structure data for the statistical-mechanics decomposition.

    Vibrational modes and electronic levels are padded to rectangular arrays.
    Padded slots have zero degeneracy and contribute nothing to any sum.
    Atoms have no vibrational modes (all of their vibrational slots are padding).
    """

    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    theta_v: Float[jt.Array, "n_species n_modes"]  # [K]
    g_v: Float[jt.Array, "n_species n_modes"]  # [-]
    theta_el: Float[jt.Array, "n_species n_levels"]  # [K]
    g_el: Float[jt.Array, "n_species n_levels"]  # [-]

    def __post_init__(self):
        """Validate data consistency."""
        n_sp = len(self.species_names)

        assert self.theta_v.shape[0] == n_sp, (
            f"theta_v shape {self.theta_v.shape} does not start with {n_sp}"
        )
        assert self.g_v.shape == self.theta_v.shape, (
            f"g_v shape {self.g_v.shape} != theta_v shape {self.theta_v.shape}"
        )
        assert self.theta_el.shape[0] == n_sp, (
            f"theta_el shape {self.theta_el.shape} does not start with {n_sp}"
        )
        assert self.g_el.shape == self.theta_el.shape, (
            f"g_el shape {self.g_el.shape} != theta_el shape {self.theta_el.shape}"
        )

    @property
    def n_species(self) -> int:
        """Number of species in the table."""
        return len(self.species_names)

    @property
    def has_vibrational_mode(self) -> Bool[jt.Array, " n_species"]:
        """Boolean mask indicating which species have vibrational modes."""
        return (self.g_v > 0).any(axis=1)


@dataclass(frozen=True)
class TemperatureSolverConfig:
    """Settings for the safeguarded Newton inversion of energy to temperature.

    Attributes:
        max_iterations: Iteration budget per call
        rtol: Relative tolerance on the temperature update
        atol: Absolute tolerance on the temperature update [K]
        T_min: Lower end of the admissible temperature bracket [K]
        T_max: Upper end of the admissible temperature bracket [K]
    """

    max_iterations: pydantic.PositiveInt = 100
    rtol: pydantic.NonNegativeFloat = 1e-12
    atol: pydantic.NonNegativeFloat = 0.0  # [K]
    T_min: pydantic.PositiveFloat = 10.0  # [K]
    T_max: pydantic.PositiveFloat = 1.0e5  # [K]

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1.")
        if self.rtol < 0.0 or self.atol < 0.0:
            raise ValueError("rtol and atol must be non-negative.")
        if self.rtol == 0.0 and self.atol == 0.0:
            raise ValueError("At least one of rtol and atol must be positive.")
        if not 0.0 < self.T_min < self.T_max:
            raise ValueError(
                f"Require 0 < T_min < T_max, got T_min={self.T_min}, T_max={self.T_max}."
            )


@jax.tree_util.register_dataclass
@dataclass(frozen=True)
class TemperatureSolution:
    """Result of an energy-to-temperature inversion.

    Attributes:
        T: Last iterate [K]
        converged: Per-element convergence flag; False also when the target
            energy lies outside the energy range of the solver bracket
        iterations: Number of iterations performed
    """

    T: Float[jt.Array, "..."]
    converged: Bool[jt.Array, "..."]
    iterations: jt.Int[jt.Array, ""]
