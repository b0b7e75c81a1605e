from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import jax
import jax.numpy as jnp
import jaxtyping as jt
from jaxtyping import Float, Int


CurveFitFamily = Literal["nasa7", "nasa9"]

N_COEFFS: dict[str, int] = {"nasa7": 7, "nasa9": 9}


@dataclass(frozen=True)
class TemperatureInterval:
    """One polynomial piece of a species curve fit.

    Attributes:
        T_low: Lower bound of the interval [K] (inclusive)
        T_high: Upper bound of the interval [K] (exclusive)
        coefficients: Curve fit coefficients, 7 (NASA7) or 9 (NASA9)
    """

    T_low: float
    T_high: float
    coefficients: tuple[float, ...]

    def __post_init__(self):
        if not self.T_low < self.T_high:
            raise ValueError(
                f"Interval requires T_low < T_high, got [{self.T_low}, {self.T_high})."
            )


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class CurveFitTable:
    """Piecewise polynomial curve fits for every species of a mixture.

    Species may carry a different number of intervals. The table is padded
    to ``n_ranges`` columns; padded columns have ``T_limit_low = +inf`` and
    are therefore never selected.
    """

    family: CurveFitFamily = field(metadata=dict(static=True))
    species_names: tuple[str, ...] = field(metadata=dict(static=True))
    T_limit_low: Float[jt.Array, "n_species n_ranges"]  # [K]
    T_limit_high: Float[jt.Array, "n_species n_ranges"]  # [K]
    coefficients: Float[jt.Array, "n_species n_ranges n_coeffs"]
    n_intervals: Int[jt.Array, " n_species"]

    def __post_init__(self):
        """Validate data consistency."""
        n_sp = len(self.species_names)
        n_ranges = self.T_limit_low.shape[1]

        if self.family not in N_COEFFS:
            raise ValueError(f"Unknown curve fit family '{self.family}'.")

        assert self.T_limit_low.shape == (
            n_sp,
            n_ranges,
        ), f"T_limit_low shape {self.T_limit_low.shape} != ({n_sp}, {n_ranges})"
        assert self.T_limit_high.shape == (
            n_sp,
            n_ranges,
        ), f"T_limit_high shape {self.T_limit_high.shape} != ({n_sp}, {n_ranges})"
        assert self.coefficients.shape == (
            n_sp,
            n_ranges,
            self.n_coeffs,
        ), (
            f"coefficients shape {self.coefficients.shape} != "
            f"({n_sp}, {n_ranges}, {self.n_coeffs})"
        )
        assert self.n_intervals.shape == (
            n_sp,
        ), f"n_intervals shape {self.n_intervals.shape} != ({n_sp},)"

    @property
    def n_species(self) -> int:
        """Number of species in the table."""
        return len(self.species_names)

    @property
    def n_coeffs(self) -> int:
        """Coefficient vector length fixed by the curve fit family."""
        return N_COEFFS[self.family]

    @property
    def T_min(self) -> Float[jt.Array, " n_species"]:
        """Lowest temperature covered by each species fit [K]."""
        return self.T_limit_low[:, 0]

    @property
    def T_max(self) -> Float[jt.Array, " n_species"]:
        """Highest temperature covered by each species fit [K]."""
        last = self.n_intervals - 1
        return jnp.take_along_axis(self.T_limit_high, last[:, None], axis=1)[:, 0]
