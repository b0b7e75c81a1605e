"""NASA polynomial curve fits for dimensionless cp, h and s.

Low-level functions evaluate one polynomial family for coefficients that
were already selected per temperature. High-level functions take a
CurveFitTable and return values for all species at once, shape
(n_species, *batch).

NASA7 (a0..a6):
    cp/R = a0 + a1 T + a2 T^2 + a3 T^3 + a4 T^4
    h/RT = a0 + a1 T/2 + a2 T^2/3 + a3 T^3/4 + a4 T^4/5 + a5/T
    s/R  = a0 ln T + a1 T + a2 T^2/2 + a3 T^3/3 + a4 T^4/4 + a6

NASA9 (a0..a8):
    cp/R = a0 T^-2 + a1 T^-1 + a2 + a3 T + a4 T^2 + a5 T^3 + a6 T^4
    h/RT = -a0 T^-2 + a1 ln(T)/T + a2 + a3 T/2 + a4 T^2/3 + a5 T^3/4
           + a6 T^4/5 + a7/T
    s/R  = -a0 T^-2/2 - a1/T + a2 ln T + a3 T + a4 T^2/2 + a5 T^3/3
           + a6 T^4/4 + a8
"""

from __future__ import annotations

from typing import Callable

import jax.numpy as jnp
from jaxtyping import Array, Bool, Float, Int

from thermochem_core.curve_fit_types import CurveFitTable


PolynomialFn = Callable[
    [Float[Array, "..."], Float[Array, "... n_coeffs"]], Float[Array, "..."]
]


# =============================================================================
# Polynomial forms
# =============================================================================


def nasa7_cp_over_R(
    T: Float[Array, "..."], a: Float[Array, "... 7"]
) -> Float[Array, "..."]:
    return (
        a[..., 0]
        + a[..., 1] * T
        + a[..., 2] * T**2
        + a[..., 3] * T**3
        + a[..., 4] * T**4
    )


def nasa7_h_over_RT(
    T: Float[Array, "..."], a: Float[Array, "... 7"]
) -> Float[Array, "..."]:
    return (
        a[..., 0]
        + a[..., 1] * T / 2
        + a[..., 2] * T**2 / 3
        + a[..., 3] * T**3 / 4
        + a[..., 4] * T**4 / 5
        + a[..., 5] / T
    )


def nasa7_s_over_R(
    T: Float[Array, "..."], a: Float[Array, "... 7"]
) -> Float[Array, "..."]:
    return (
        a[..., 0] * jnp.log(T)
        + a[..., 1] * T
        + a[..., 2] * T**2 / 2
        + a[..., 3] * T**3 / 3
        + a[..., 4] * T**4 / 4
        + a[..., 6]
    )


def nasa9_cp_over_R(
    T: Float[Array, "..."], a: Float[Array, "... 9"]
) -> Float[Array, "..."]:
    return (
        a[..., 0] / T**2
        + a[..., 1] / T
        + a[..., 2]
        + a[..., 3] * T
        + a[..., 4] * T**2
        + a[..., 5] * T**3
        + a[..., 6] * T**4
    )


def nasa9_h_over_RT(
    T: Float[Array, "..."], a: Float[Array, "... 9"]
) -> Float[Array, "..."]:
    return (
        -a[..., 0] / T**2
        + a[..., 1] * jnp.log(T) / T
        + a[..., 2]
        + a[..., 3] * T / 2
        + a[..., 4] * T**2 / 3
        + a[..., 5] * T**3 / 4
        + a[..., 6] * T**4 / 5
        + a[..., 7] / T
    )


def nasa9_s_over_R(
    T: Float[Array, "..."], a: Float[Array, "... 9"]
) -> Float[Array, "..."]:
    return (
        -a[..., 0] / (2 * T**2)
        - a[..., 1] / T
        + a[..., 2] * jnp.log(T)
        + a[..., 3] * T
        + a[..., 4] * T**2 / 2
        + a[..., 5] * T**3 / 3
        + a[..., 6] * T**4 / 4
        + a[..., 8]
    )


_POLYNOMIALS: dict[str, dict[str, PolynomialFn]] = {
    "nasa7": {
        "cp_over_R": nasa7_cp_over_R,
        "h_over_RT": nasa7_h_over_RT,
        "s_over_R": nasa7_s_over_R,
    },
    "nasa9": {
        "cp_over_R": nasa9_cp_over_R,
        "h_over_RT": nasa9_h_over_RT,
        "s_over_R": nasa9_s_over_R,
    },
}


# =============================================================================
# Interval selection
# =============================================================================


def select_interval(
    T: Float[Array, "*batch"],
    T_limit_low: Float[Array, "n_species n_ranges"],
) -> Int[Array, "n_species *batch"]:
    """Index of the interval that contains T, per species.

    An interval i is selected when T_low[i] <= T < T_low[i+1]. Temperatures
    below the first interval pick interval 0 and temperatures at or above the
    last interval's upper bound stay in the last interval, i.e. the fit is
    extrapolated instead of failing. Padded intervals carry T_low = +inf and
    are never selected.
    """
    n_species = T_limit_low.shape[0]
    expand = (1,) * T.ndim
    lower_bounds = jnp.reshape(T_limit_low[:, 1:], (n_species, -1) + expand)
    return jnp.sum(T[None, None, ...] >= lower_bounds, axis=1)


def select_coefficients(
    T: Float[Array, "*batch"],
    table: CurveFitTable,
) -> Float[Array, "n_species *batch n_coeffs"]:
    """Gather the coefficient vector of the active interval per species."""
    idx = select_interval(T, table.T_limit_low)
    species = jnp.reshape(jnp.arange(table.n_species), (-1,) + (1,) * T.ndim)
    return table.coefficients[species, idx]


def extrapolation_mask(
    T: Float[Array, "*batch"],
    table: CurveFitTable,
) -> Bool[Array, "n_species *batch"]:
    """True where T lies outside the fitted range of a species."""
    T = jnp.asarray(T)
    expand = (1,) * T.ndim
    T_min = jnp.reshape(table.T_min, (-1,) + expand)
    T_max = jnp.reshape(table.T_max, (-1,) + expand)
    return (T[None, ...] < T_min) | (T[None, ...] >= T_max)


# =============================================================================
# High-level API: Functions that take a CurveFitTable as argument
# =============================================================================


def _evaluate(
    quantity: str, T: Float[Array, "*batch"], table: CurveFitTable
) -> Float[Array, "n_species *batch"]:
    T = jnp.asarray(T, dtype=table.coefficients.dtype)
    a = select_coefficients(T, table)
    return _POLYNOMIALS[table.family][quantity](T[None, ...], a)


def compute_cp_over_R(
    T: Float[Array, "*batch"], table: CurveFitTable
) -> Float[Array, "n_species *batch"]:
    """Dimensionless heat capacity cp/R for all species."""
    return _evaluate("cp_over_R", T, table)


def compute_h_over_RT(
    T: Float[Array, "*batch"], table: CurveFitTable
) -> Float[Array, "n_species *batch"]:
    """Dimensionless enthalpy h/(R T) for all species."""
    return _evaluate("h_over_RT", T, table)


def compute_s_over_R(
    T: Float[Array, "*batch"], table: CurveFitTable
) -> Float[Array, "n_species *batch"]:
    """Dimensionless entropy s/R for all species."""
    return _evaluate("s_over_R", T, table)
