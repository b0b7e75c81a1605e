from __future__ import annotations

import warnings

import jax
import jax.numpy as jnp
import jaxtyping as jt
from beartype import beartype

from thermochem_core.exceptions import CurveFitExtrapolationWarning

MASS_FRACTION_ATOL = 1e-8


def runtime_check_array_sizes(f):
    """Decorator to enforce jaxtyping shape annotations at runtime."""
    return jt.jaxtyped(typechecker=beartype)(f)


def check_nan_inf(values, name: str = "values") -> None:
    if jnp.any(jnp.isnan(values)):
        raise ValueError(f"NaN values present in {name}.")

    if jnp.any(jnp.isinf(values)):
        raise ValueError(f"Inf values present in {name}.")


def check_positive_temperature(T, name: str = "T") -> None:
    """Raise ValueError if any temperature is <= 0.

    Traced values (inside jit, vmap or a lax loop) carry no data and are
    not checked.
    """
    if isinstance(T, jax.core.Tracer):
        return
    if jnp.any(jnp.asarray(T) <= 0.0):
        raise ValueError(f"{name} must be positive, got min {float(jnp.min(T))} K.")


def as_temperature(T, name: str = "T"):
    """Convert T to a floating point array and reject non-positive values."""
    T = jnp.asarray(T)
    if not jnp.issubdtype(T.dtype, jnp.floating):
        T = T.astype(jnp.result_type(float))
    check_positive_temperature(T, name)
    return T


def check_mass_fractions(mass_fractions, atol: float = MASS_FRACTION_ATOL) -> None:
    """Check that mass fractions are non-negative and sum to one along axis 0."""
    Y = jnp.asarray(mass_fractions)
    if jnp.any(Y < -atol):
        raise ValueError("Mass fractions must be non-negative.")

    total = jnp.sum(Y, axis=0)
    if not jnp.allclose(total, 1.0, atol=atol, rtol=0.0):
        raise ValueError(
            f"Mass fractions must sum to one, max deviation "
            f"{float(jnp.max(jnp.abs(total - 1.0))):.3e}."
        )


def check_curve_fit_range(T, evaluator) -> bool:
    """Warn if any species curve fit is evaluated outside its fitted range.

    Args:
        T: Temperature [K]
        evaluator: A MacroThermoEvaluator

    Returns:
        True if every temperature lies within the fitted range of every species.
    """
    check_positive_temperature(T)
    mask = evaluator.extrapolation_mask(T)
    if not jnp.any(mask):
        return True

    per_species = jnp.any(mask, axis=tuple(range(1, mask.ndim)))
    names = [
        name
        for name, outside in zip(evaluator.mixture.names, per_species.tolist())
        if outside
    ]
    warnings.warn(
        f"Curve fits extrapolated for species {names}; values are clamped "
        "to the nearest fitted interval.",
        CurveFitExtrapolationWarning,
        stacklevel=2,
    )
    return False
