"""Statistical-mechanics thermodynamics from molecular structure data.

Vibrational modes are treated as harmonic (Einstein) oscillators and the
electronic contribution is the Boltzmann average over tabulated levels.
Translational and rotational modes are fully excited. Nothing in this
module uses curve fits.

Low-level functions take raw arrays; high-level functions take a
ChemicalMixture and a StatMechTable. Per-species results have shape
(n_species, *batch); mixture results weight them with mass fractions.
"""

from typing import Callable

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from thermochem_core.chemistry_types import (
    ChemicalMixture,
    broadcast_species,
    compute_mixture_property,
)
from thermochem_core.diagnose import as_temperature, runtime_check_array_sizes
from thermochem_core.exceptions import TemperatureInversionError
from thermochem_core.stat_mech_types import (
    StatMechTable,
    TemperatureSolution,
    TemperatureSolverConfig,
)


MixtureFn = Callable[[Float[Array, "*batch"]], Float[Array, "*batch"]]


# =============================================================================
# Closed forms per mode
# =============================================================================


@runtime_check_array_sizes
def compute_cv_vib_over_R(
    T: Float[Array, "*batch"],
    theta_v: Float[Array, "n_species n_modes"],
    g_v: Float[Array, "n_species n_modes"],
) -> Float[Array, "n_species *batch"]:
    """Vibrational heat capacity cv_vib/R_s of harmonic oscillators.

    cv_vib/R = sum_m g_m x_m^2 exp(x_m) / (exp(x_m) - 1)^2, with x_m = theta_m/T

    Evaluated as x^2 exp(-x) / (1 - exp(-x))^2 so large theta/T does not
    overflow. Species without vibrational modes return exactly zero.
    """
    theta = broadcast_species(theta_v, T.ndim)
    g = broadcast_species(g_v, T.ndim)
    active = g > 0

    theta_safe = jnp.where(active, theta, 1.0)
    x = theta_safe / T[None, None, ...]
    one_minus_exp = -jnp.expm1(-x)
    cv_mode = x**2 * jnp.exp(-x) / one_minus_exp**2

    return jnp.sum(jnp.where(active, g * cv_mode, 0.0), axis=1)


@runtime_check_array_sizes
def compute_e_vib_over_R(
    T: Float[Array, "*batch"],
    theta_v: Float[Array, "n_species n_modes"],
    g_v: Float[Array, "n_species n_modes"],
) -> Float[Array, "n_species *batch"]:
    """Vibrational energy e_vib/R_s [K], zero-point energy excluded.

    e_vib/R = sum_m g_m theta_m / (exp(theta_m/T) - 1)
    """
    theta = broadcast_species(theta_v, T.ndim)
    g = broadcast_species(g_v, T.ndim)
    active = g > 0

    theta_safe = jnp.where(active, theta, 1.0)
    x = theta_safe / T[None, None, ...]
    e_mode = theta_safe * jnp.exp(-x) / -jnp.expm1(-x)

    return jnp.sum(jnp.where(active, g * e_mode, 0.0), axis=1)


def _electronic_sums(
    T: Float[Array, "*batch"],
    theta_el: Float[Array, "n_species n_levels"],
    g_el: Float[Array, "n_species n_levels"],
) -> tuple[
    Float[Array, "n_species *batch"],
    Float[Array, "n_species *batch"],
    Float[Array, "n_species *batch"],
]:
    theta = broadcast_species(theta_el, T.ndim)
    g = broadcast_species(g_el, T.ndim)

    boltzmann = g * jnp.exp(-theta / T[None, None, ...])

    denominator = jnp.sum(boltzmann, axis=1)
    numerator = jnp.sum(theta * boltzmann, axis=1)
    numerator_2 = jnp.sum(theta**2 * boltzmann, axis=1)
    return numerator, denominator, numerator_2


@runtime_check_array_sizes
def compute_e_el_over_R(
    T: Float[Array, "*batch"],
    theta_el: Float[Array, "n_species n_levels"],
    g_el: Float[Array, "n_species n_levels"],
) -> Float[Array, "n_species *batch"]:
    """Electronic energy e_el/R_s [K] from Boltzmann-populated levels.

    e_el/R = sum_l theta_l g_l exp(-theta_l/T) / sum_l g_l exp(-theta_l/T)
    """
    numerator, denominator, _ = _electronic_sums(T, theta_el, g_el)
    return numerator / denominator


@runtime_check_array_sizes
def compute_cv_el_over_R(
    T: Float[Array, "*batch"],
    theta_el: Float[Array, "n_species n_levels"],
    g_el: Float[Array, "n_species n_levels"],
) -> Float[Array, "n_species *batch"]:
    """Electronic heat capacity cv_el/R_s, the T-derivative of e_el/R.

    With num = sum theta g exp(-theta/T) and den = sum g exp(-theta/T):
        dnum/dT = sum theta^2 g exp(-theta/T) / T^2
        dden/dT = sum theta g exp(-theta/T) / T^2
        cv_el/R = dnum/dT / den - num / den^2 * dden/dT
    """
    numerator, denominator, numerator_2 = _electronic_sums(T, theta_el, g_el)
    T2 = T[None, ...] ** 2

    dnum_dT = numerator_2 / T2
    dden_dT = numerator / T2

    return dnum_dT / denominator - numerator / denominator**2 * dden_dT


# =============================================================================
# High-level API: Functions that take ChemicalMixture and StatMechTable
# =============================================================================


def _check_table(mixture: ChemicalMixture, table: StatMechTable) -> None:
    if table.species_names != mixture.names:
        raise ValueError(
            f"StatMechTable species {table.species_names} do not match mixture "
            f"species {mixture.names}."
        )


def _R_s(mixture: ChemicalMixture, T: Float[Array, "*batch"]):
    return broadcast_species(mixture.gas_constants, T.ndim)


def compute_cv_vib(
    T: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Vibrational heat capacity [J/(kg K)] for all species."""
    _check_table(mixture, table)
    T = as_temperature(T)
    return _R_s(mixture, T) * compute_cv_vib_over_R(T, table.theta_v, table.g_v)


def compute_cv_el(
    T: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Electronic heat capacity [J/(kg K)] for all species."""
    _check_table(mixture, table)
    T = as_temperature(T)
    return _R_s(mixture, T) * compute_cv_el_over_R(T, table.theta_el, table.g_el)


def compute_cv_ve(
    T_ve: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Vibrational-electronic heat capacity [J/(kg K)] for all species."""
    return compute_cv_vib(T_ve, mixture, table) + compute_cv_el(T_ve, mixture, table)


def compute_cv_tr(
    T: Float[Array, "*batch"], mixture: ChemicalMixture
) -> Float[Array, "n_species *batch"]:
    """Translational-rotational heat capacity n_tr_dofs R_s, broadcast over T."""
    T = as_temperature(T)
    cv_tr_species = mixture.n_tr_dofs * mixture.gas_constants
    return jnp.broadcast_to(
        broadcast_species(cv_tr_species, T.ndim), (mixture.n_species,) + T.shape
    )


def compute_cv(
    T: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Total heat capacity at constant volume [J/(kg K)] for all species."""
    return compute_cv_tr(T, mixture) + compute_cv_ve(T, mixture, table)


def compute_cp(
    T: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Heat capacity at constant pressure cp = cv + R_s [J/(kg K)]."""
    T = as_temperature(T)
    return compute_cv(T, mixture, table) + _R_s(mixture, T)


def compute_e_tr(
    T: Float[Array, "*batch"], mixture: ChemicalMixture
) -> Float[Array, "n_species *batch"]:
    """Translational-rotational energy cv_tr T [J/kg]."""
    T = as_temperature(T)
    return compute_cv_tr(T, mixture) * T[None, ...]


def compute_e_vib(
    T_ve: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Vibrational energy [J/kg] for all species."""
    _check_table(mixture, table)
    T_ve = as_temperature(T_ve, "T_ve")
    return _R_s(mixture, T_ve) * compute_e_vib_over_R(T_ve, table.theta_v, table.g_v)


def compute_e_el(
    T_ve: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Electronic energy [J/kg] for all species."""
    _check_table(mixture, table)
    T_ve = as_temperature(T_ve, "T_ve")
    return _R_s(mixture, T_ve) * compute_e_el_over_R(
        T_ve, table.theta_el, table.g_el
    )


def compute_e_ve(
    T_ve: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Vibrational-electronic energy [J/kg] for all species."""
    return compute_e_vib(T_ve, mixture, table) + compute_e_el(T_ve, mixture, table)


def compute_e_tot(
    T: Float[Array, "*batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    T_ve: Float[Array, "*batch"] | None = None,
) -> Float[Array, "n_species *batch"]:
    """Total specific internal energy [J/kg] for all species.

    e_tot = cv_tr T + e_vib(T_ve) + e_el(T_ve) + formation_enthalpy

    Args:
        T: Translational-rotational temperature [K]
        mixture: Mixture providing R_s, n_tr_dofs and formation enthalpies
        table: Vibrational and electronic structure data
        T_ve: Vibrational-electronic temperature [K]; defaults to T
            (thermal equilibrium)

    Returns:
        e_tot [J/kg], shape (n_species, *batch)
    """
    T = as_temperature(T)
    T_ve = T if T_ve is None else as_temperature(T_ve, "T_ve")
    e_0 = broadcast_species(mixture.formation_enthalpy, T.ndim)
    return compute_e_tr(T, mixture) + compute_e_ve(T_ve, mixture, table) + e_0


def compute_h_tot(
    T: Float[Array, "*batch"], mixture: ChemicalMixture, table: StatMechTable
) -> Float[Array, "n_species *batch"]:
    """Total specific enthalpy h = e_tot + R_s T [J/kg]."""
    T = as_temperature(T)
    return compute_e_tot(T, mixture, table) + _R_s(mixture, T) * T[None, ...]


def compute_mixture_e_tot(
    T: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    T_ve: Float[Array, "*batch"] | None = None,
) -> Float[Array, "*batch"]:
    """Mixture internal energy sum_s Y_s e_tot,s [J/kg]."""
    Y = mixture.check_mass_fractions(mass_fractions)
    return compute_mixture_property(Y, compute_e_tot(T, mixture, table, T_ve))


def compute_mixture_cv(
    T: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
) -> Float[Array, "*batch"]:
    """Mixture cv [J/(kg K)]."""
    Y = mixture.check_mass_fractions(mass_fractions)
    return compute_mixture_property(Y, compute_cv(T, mixture, table))


# =============================================================================
# Energy -> temperature inversion
# =============================================================================


def solve_temperature(
    energy_fn: MixtureFn,
    cv_fn: MixtureFn,
    e_target: Float[Array, "*batch"],
    T_initial: Float[Array, "*batch"],
    config: TemperatureSolverConfig,
) -> TemperatureSolution:
    """Invert a monotonically increasing energy function e(T) = e_target.

    Safeguarded Newton-Raphson: every residual evaluation tightens a bracket
    [T_lo, T_hi] that starts at [config.T_min, config.T_max]. A Newton step

        T^{n+1} = T^n - (e(T^n) - e_target) / cv(T^n)

    is accepted if it stays strictly inside the bracket; otherwise the bracket
    midpoint is used. Elements converge when
    |T^{n+1} - T^n| <= atol + rtol |T^{n+1}| and are frozen afterwards.

    Args:
        energy_fn: Mixture energy e(T) [J/kg]
        cv_fn: Its derivative de/dT [J/(kg K)]
        e_target: Target energy [J/kg]
        T_initial: Initial guess [K], clipped into the bracket
        config: Iteration budget, tolerances and bracket

    Returns:
        TemperatureSolution with the last iterate and per-element
        convergence flags.

    Notes:
        - Uses jax.lax.while_loop, so it can be traced under jit
        - Targets outside [e(T_min), e(T_max)] are reported as not converged
    """
    e_target = jnp.asarray(e_target, dtype=jnp.result_type(float))
    T_lo = jnp.full_like(e_target, config.T_min)
    T_hi = jnp.full_like(e_target, config.T_max)
    in_range = (e_target >= energy_fn(T_lo)) & (e_target <= energy_fn(T_hi))

    T_0 = jnp.clip(
        jnp.broadcast_to(jnp.asarray(T_initial, dtype=e_target.dtype), e_target.shape),
        config.T_min,
        config.T_max,
    )

    def cond_fn(state):
        iteration, _, _, _, converged = state
        return (iteration < config.max_iterations) & ~jnp.all(converged | ~in_range)

    def body_fn(state):
        iteration, T, T_lo, T_hi, converged = state

        residual = energy_fn(T) - e_target
        T_lo = jnp.where(residual < 0.0, T, T_lo)
        T_hi = jnp.where(residual > 0.0, T, T_hi)

        T_newton = T - residual / cv_fn(T)
        inside = (T_newton > T_lo) & (T_newton < T_hi)
        T_new = jnp.where(inside, T_newton, 0.5 * (T_lo + T_hi))

        step_converged = jnp.abs(T_new - T) <= config.atol + config.rtol * jnp.abs(
            T_new
        )
        T_new = jnp.where(converged, T, T_new)

        return iteration + 1, T_new, T_lo, T_hi, converged | step_converged

    init_state = (
        jnp.asarray(0),
        T_0,
        T_lo,
        T_hi,
        jnp.zeros(e_target.shape, dtype=bool),
    )
    iterations, T, _, _, converged = jax.lax.while_loop(cond_fn, body_fn, init_state)

    return TemperatureSolution(T=T, converged=converged & in_range, iterations=iterations)


def _raise_if_not_converged(solution: TemperatureSolution, what: str) -> None:
    n_failed = int(jnp.sum(~solution.converged))
    if n_failed:
        raise TemperatureInversionError(
            f"{what} did not converge for {n_failed} of {solution.converged.size} "
            f"element(s) after {int(solution.iterations)} iteration(s).",
            solution,
        )


def compute_T_from_e_tr(
    e_tr: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
) -> Float[Array, "*batch"]:
    """Closed-form inversion of e_tr = cv_tr T [K]."""
    Y = mixture.check_mass_fractions(mass_fractions)
    cv_tr_mix = compute_mixture_property(Y, mixture.n_tr_dofs * mixture.gas_constants)
    return jnp.asarray(e_tr) / cv_tr_mix


def solve_T_from_e_tot(
    e_tot: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    config: TemperatureSolverConfig | None = None,
    T_initial: Float[Array, "*batch"] | None = None,
) -> TemperatureSolution:
    """Find T with sum_s Y_s e_tot,s(T) = e_tot, reporting convergence.

    The default initial guess ignores the vibrational-electronic energy,
    T_0 = (e_tot - e_0) / cv_tr, which overestimates T.
    """
    if config is None:
        config = TemperatureSolverConfig()
    Y = mixture.check_mass_fractions(mass_fractions)
    e_tot = jnp.asarray(e_tot)

    def energy_fn(T):
        return compute_mixture_e_tot(T, Y, mixture, table)

    def cv_fn(T):
        return compute_mixture_cv(T, Y, mixture, table)

    if T_initial is None:
        e_0 = compute_mixture_property(Y, mixture.formation_enthalpy)
        T_initial = compute_T_from_e_tr(e_tot - e_0, Y, mixture)

    return solve_temperature(energy_fn, cv_fn, e_tot, T_initial, config)


def compute_T_from_e_tot(
    e_tot: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    config: TemperatureSolverConfig | None = None,
    T_initial: Float[Array, "*batch"] | None = None,
) -> Float[Array, "*batch"]:
    """Temperature [K] from total internal energy.

    Raises:
        TemperatureInversionError: If any element fails to converge. Under
            jit use solve_T_from_e_tot and inspect ``converged`` instead.
    """
    solution = solve_T_from_e_tot(
        e_tot, mass_fractions, mixture, table, config, T_initial
    )
    _raise_if_not_converged(solution, "T_from_e_tot")
    return solution.T


def solve_T_ve_from_e_ve(
    e_ve: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    config: TemperatureSolverConfig | None = None,
    T_initial: Float[Array, "*batch"] | None = None,
) -> TemperatureSolution:
    """Find T_ve with sum_s Y_s e_ve,s(T_ve) = e_ve, reporting convergence.

    Without an initial guess the solver starts from the bracket midpoint.
    """
    if config is None:
        config = TemperatureSolverConfig()
    Y = mixture.check_mass_fractions(mass_fractions)

    def energy_fn(T_ve):
        return compute_mixture_property(Y, compute_e_ve(T_ve, mixture, table))

    def cv_fn(T_ve):
        return compute_mixture_property(Y, compute_cv_ve(T_ve, mixture, table))

    if T_initial is None:
        T_initial = 0.5 * (config.T_min + config.T_max)

    return solve_temperature(energy_fn, cv_fn, e_ve, T_initial, config)


def compute_T_ve_from_e_ve(
    e_ve: Float[Array, "*batch"],
    mass_fractions: Float[Array, "n_species *batch"],
    mixture: ChemicalMixture,
    table: StatMechTable,
    config: TemperatureSolverConfig | None = None,
    T_initial: Float[Array, "*batch"] | None = None,
) -> Float[Array, "*batch"]:
    """Vibrational-electronic temperature [K] from e_ve.

    Raises:
        TemperatureInversionError: If any element fails to converge.
    """
    solution = solve_T_ve_from_e_ve(
        e_ve, mass_fractions, mixture, table, config, T_initial
    )
    _raise_if_not_converged(solution, "T_ve_from_e_ve")
    return solution.T
