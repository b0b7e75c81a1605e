from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

import jax.numpy as jnp

from thermochem_core.chemistry_types import ChemicalMixture
from thermochem_core.chemistry_utils import read_json_entries
from thermochem_core.curve_fit_types import (
    N_COEFFS,
    CurveFitFamily,
    CurveFitTable,
    TemperatureInterval,
)

logger = logging.getLogger(__name__)


def _check_intervals(
    name: str, intervals: Sequence[TemperatureInterval], n_coeffs: int
) -> list[TemperatureInterval]:
    if not intervals:
        raise ValueError(f"Curve fit for species '{name}' has no intervals.")

    for interval in intervals:
        if len(interval.coefficients) != n_coeffs:
            raise ValueError(
                f"Curve fit for species '{name}' expects {n_coeffs} coefficients "
                f"per interval, got {len(interval.coefficients)}."
            )

    ordered = sorted(intervals, key=lambda interval: interval.T_low)
    for lower, upper in zip(ordered[:-1], ordered[1:]):
        if upper.T_low < lower.T_high:
            raise ValueError(
                f"Curve fit intervals for species '{name}' overlap: "
                f"[{lower.T_low}, {lower.T_high}) and [{upper.T_low}, {upper.T_high})."
            )
    return ordered


def build_curve_fit_table(
    family: CurveFitFamily,
    mixture: ChemicalMixture,
    intervals: Mapping[str, Sequence[TemperatureInterval]],
) -> CurveFitTable:
    """Build a padded CurveFitTable from per-species interval lists.

    Args:
        family: "nasa7" or "nasa9"
        mixture: Mixture defining the species order
        intervals: Temperature intervals keyed by species name

    Returns:
        CurveFitTable with species ordered as in the mixture

    Raises:
        ValueError: If a species is missing, has no intervals, has the wrong
            number of coefficients or overlapping intervals.
    """
    if family not in N_COEFFS:
        raise ValueError(f"Unknown curve fit family '{family}'.")
    n_coeffs = N_COEFFS[family]

    missing = [name for name in mixture.names if name not in intervals]
    if missing:
        raise ValueError(f"Curve fit data missing for species: {missing}")

    per_species = [
        _check_intervals(name, intervals[name], n_coeffs) for name in mixture.names
    ]
    n_ranges = max(len(species_intervals) for species_intervals in per_species)

    T_limit_low_list = []
    T_limit_high_list = []
    coefficients_list = []
    for species_intervals in per_species:
        pad = n_ranges - len(species_intervals)
        T_limit_low_list.append(
            [interval.T_low for interval in species_intervals] + [jnp.inf] * pad
        )
        T_limit_high_list.append(
            [interval.T_high for interval in species_intervals] + [jnp.inf] * pad
        )
        coefficients_list.append(
            [list(interval.coefficients) for interval in species_intervals]
            + [[0.0] * n_coeffs] * pad
        )

    logger.debug(
        "Built %s curve fit table for %d species with up to %d intervals.",
        family,
        mixture.n_species,
        n_ranges,
    )
    return CurveFitTable(
        family=family,
        species_names=mixture.names,
        T_limit_low=jnp.array(T_limit_low_list),
        T_limit_high=jnp.array(T_limit_high_list),
        coefficients=jnp.array(coefficients_list),
        n_intervals=jnp.array([len(s) for s in per_species], dtype=int),
    )


def load_curve_fit_table(
    data_path: str | Path,
    mixture: ChemicalMixture,
    family: CurveFitFamily,
) -> CurveFitTable:
    """Load curve fits from a JSON list of {name, T_limit_low, T_limit_high, parameters}."""
    raw_data = read_json_entries(data_path)

    by_name: dict[str, list[TemperatureInterval]] = {}
    for entry in raw_data:
        by_name.setdefault(entry["name"], []).append(
            TemperatureInterval(
                T_low=float(entry["T_limit_low"]),
                T_high=float(entry["T_limit_high"]),
                coefficients=tuple(float(a) for a in entry["parameters"]),
            )
        )

    return build_curve_fit_table(family, mixture, by_name)
