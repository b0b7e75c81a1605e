from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

import jax.numpy as jnp

from thermochem_core.chemistry_types import ChemicalMixture
from thermochem_core.chemistry_utils import read_json_entries, select_entries_by_name
from thermochem_core.stat_mech_types import StatMechTable

logger = logging.getLogger(__name__)


def _pad_levels(values: Sequence[float], max_levels: int) -> jnp.ndarray:
    values_array = jnp.asarray(values, dtype=jnp.result_type(float))
    pad_width = max_levels - values_array.shape[0]
    if pad_width < 0:
        raise ValueError("max_levels must be >= len(values).")
    return jnp.pad(values_array, (0, pad_width))


def _check_levels(
    name: str,
    kind: str,
    theta: Sequence[float],
    g: Sequence[float],
    allow_empty: bool,
    allow_zero_theta: bool,
) -> None:
    if len(theta) != len(g):
        raise ValueError(
            f"{kind} data for species '{name}' has {len(theta)} temperatures "
            f"but {len(g)} degeneracies."
        )
    if not allow_empty and not theta:
        raise ValueError(f"Species '{name}' needs at least one {kind} level.")
    if any(value <= 0 for value in g):
        raise ValueError(f"{kind} degeneracies of species '{name}' must be > 0.")
    if allow_zero_theta:
        if any(value < 0 for value in theta):
            raise ValueError(f"{kind} temperatures of species '{name}' must be >= 0.")
    elif any(value <= 0 for value in theta):
        raise ValueError(f"{kind} temperatures of species '{name}' must be > 0.")


def build_stat_mech_table(
    mixture: ChemicalMixture,
    entries: Mapping[str, Mapping[str, Sequence[float]]],
) -> StatMechTable:
    """Build a padded StatMechTable from per-species level lists.

    Args:
        mixture: Mixture defining the species order
        entries: Per species name, a mapping with keys "theta_v", "g_v",
            "theta_el" and "g_el". Atoms carry empty vibrational lists.

    Returns:
        StatMechTable with padded slots of zero degeneracy

    Raises:
        ValueError: If a species is missing, lengths disagree, a degeneracy
            is not positive, a vibrational temperature is not positive, an
            electronic temperature is negative or no electronic level is given.
    """
    missing = [name for name in mixture.names if name not in entries]
    if missing:
        raise ValueError(f"Structure data missing for species: {missing}")

    theta_v_list, g_v_list, theta_el_list, g_el_list = [], [], [], []
    for name in mixture.names:
        entry = entries[name]
        theta_v = list(entry.get("theta_v", []))
        g_v = list(entry.get("g_v", []))
        theta_el = list(entry.get("theta_el", []))
        g_el = list(entry.get("g_el", []))

        _check_levels(name, "vibrational", theta_v, g_v, True, False)
        _check_levels(name, "electronic", theta_el, g_el, False, True)

        theta_v_list.append(theta_v)
        g_v_list.append(g_v)
        theta_el_list.append(theta_el)
        g_el_list.append(g_el)

    max_modes = max(1, max(len(values) for values in theta_v_list))
    max_levels = max(len(values) for values in theta_el_list)

    logger.debug(
        "Built structure table for %d species (%d vibrational slots, %d electronic slots).",
        mixture.n_species,
        max_modes,
        max_levels,
    )
    return StatMechTable(
        species_names=mixture.names,
        theta_v=jnp.stack([_pad_levels(v, max_modes) for v in theta_v_list]),
        g_v=jnp.stack([_pad_levels(v, max_modes) for v in g_v_list]),
        theta_el=jnp.stack([_pad_levels(v, max_levels) for v in theta_el_list]),
        g_el=jnp.stack([_pad_levels(v, max_levels) for v in g_el_list]),
    )


def load_stat_mech_data(
    data_path: str | Path, mixture: ChemicalMixture
) -> StatMechTable:
    """Load structure data from a JSON list of {name, theta_v, g_v, theta_el, g_el}."""
    raw_data = read_json_entries(data_path)
    selected = select_entries_by_name(raw_data, mixture.names, str(data_path))
    return build_stat_mech_table(
        mixture, {entry["name"]: entry for entry in selected}
    )
