import json
import logging
from pathlib import Path
from typing import Sequence

from thermochem_core.chemistry_types import (
    ChemicalMixture,
    MONOATOMIC_TR_DOFS,
    LINEAR_MOLECULE_TR_DOFS,
    Species,
)

logger = logging.getLogger(__name__)


def _load_molar_mass(entry: dict) -> float:
    """Convert molar mass from g/mol to kg/mol."""
    return entry["molar_mass"] / 1000.0  # g/mol -> kg/mol


def _load_n_tr_dofs(entry: dict) -> float:
    """Read n_tr_dofs, falling back to the atom/molecule default."""
    if entry.get("n_tr_dofs") is not None:
        return float(entry["n_tr_dofs"])
    if entry.get("n_atoms", 2) == 1:
        return MONOATOMIC_TR_DOFS
    return LINEAR_MOLECULE_TR_DOFS


def select_entries_by_name(
    raw_data: list[dict], species_names: Sequence[str], source: str
) -> list[dict]:
    """Pick one entry per requested species, preserving the requested order."""
    entries = {entry["name"]: entry for entry in raw_data}
    missing = [name for name in species_names if name not in entries]
    if missing:
        raise ValueError(f"Species not found in {source}: {missing}")
    return [entries[name] for name in species_names]


def read_json_entries(path: str | Path) -> list[dict]:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw_data = json.load(f)
    if not isinstance(raw_data, list):
        raise ValueError(f"Expected a list of entries in {path}.")
    return raw_data


def load_chemical_mixture(
    general_data_path: str | Path,
    species_names: Sequence[str] | None = None,
) -> ChemicalMixture:
    """Load species data and return it as a ChemicalMixture.

    Args:
        general_data_path: Path to JSON file with general species data
        species_names: Names of species to load, in mixture order (defaults to all)

    Returns:
        ChemicalMixture with species ordered as requested
    """
    raw_data = read_json_entries(general_data_path)

    if species_names is None:
        species_names = [entry["name"] for entry in raw_data]
    if not species_names:
        raise ValueError("species_names cannot be empty.")

    selected_entries = select_entries_by_name(
        raw_data, species_names, str(general_data_path)
    )

    species = [
        Species(
            index=i,
            name=entry["name"],
            molar_mass=_load_molar_mass(entry),
            n_tr_dofs=_load_n_tr_dofs(entry),
            formation_enthalpy=float(entry.get("formation_enthalpy", 0.0)),
        )
        for i, entry in enumerate(selected_entries)
    ]

    logger.debug(
        "Loaded %d species from %s: %s",
        len(species),
        general_data_path,
        [sp.name for sp in species],
    )
    return ChemicalMixture.from_species(species)
