from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Sequence

import jax
import jax.numpy as jnp
import jaxtyping as jt
from jaxtyping import Array, Float

from thermochem_core import constants


MONOATOMIC_TR_DOFS = 1.5
LINEAR_MOLECULE_TR_DOFS = 2.5


def broadcast_species(
    values: Float[Array, " n_species"], batch_ndim: int
) -> Float[Array, "n_species ..."]:
    """Append singleton axes so per-species values broadcast against a batch."""
    return jnp.reshape(values, values.shape + (1,) * batch_ndim)


def compute_mixture_property(
    mass_fractions: Float[Array, "n_species ..."],
    values: Float[Array, "n_species ..."],
) -> Float[Array, "..."]:
    """Mass-fraction weighted mixture value sum_s Y_s * values_s.

    Either argument may omit the batch axes (temperature-independent species
    constants, or one composition evaluated at many temperatures); the
    missing axes are broadcast.
    """
    Y = jnp.asarray(mass_fractions)
    values = jnp.asarray(values)
    if Y.shape[0] != values.shape[0]:
        raise ValueError(
            f"Species axis mismatch: mass_fractions {Y.shape} vs values {values.shape}."
        )
    if Y.ndim < values.ndim:
        Y = broadcast_species(Y, values.ndim - Y.ndim)
    elif values.ndim < Y.ndim:
        values = broadcast_species(values, Y.ndim - values.ndim)
    return jnp.sum(Y * values, axis=0)


def check_species_index(s, n_species: int) -> int:
    """Return ``s`` as a plain int if it addresses one of ``n_species`` species.

    Accepts Python ints, numpy integer scalars and 0-d integer arrays.

    Raises:
        IndexError: If s is not an integer or is outside [0, n_species)
    """
    if isinstance(s, bool):
        raise IndexError(f"Species index must be an integer, got {s!r}.")
    try:
        s = operator.index(s)
    except TypeError:
        raise IndexError(f"Species index must be an integer, got {s!r}.") from None
    if not 0 <= s < n_species:
        raise IndexError(f"Species index {s} out of range for {n_species} species.")
    return s


def compute_mole_fractions(
    mass_fractions: Float[Array, "n_species ..."],
    molar_masses: Float[Array, " n_species"],
) -> Float[Array, "n_species ..."]:
    """chi_s = Y_s M_mix / M_s with M_mix = 1 / sum_s(Y_s / M_s)."""
    Y = jnp.asarray(mass_fractions)
    M_s = broadcast_species(molar_masses, Y.ndim - 1)
    M_mix = 1.0 / jnp.sum(Y / M_s, axis=0)
    return Y * M_mix[None, ...] / M_s


@dataclass(frozen=True)
class Species:
    """Identity of a single chemical species.

    Attributes:
        index: Position of the species inside its mixture
        name: Species name (e.g., "N2", "O")
        molar_mass: Molar mass [kg/mol]
        n_tr_dofs: Translational + rotational degrees of freedom in units of R
            (1.5 for atoms, 2.5 for linear molecules)
        formation_enthalpy: Formation enthalpy at 0 K [J/kg]
    """

    index: int
    name: str
    molar_mass: float  # [kg/mol]
    n_tr_dofs: float = LINEAR_MOLECULE_TR_DOFS
    formation_enthalpy: float = 0.0  # [J/kg]

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Species '{self.name}' has negative index {self.index}.")
        if not self.molar_mass > 0.0:
            raise ValueError(
                f"Species '{self.name}' must have a positive molar mass, "
                f"got {self.molar_mass}."
            )
        if self.n_tr_dofs not in (MONOATOMIC_TR_DOFS, LINEAR_MOLECULE_TR_DOFS):
            raise ValueError(
                f"Species '{self.name}' has unsupported n_tr_dofs={self.n_tr_dofs}; "
                f"expected {MONOATOMIC_TR_DOFS} or {LINEAR_MOLECULE_TR_DOFS}."
            )

    @property
    def gas_constant(self) -> float:
        """Specific gas constant R_s [J/(kg K)]."""
        return constants.R_universal / self.molar_mass


@jax.tree_util.register_dataclass
@dataclass(frozen=True, eq=False)
class ChemicalMixture:
    """Vectorized species data shared by all thermodynamic and transport models.

    Build it with ``ChemicalMixture.from_species`` (or the loaders in
    chemistry_utils) so that the physical checks on each Species run once.
    The mixture is never mutated after construction.
    """

    names: tuple[str, ...] = field(metadata=dict(static=True))
    molar_masses: Float[jt.Array, " n_species"]  # [kg/mol]
    n_tr_dofs: Float[jt.Array, " n_species"]  # [-]
    formation_enthalpy: Float[jt.Array, " n_species"]  # [J/kg]

    def __post_init__(self):
        """Validate data consistency."""
        n_sp = len(self.names)

        if n_sp == 0:
            raise ValueError("ChemicalMixture requires at least one species.")
        if len(set(self.names)) != n_sp:
            raise ValueError(f"Species names must be unique, got {self.names}.")

        assert self.molar_masses.shape == (
            n_sp,
        ), f"molar_masses shape {self.molar_masses.shape} != ({n_sp},)"
        assert self.n_tr_dofs.shape == (
            n_sp,
        ), f"n_tr_dofs shape {self.n_tr_dofs.shape} != ({n_sp},)"
        assert self.formation_enthalpy.shape == (
            n_sp,
        ), f"formation_enthalpy shape {self.formation_enthalpy.shape} != ({n_sp},)"

    @classmethod
    def from_species(cls, species: Sequence[Species]) -> "ChemicalMixture":
        """Assemble a mixture from an ordered sequence of Species."""
        for position, sp in enumerate(species):
            if sp.index != position:
                raise ValueError(
                    f"Species '{sp.name}' has index {sp.index} but sits at "
                    f"position {position}."
                )
        return cls(
            names=tuple(sp.name for sp in species),
            molar_masses=jnp.array([sp.molar_mass for sp in species]),
            n_tr_dofs=jnp.array([sp.n_tr_dofs for sp in species]),
            formation_enthalpy=jnp.array([sp.formation_enthalpy for sp in species]),
        )

    @property
    def n_species(self) -> int:
        """Number of species in the mixture."""
        return len(self.names)

    @property
    def species(self) -> tuple[Species, ...]:
        """Per-species view of the mixture."""
        return tuple(
            Species(
                index=i,
                name=name,
                molar_mass=float(self.molar_masses[i]),
                n_tr_dofs=float(self.n_tr_dofs[i]),
                formation_enthalpy=float(self.formation_enthalpy[i]),
            )
            for i, name in enumerate(self.names)
        )

    @property
    def gas_constants(self) -> Float[jt.Array, " n_species"]:
        """Specific gas constants R_s = R/M_s [J/(kg K)]."""
        return constants.R_universal / self.molar_masses

    @property
    def is_monoatomic(self) -> jt.Bool[jt.Array, " n_species"]:
        """Boolean mask for species without rotational/vibrational modes."""
        return self.n_tr_dofs == MONOATOMIC_TR_DOFS

    def check_species_index(self, s: int) -> int:
        """Return ``s`` if it addresses a species of this mixture.

        Raises:
            IndexError: If s is not an integer or is outside [0, n_species)
        """
        return check_species_index(s, self.n_species)

    def species_index(self, name: str) -> int:
        """Get the index of a species by name.

        Raises:
            ValueError: If species name not found
        """
        try:
            return self.names.index(name)
        except ValueError:
            raise ValueError(
                f"Species '{name}' not found. Available species: {self.names}"
            )

    def molar_mass(self, s: int) -> Float[jt.Array, ""]:
        """Molar mass of species ``s`` [kg/mol]."""
        return self.molar_masses[self.check_species_index(s)]

    def gas_constant(self, s: int) -> Float[jt.Array, ""]:
        """Specific gas constant of species ``s`` [J/(kg K)]."""
        return self.gas_constants[self.check_species_index(s)]

    def check_mass_fractions(
        self, mass_fractions: Float[jt.Array, "n_species ..."]
    ) -> Float[jt.Array, "n_species ..."]:
        """Return mass fractions as an array after checking the species axis."""
        Y = jnp.asarray(mass_fractions)
        if Y.ndim == 0 or Y.shape[0] != self.n_species:
            raise ValueError(
                f"mass_fractions leading axis must have length {self.n_species}, "
                f"got shape {Y.shape}."
            )
        return Y

    def mean_molar_mass(
        self, mass_fractions: Float[jt.Array, "n_species ..."]
    ) -> Float[jt.Array, "..."]:
        """Mixture molar mass M = 1 / sum_s(Y_s / M_s) [kg/mol]."""
        Y = self.check_mass_fractions(mass_fractions)
        M_s = broadcast_species(self.molar_masses, Y.ndim - 1)
        return 1.0 / jnp.sum(Y / M_s, axis=0)

    def mixture_gas_constant(
        self, mass_fractions: Float[jt.Array, "n_species ..."]
    ) -> Float[jt.Array, "..."]:
        """Mixture gas constant R/M [J/(kg K)]."""
        return constants.R_universal / self.mean_molar_mass(mass_fractions)

    def mole_fractions(
        self, mass_fractions: Float[jt.Array, "n_species ..."]
    ) -> Float[jt.Array, "n_species ..."]:
        """Convert mass fractions to mole fractions chi_s = Y_s M / M_s."""
        Y = self.check_mass_fractions(mass_fractions)
        return compute_mole_fractions(Y, self.molar_masses)
