"""Exception and warning types raised by thermochem_core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thermochem_core.stat_mech_types import TemperatureSolution


class CurveFitExtrapolationWarning(UserWarning):
    """Emitted when a curve fit is evaluated outside its fitted temperature range."""


class TemperatureInversionError(RuntimeError):
    """Raised when an energy-to-temperature inversion does not converge.

    The last iterate is kept on ``solution`` so callers can pick a fallback.
    """

    def __init__(self, message: str, solution: "TemperatureSolution"):
        super().__init__(message)
        self.solution = solution
