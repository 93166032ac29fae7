###############################################################################
# Copyright (C) 2023 Oliver Michael Kamperis
# Email: olliekampo@gmail.com
#
# This program is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or any later version.
#
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS
# FOR A PARTICULAR PURPOSE. See the GNU General Public License for details.
#
# You should have received a copy of the GNU General Public License along with
# this program. If not, see <https://www.gnu.org/licenses/>.

"""Module defining the base class of all genetic operators."""

from abc import ABCMeta
import math

from evoflow.optimization.evolutionary.errors import ConfigurationError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "GeneticOperator",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class GeneticOperator(metaclass=ABCMeta):
    """
    Base class for genetic operators.

    A genetic operator is an interchangeable strategy for one phase of a
    run (parent selection, crossover or survivor selection). Several
    operators can be registered for the same phase, in which case an
    operator selection policy chooses between them each epoch. Operators
    carry a custom weight used by the custom weight policy, zero means
    the weight is unset.
    """

    __slots__ = ("__custom_weight",)

    def __init__(self) -> None:
        """Super constructor for genetic operators."""
        self.__custom_weight: float = 0.0

    def __repr__(self) -> str:
        """Return a string representation of the operator."""
        return f"{self.__class__.__name__}()"

    @property
    def name(self) -> str:
        """The name of the operator, used in log messages."""
        return self.__class__.__name__

    @property
    def custom_weight(self) -> float:
        """The custom selection weight of the operator, zero if unset."""
        return self.__custom_weight

    @custom_weight.setter
    def custom_weight(self, weight: float) -> None:
        """Set the custom selection weight of the operator."""
        if not math.isfinite(weight) or weight < 0.0:
            raise ConfigurationError(
                "Custom weight must be finite and non-negative. "
                f"Got; {weight}.")
        self.__custom_weight = float(weight)

    def with_custom_weight(self, weight: float) -> "GeneticOperator":
        """Set the custom selection weight and return the operator."""
        self.custom_weight = weight
        return self
