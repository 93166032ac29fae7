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

"""
Module defining the weighted roulette wheel.

The roulette wheel is the sampling primitive that all weighted selection in
the engine is built on. It draws items with probability proportional to
their weight, either with replacement (`spin`) or without replacement
(`spin_and_readjust`).
"""

from typing import Callable, Generic, Iterable, TypeVar

import numpy as np
from numpy.random import Generator

from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "WeightedRouletteWheel",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


IT = TypeVar("IT")


class WeightedRouletteWheel(Generic[IT]):
    """
    A roulette wheel over a sequence of weighted items.

    Weights must be finite and non-negative. An item of weight zero is
    never drawn, unless every weight is zero, in which case all items are
    equally likely. A wheel holding a single item always returns it.
    """

    __slots__ = {
        "__items": "The items remaining on the wheel.",
        "__weights": "The raw weights of the remaining items.",
        "__cumulative": "The cumulative probabilities of the remaining items."
    }

    def __init__(
        self,
        items: Iterable[IT],
        weights: Iterable[float]
    ) -> None:
        """
        Create a new roulette wheel.

        Parameters
        ----------
        `items: Iterable[IT]` - The items to place on the wheel, must not be
        empty.

        `weights: Iterable[float]` - The weight of each item, in the same
        order as the items.

        Raises
        ------
        `ConfigurationError` - If there are no items, the number of weights
        does not match the number of items, or any weight is negative or not
        finite.
        """
        items_ = list(items)
        weights_ = np.array(list(weights), dtype=np.float64)
        if not items_:
            raise ConfigurationError(
                "A roulette wheel requires at least one item.")
        if weights_.shape != (len(items_),):
            raise ConfigurationError(
                "The number of weights must equal the number of items. "
                f"Got; {len(weights_)} weights for {len(items_)} items.")
        if not np.all(np.isfinite(weights_)):
            raise ConfigurationError(
                f"Weights must be finite. Got; {weights_.tolist()}.")
        if np.any(weights_ < 0.0):
            raise ConfigurationError(
                f"Weights must be non-negative. Got; {weights_.tolist()}.")
        self.__items: list[IT] = items_
        self.__weights: np.ndarray = weights_
        self.__cumulative: np.ndarray = self.__cumulate(weights_)

    @classmethod
    def uniform(cls, items: Iterable[IT]) -> "WeightedRouletteWheel[IT]":
        """Create a roulette wheel where every item is equally likely."""
        items_ = list(items)
        return cls(items_, [1.0] * len(items_))

    @classmethod
    def from_weight_function(
        cls,
        items: Iterable[IT],
        weigh: Callable[[IT], float]
    ) -> "WeightedRouletteWheel[IT]":
        """Create a roulette wheel weighting each item by the given function."""
        items_ = list(items)
        return cls(items_, [weigh(item) for item in items_])

    @staticmethod
    def __cumulate(weights: np.ndarray) -> np.ndarray:
        """Cumulative probability distribution of the given weights."""
        if weights.size == 0:
            return weights.copy()
        cumulative = np.cumsum(weights)
        total: float = cumulative[-1]
        if total <= 0.0:
            return np.arange(1, weights.size + 1, dtype=np.float64) / weights.size
        # Entries after the last non-zero weight are exactly one.
        return cumulative / total

    def __repr__(self) -> str:
        """Return an instantiable string representation of the wheel."""
        return (f"{self.__class__.__name__}({self.__items!r}, "
                f"{self.__weights.tolist()!r})")

    def __len__(self) -> int:
        """Return the number of items remaining on the wheel."""
        return len(self.__items)

    @property
    def items(self) -> tuple[IT, ...]:
        """The items remaining on the wheel."""
        return tuple(self.__items)

    @property
    def weights(self) -> tuple[float, ...]:
        """The raw weights of the items remaining on the wheel."""
        return tuple(self.__weights.tolist())

    @property
    def probabilities(self) -> tuple[float, ...]:
        """The probability of drawing each item remaining on the wheel."""
        if self.__cumulative.size == 0:
            return ()
        return tuple(np.diff(self.__cumulative, prepend=0.0).tolist())

    def __draw_index(self, generator: Generator) -> int:
        """Draw the index of an item on the wheel."""
        if generator is None:
            raise InvalidOperationError(
                "A random number generator is required to spin the wheel.")
        if not self.__items:
            raise InvalidOperationError("Cannot spin an empty wheel.")
        if len(self.__items) == 1:
            return 0
        draw: float = generator.random()
        return int(np.searchsorted(self.__cumulative, draw, side="right"))

    def spin(self, generator: Generator) -> IT:
        """
        Draw an item with probability proportional to its weight.

        The wheel is left unchanged, so repeated spins are independent and
        identically distributed.

        Raises
        ------
        `InvalidOperationError` - If the wheel is empty or no generator is
        given.
        """
        return self.__items[self.__draw_index(generator)]

    def spin_and_readjust(self, generator: Generator) -> IT:
        """
        Draw an item with probability proportional to its weight, then
        remove it from the wheel and renormalise the remaining weights.

        Successive calls sample without replacement.

        Raises
        ------
        `InvalidOperationError` - If the wheel is empty or no generator is
        given.
        """
        index: int = self.__draw_index(generator)
        item: IT = self.__items.pop(index)
        self.__weights = np.delete(self.__weights, index)
        self.__cumulative = self.__cumulate(self.__weights)
        return item

    def spin_many(self, generator: Generator, quantity: int) -> list[IT]:
        """
        Draw the given quantity of distinct items without replacement.

        Raises
        ------
        `InvalidOperationError` - If the quantity exceeds the number of items
        remaining on the wheel.
        """
        if quantity > len(self.__items):
            raise InvalidOperationError(
                "Cannot draw more items than remain on the wheel. "
                f"Got; {quantity} > {len(self.__items)}.")
        return [self.spin_and_readjust(generator) for _ in range(quantity)]
