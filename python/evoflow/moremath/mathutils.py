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

"""Module defining math utility functions over fitness values and weights."""

import math
from typing import Iterable, TypeVar

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "normalize_to_sum",
    "mean",
    "standard_deviation",
    "value_range",
    "shifted_weights"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


_NT = TypeVar("_NT", float, int)


def normalize_to_sum(
    iterable: Iterable[_NT],
    sum_: _NT
) -> list[float]:
    """
    Normalize an iterable of numbers to sum to a given value.

    If the numbers sum to zero, the given sum is divided equally between
    them instead.
    """
    list_: list[_NT] = (
        list(iterable)
        if not isinstance(iterable, list)
        else iterable
    )
    if not list_:
        return []
    list_sum: float = sum(list_, 0.0)
    if list_sum == 0.0:
        return [sum_ / len(list_)] * len(list_)
    factor: float = sum_ / list_sum
    return [item * factor for item in list_]


def mean(values: Iterable[_NT]) -> float:
    """Arithmetic mean of the given values, zero if there are none."""
    list_: list[_NT] = list(values)
    if not list_:
        return 0.0
    return math.fsum(list_) / len(list_)


def standard_deviation(values: Iterable[_NT]) -> float:
    """
    Population standard deviation of the given values.

    Returns zero for fewer than two values.
    """
    list_: list[_NT] = list(values)
    if len(list_) < 2:
        return 0.0
    average: float = math.fsum(list_) / len(list_)
    return math.sqrt(
        math.fsum((item - average) ** 2 for item in list_) / len(list_)
    )


def value_range(values: Iterable[_NT]) -> float:
    """Difference between the largest and smallest value, zero if empty."""
    list_: list[_NT] = list(values)
    if not list_:
        return 0.0
    return float(max(list_) - min(list_))


def shifted_weights(
    values: Iterable[_NT],
    invert: bool = False
) -> list[float]:
    """
    Shift values to strictly positive weights that preserve their order.

    The smallest value (or the largest if `invert` is True) is given the
    weight `epsilon = 0.01 * (max - min) + 0.001`, so every value keeps a
    small chance of being drawn from a roulette wheel, even when values
    are negative.

    Parameters
    ----------
    `values: Iterable[_NT]` - The values to weight.

    `invert: bool = False` - Whether to give the smallest value the largest
    weight instead of the smallest.
    """
    list_: list[_NT] = list(values)
    if not list_:
        return []
    min_: float = min(list_)
    max_: float = max(list_)
    epsilon: float = (0.01 * (max_ - min_)) + 0.001
    if invert:
        return [(max_ + epsilon) - item for item in list_]
    return [(item - min_) + epsilon for item in list_]
