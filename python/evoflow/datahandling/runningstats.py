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

"""Module containing classes for calculating windowed running statistics."""

from collections import deque
import math
from numbers import Number
from typing import final

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.2.0"

__all__ = (
    "RecencyWeightedAverage",
    "RunningStandardDeviation"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


def _check_window(window: int) -> None:
    if not isinstance(window, int) or window < 1:
        raise ValueError(
            "Window must be a positive integer. "
            f"Got; {window} of {type(window)} instead."
        )


@final
class RecencyWeightedAverage:
    """
    A windowed average of a stream of numbers, giving exponentially lower
    weights to older values in the window.

    The value appended `k` appends ago has weight `exp(-decay * k)`.
    """

    __slots__ = {
        "__window": "The maximum number of values held.",
        "__decay": "The decay constant of the weights.",
        "__data": "The values in the window, oldest first."
    }

    def __init__(self, window: int, decay: float = 0.1) -> None:
        """
        Create a new recency weighted average.

        Parameters
        ----------
        `window: int` - The maximum number of values held, older values
        are discarded.

        `decay: float = 0.1` - The decay constant of the weights, must be
        non-negative. Zero gives a plain moving average.
        """
        _check_window(window)
        if decay < 0.0:
            raise ValueError(
                f"Decay must be non-negative. Got; {decay} instead.")
        self.__window: int = window
        self.__decay: float = decay
        self.__data: deque[float] = deque(maxlen=window)

    def __repr__(self) -> str:
        """
        Return an instaniable string representation of the weighted average.
        """
        return f"{self.__class__.__name__}({self.__window}, {self.__decay})"

    def __len__(self) -> int:
        """Return the number of values in the window."""
        return len(self.__data)

    @property
    def window(self) -> int:
        """The maximum number of values held."""
        return self.__window

    @property
    def average(self) -> float:
        """The current weighted average, zero if no values were appended."""
        if not self.__data:
            return 0.0
        newest: int = len(self.__data) - 1
        weights = [
            math.exp(-self.__decay * (newest - index))
            for index in range(len(self.__data))
        ]
        return (
            math.fsum(w * v for w, v in zip(weights, self.__data))
            / math.fsum(weights)
        )

    def append(self, value: float) -> float:
        """Append a value and return the new weighted average."""
        self.__data.append(value)
        return self.average


@final
class RunningStandardDeviation:
    """A population standard deviation over a window of the latest values."""

    __slots__ = {
        "__data": "The values in the window, oldest first."
    }

    def __init__(self, window: int) -> None:
        """
        Create a new running standard deviation.

        Parameters
        ----------
        `window: int` - The maximum number of values held, must be a
        positive integer.
        """
        _check_window(window)
        self.__data: deque[float] = deque(maxlen=window)

    def __str__(self) -> str:
        """Return a human readable string of the running deviation."""
        return (
            f"{self.__class__.__name__}: "
            f"deviation={self.standard_deviation}, length={len(self)}"
        )

    def __len__(self) -> int:
        """Return the number of values in the window."""
        return len(self.__data)

    @property
    def window(self) -> int:
        """The maximum number of values held."""
        return self.__data.maxlen  # type: ignore[return-value]

    @property
    def full(self) -> bool:
        """Whether the window holds its maximum number of values."""
        return len(self.__data) == self.__data.maxlen

    @property
    def standard_deviation(self) -> float:
        """
        The population standard deviation of the window.

        Zero if fewer than two values are held.
        """
        if len(self.__data) < 2:
            return 0.0
        average: float = math.fsum(self.__data) / len(self.__data)
        return math.sqrt(
            math.fsum((value - average) ** 2 for value in self.__data)
            / len(self.__data)
        )

    def append(self, value: float) -> float:
        """Append a value and return the new standard deviation."""
        if not isinstance(value, Number):
            raise TypeError(
                "Value must be an integer or float. "
                f"Got; {value} of {type(value)} instead."
            )
        self.__data.append(value)
        return self.standard_deviation
