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
Module defining run state snapshots and termination strategies.

After every epoch the runner builds a `RunState` snapshot and passes it to
a `TerminationEvaluator`, which stops the run as soon as any of its
termination strategies is satisfied.
"""

import dataclasses
from abc import ABCMeta, abstractmethod
from typing import Iterable, Iterator

from typing_extensions import override

from evoflow.datahandling.runningstats import RunningStandardDeviation
from evoflow.optimization.evolutionary.errors import ConfigurationError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "RunState",
    "TerminationStrategy",
    "MaximumEpochsTermination",
    "MaximumDurationTermination",
    "TargetFitnessTermination",
    "TargetStandardDeviationTermination",
    "TerminationEvaluator"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


@dataclasses.dataclass(frozen=True)
class RunState:
    """
    A snapshot of a run after an epoch.

    Fields
    ------
    `current_epoch: int` - The zero based index of the epoch just evaluated.

    `elapsed: float` - The wall clock time since the run started, in
    seconds.

    `highest_fitness: float` - The highest fitness in the population.
    """

    current_epoch: int
    elapsed: float
    highest_fitness: float

    def __str__(self) -> str:
        """Return a human readable string of the run state."""
        return (f"Epoch {self.current_epoch}: elapsed={self.elapsed:.3f}s, "
                f"highest fitness={self.highest_fitness}")

    @property
    def epochs_completed(self) -> int:
        """The number of epochs evaluated so far."""
        return self.current_epoch + 1


class TerminationStrategy(metaclass=ABCMeta):
    """Base class for termination strategies."""

    __slots__ = ()

    def __repr__(self) -> str:
        """Return a string representation of the strategy."""
        return f"{self.__class__.__name__}()"

    @abstractmethod
    def terminate(self, state: RunState) -> bool:
        """Whether the run should stop after the epoch of the given state."""
        ...


class MaximumEpochsTermination(TerminationStrategy):
    """Stops the run once a number of epochs have been evaluated."""

    __slots__ = ("__maximum_epochs",)

    def __init__(self, maximum_epochs: int) -> None:
        """
        Create a new maximum epochs termination strategy.

        Raises
        ------
        `ConfigurationError` - If the maximum number of epochs is not
        positive.
        """
        if maximum_epochs <= 0:
            raise ConfigurationError(
                f"Maximum epochs must be positive. Got; {maximum_epochs}.")
        self.__maximum_epochs: int = maximum_epochs

    def __repr__(self) -> str:
        """Return an instantiable string representation of the strategy."""
        return f"{self.__class__.__name__}({self.__maximum_epochs})"

    @property
    def maximum_epochs(self) -> int:
        """The number of epochs after which the run stops."""
        return self.__maximum_epochs

    @override
    def terminate(self, state: RunState) -> bool:
        return state.epochs_completed >= self.__maximum_epochs


class MaximumDurationTermination(TerminationStrategy):
    """
    Stops the run once it has been running for a given duration.

    The duration is only checked between epochs, so the run can overshoot
    it by up to one epoch.
    """

    __slots__ = ("__maximum_duration",)

    def __init__(self, maximum_duration: float) -> None:
        """
        Create a new maximum duration termination strategy.

        Parameters
        ----------
        `maximum_duration: float` - The duration in seconds.

        Raises
        ------
        `ConfigurationError` - If the duration is not positive.
        """
        if maximum_duration <= 0.0:
            raise ConfigurationError(
                f"Maximum duration must be positive. Got; {maximum_duration}.")
        self.__maximum_duration: float = maximum_duration

    def __repr__(self) -> str:
        """Return an instantiable string representation of the strategy."""
        return f"{self.__class__.__name__}({self.__maximum_duration})"

    @property
    def maximum_duration(self) -> float:
        """The duration in seconds after which the run stops."""
        return self.__maximum_duration

    @override
    def terminate(self, state: RunState) -> bool:
        return state.elapsed >= self.__maximum_duration


class TargetFitnessTermination(TerminationStrategy):
    """Stops the run once a chromosome reaches a target fitness."""

    __slots__ = ("__target_fitness",)

    def __init__(self, target_fitness: float) -> None:
        """Create a new target fitness termination strategy."""
        self.__target_fitness: float = target_fitness

    def __repr__(self) -> str:
        """Return an instantiable string representation of the strategy."""
        return f"{self.__class__.__name__}({self.__target_fitness})"

    @property
    def target_fitness(self) -> float:
        """The fitness at or above which the run stops."""
        return self.__target_fitness

    @override
    def terminate(self, state: RunState) -> bool:
        return state.highest_fitness >= self.__target_fitness


class TargetStandardDeviationTermination(TerminationStrategy):
    """
    Stops the run once the highest fitness has stagnated.

    The highest fitness of the last `window_size` epochs is buffered, and
    the run stops once at least two values are buffered and their standard
    deviation is at most the target. This is the only stateful strategy,
    it must observe every epoch of a run, and should not be shared between
    runs.
    """

    __slots__ = {
        "__target_standard_deviation": "The deviation at which the run stops.",
        "__window": "The running deviation of the highest fitness."
    }

    def __init__(
        self,
        target_standard_deviation: float,
        window_size: int = 5
    ) -> None:
        """
        Create a new target standard deviation termination strategy.

        Parameters
        ----------
        `target_standard_deviation: float` - The standard deviation at or
        below which the run stops, must not be negative.

        `window_size: int = 5` - The number of recent epochs considered,
        must be positive.

        Raises
        ------
        `ConfigurationError` - If either parameter is out of range.
        """
        if target_standard_deviation < 0.0:
            raise ConfigurationError(
                "Target standard deviation must be non-negative. "
                f"Got; {target_standard_deviation}.")
        if window_size <= 0:
            raise ConfigurationError(
                f"Window size must be positive. Got; {window_size}.")
        self.__target_standard_deviation: float = target_standard_deviation
        self.__window = RunningStandardDeviation(window_size)

    def __repr__(self) -> str:
        """Return an instantiable string representation of the strategy."""
        return (f"{self.__class__.__name__}("
                f"{self.__target_standard_deviation}, {self.__window.window})")

    @property
    def target_standard_deviation(self) -> float:
        """The standard deviation at or below which the run stops."""
        return self.__target_standard_deviation

    @property
    def window_size(self) -> int:
        """The number of recent epochs considered."""
        return self.__window.window

    @override
    def terminate(self, state: RunState) -> bool:
        deviation: float = self.__window.append(state.highest_fitness)
        return (len(self.__window) >= 2
                and deviation <= self.__target_standard_deviation)


class TerminationEvaluator:
    """
    A composite of termination strategies.

    The run stops when any strategy is satisfied. Every strategy sees
    every snapshot, so stateful strategies keep a complete history even
    when an earlier strategy is already satisfied.
    """

    __slots__ = ("__strategies",)

    def __init__(
        self,
        strategies: Iterable[TerminationStrategy] | None = None
    ) -> None:
        """Create a new termination evaluator from the given strategies."""
        self.__strategies: list[TerminationStrategy] = (
            [] if strategies is None else list(strategies))

    def __repr__(self) -> str:
        """Return an instantiable string representation of the evaluator."""
        return f"{self.__class__.__name__}({self.__strategies!r})"

    def __len__(self) -> int:
        """Return the number of strategies."""
        return len(self.__strategies)

    def __iter__(self) -> Iterator[TerminationStrategy]:
        """Iterate over the strategies."""
        return iter(self.__strategies)

    @property
    def is_empty(self) -> bool:
        """Whether the evaluator has no strategies."""
        return not self.__strategies

    def add(self, strategy: TerminationStrategy) -> "TerminationEvaluator":
        """Add a strategy and return the evaluator."""
        self.__strategies.append(strategy)
        return self

    def should_terminate(self, state: RunState) -> bool:
        """Whether any strategy is satisfied by the given state."""
        results = [strategy.terminate(state) for strategy in self.__strategies]
        return any(results)
