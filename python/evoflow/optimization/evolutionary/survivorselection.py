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
Module defining survivor selection (replacement) operators.

A survivor selector decides which chromosomes of the current population are
eliminated to make room for the offspring of an epoch. Except for
generational replacement, one chromosome is eliminated per offspring (or
fewer if the population is smaller, or some chromosomes are protected), and
the eliminated chromosomes are replaced by the fittest offspring, so the
population size never changes.
"""

import math
from abc import abstractmethod
from typing import Any, Callable, Sequence

from numpy.random import Generator
from typing_extensions import override

from evoflow.moremath.mathutils import shifted_weights
from evoflow.optimization.decayfunctions import (DecayFunctionType,
                                                 boltzmann_weights,
                                                 get_decay_function)
from evoflow.optimization.evolutionary.chromosomes import Chromosome
from evoflow.optimization.evolutionary.errors import ConfigurationError
from evoflow.optimization.evolutionary.operators import GeneticOperator
from evoflow.optimization.evolutionary.roulettewheel import \
    WeightedRouletteWheel

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "SurvivorSelector",
    "GenerationalSurvivorSelector",
    "AgeBasedSurvivorSelector",
    "ElitistSurvivorSelector",
    "TournamentSurvivorSelector",
    "BoltzmannSurvivorSelector",
    "RandomEliminationSurvivorSelector"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class SurvivorSelector(GeneticOperator):
    """Base class for survivor selection operators."""

    __slots__ = ()

    @property
    @abstractmethod
    def recommended_offspring_generation_rate(self) -> float:
        """
        The number of offspring this selector works best with each epoch,
        as a fraction of the population size.
        """
        ...

    def select_for_elimination(
        self,
        population: Sequence[Chromosome[Any]],
        offspring: Sequence[Chromosome[Any]],
        generator: Generator,
        epoch: int = 0
    ) -> list[Chromosome[Any]]:
        """
        Select the chromosomes of the population to eliminate.

        At most `min(len(offspring), len(population))` chromosomes are
        selected, each at most once.

        Parameters
        ----------
        `population: Sequence[Chromosome]` - The current population.

        `offspring: Sequence[Chromosome]` - The offspring of this epoch.

        `generator: Generator` - The random number generator of the run.

        `epoch: int = 0` - The current epoch of the run.
        """
        population_ = list(population)
        count: int = min(len(offspring), len(population_))
        if count == 0:
            return []
        return self._eliminate(population_, count, generator, epoch)

    @abstractmethod
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        """Select at most `count` distinct chromosomes to eliminate."""
        ...

    def apply_survivor_selection(
        self,
        population: Sequence[Chromosome[Any]],
        offspring: Sequence[Chromosome[Any]],
        generator: Generator,
        epoch: int = 0
    ) -> list[Chromosome[Any]]:
        """
        Replace eliminated chromosomes with offspring.

        The survivors keep their order and are followed by the fittest
        offspring, one for each eliminated chromosome.

        Returns
        -------
        `list[Chromosome]` - The new population, of the same size as the
        given population.
        """
        eliminated = {
            chromosome.identifier
            for chromosome in self.select_for_elimination(
                population, offspring, generator, epoch)
        }
        survivors = [
            chromosome for chromosome in population
            if chromosome.identifier not in eliminated
        ]
        admitted = sorted(
            offspring, key=lambda c: c.fitness, reverse=True
        )[:len(population) - len(survivors)]
        return survivors + admitted


class GenerationalSurvivorSelector(SurvivorSelector):
    """
    Replaces the whole population with the offspring.

    This is the one selector that does not preserve the population size,
    the new population is exactly the offspring.
    """

    __slots__ = ()

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 1.0

    @override
    def select_for_elimination(
        self,
        population: Sequence[Chromosome[Any]],
        offspring: Sequence[Chromosome[Any]],
        generator: Generator,
        epoch: int = 0
    ) -> list[Chromosome[Any]]:
        """Select the entire population for elimination."""
        return list(population)

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        return population

    @override
    def apply_survivor_selection(
        self,
        population: Sequence[Chromosome[Any]],
        offspring: Sequence[Chromosome[Any]],
        generator: Generator,
        epoch: int = 0
    ) -> list[Chromosome[Any]]:
        """Return the offspring as the new population."""
        return list(offspring)


class AgeBasedSurvivorSelector(SurvivorSelector):
    """
    Eliminates chromosomes with probability proportional to `age + 1`.

    Older chromosomes are more likely to be eliminated, when all ages are
    equal elimination is uniform.
    """

    __slots__ = ()

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 0.35

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        wheel = WeightedRouletteWheel(
            population,
            [chromosome.age + 1.0 for chromosome in population]
        )
        return wheel.spin_many(generator, count)


class ElitistSurvivorSelector(SurvivorSelector):
    """
    Protects the fittest chromosomes from elimination.

    The fittest `ceil(n * elite_percentage)` chromosomes always survive,
    the eliminated chromosomes are drawn uniformly from the rest. At most
    `n - elite_count` chromosomes are eliminated, however many offspring
    there are.
    """

    __slots__ = ("__elite_percentage",)

    def __init__(self, elite_percentage: float = 0.1) -> None:
        """
        Create a new elitist survivor selector.

        Parameters
        ----------
        `elite_percentage: float = 0.1` - The fraction of the population
        protected from elimination, in `[0, 1]`.

        Raises
        ------
        `ConfigurationError` - If the elite percentage is outside `[0, 1]`.
        """
        super().__init__()
        if not 0.0 <= elite_percentage <= 1.0:
            raise ConfigurationError(
                "Elite percentage must be in [0.0, 1.0]. "
                f"Got; {elite_percentage}.")
        self.__elite_percentage: float = elite_percentage

    def __repr__(self) -> str:
        """Return an instantiable string representation of the selector."""
        return f"{self.__class__.__name__}({self.__elite_percentage})"

    @property
    def elite_percentage(self) -> float:
        """The fraction of the population protected from elimination."""
        return self.__elite_percentage

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 1.0 - self.__elite_percentage

    def elite_count(self, population_size: int) -> int:
        """The number of protected chromosomes in a population of the given size."""
        return min(population_size,
                   math.ceil(population_size * self.__elite_percentage))

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        ordered = sorted(population, key=lambda c: c.fitness, reverse=True)
        eligible = ordered[self.elite_count(len(ordered)):]
        count = min(count, len(eligible))
        if count == 0:
            return []
        return [
            eligible[index]
            for index in generator.choice(len(eligible), size=count, replace=False)
        ]


class TournamentSurvivorSelector(SurvivorSelector):
    """
    Eliminates the losers of tournaments between randomly chosen members.

    Each elimination holds a tournament of `tournament_size` distinct
    chromosomes not yet eliminated, chosen uniformly. The loser is either
    the least fit member (deterministic tournament) or drawn from a roulette
    wheel over the members weighted by `max + epsilon - fitness`
    (stochastic tournament), see `shifted_weights`.
    """

    __slots__ = {
        "__tournament_size": "The number of chromosomes in each tournament.",
        "__stochastic": "Whether losers are drawn randomly by fitness."
    }

    def __init__(
        self,
        tournament_size: int = 3,
        stochastic: bool = True
    ) -> None:
        """
        Create a new tournament survivor selector.

        Parameters
        ----------
        `tournament_size: int = 3` - The number of chromosomes in each
        tournament, must be at least two.

        `stochastic: bool = True` - Whether the loser is drawn randomly with
        probability decreasing with fitness, or is always the least fit.

        Raises
        ------
        `ConfigurationError` - If the tournament size is less than two.
        """
        super().__init__()
        if tournament_size < 2:
            raise ConfigurationError(
                "Tournament size must be at least two. "
                f"Got; {tournament_size}.")
        self.__tournament_size: int = tournament_size
        self.__stochastic: bool = stochastic

    def __repr__(self) -> str:
        """Return an instantiable string representation of the selector."""
        return (f"{self.__class__.__name__}("
                f"{self.__tournament_size}, {self.__stochastic})")

    @property
    def tournament_size(self) -> int:
        """The number of chromosomes in each tournament."""
        return self.__tournament_size

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 0.5

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        remaining = list(population)
        eliminated: list[Chromosome[Any]] = []
        while len(eliminated) < count:
            size: int = min(self.__tournament_size, len(remaining))
            members = [
                remaining[index]
                for index in generator.choice(
                    len(remaining), size=size, replace=False)
            ]
            loser: Chromosome[Any]
            if self.__stochastic:
                loser = WeightedRouletteWheel(
                    members,
                    shifted_weights(
                        (member.fitness for member in members), invert=True)
                ).spin(generator)
            else:
                loser = min(members, key=lambda c: c.fitness)
            remaining = [c for c in remaining if c is not loser]
            eliminated.append(loser)
        return eliminated


class BoltzmannSurvivorSelector(SurvivorSelector):
    """
    Eliminates chromosomes with probability proportional to
    `exp(-fitness / T)`.

    The temperature `T` decays with the epoch, so early eliminations are
    close to uniform and later ones increasingly target the least fit.
    """

    __slots__ = {
        "__decay_type": "The type of temperature decay.",
        "__temperature": "The temperature decay function."
    }

    def __init__(
        self,
        decay_rate: float = 0.05,
        initial_temperature: float = 1.0,
        decay_type: DecayFunctionType = "exp"
    ) -> None:
        """
        Create a new Boltzmann survivor selector.

        Parameters
        ----------
        `decay_rate: float = 0.05` - The temperature decay rate, must not be
        negative.

        `initial_temperature: float = 1.0` - The temperature at epoch zero,
        must be greater than zero.

        `decay_type: DecayFunctionType = "exp"` - Either "exp" for
        exponential decay or "lin" for linear decay.

        Raises
        ------
        `ConfigurationError` - If any parameter is out of range.
        """
        super().__init__()
        self.__decay_type: DecayFunctionType = decay_type
        self.__temperature: Callable[[int], float] = get_decay_function(
            decay_type, initial_temperature, decay_rate)

    def __repr__(self) -> str:
        """Return an instantiable string representation of the selector."""
        return (f"{self.__class__.__name__}("
                f"{self.__temperature.decay_rate}, "  # type: ignore[attr-defined]
                f"{self.__temperature.initial_value}, "  # type: ignore[attr-defined]
                f"{self.__decay_type!r})")

    def temperature(self, epoch: int) -> float:
        """Get the temperature at the given epoch."""
        return self.__temperature(epoch)

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 0.4

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        wheel = WeightedRouletteWheel(
            population,
            boltzmann_weights(
                (chromosome.fitness for chromosome in population),
                self.temperature(epoch),
                eliminate=True
            )
        )
        return wheel.spin_many(generator, count)


class RandomEliminationSurvivorSelector(SurvivorSelector):
    """Eliminates chromosomes uniformly at random."""

    __slots__ = ()

    @property
    @override
    def recommended_offspring_generation_rate(self) -> float:
        return 0.25

    @override
    def _eliminate(
        self,
        population: list[Chromosome[Any]],
        count: int,
        generator: Generator,
        epoch: int
    ) -> list[Chromosome[Any]]:
        return WeightedRouletteWheel.uniform(population).spin_many(
            generator, count)
