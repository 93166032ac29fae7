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
Module defining parent selection operators.

A parent selector chooses couples of chromosomes from the population to
mate. Every selector guarantees the two parents of a couple are distinct
chromosomes, but the same chromosome may appear in many couples.
"""

import math
from abc import abstractmethod
from typing import Any, Callable, Iterable, Sequence

from numpy.random import Generator
from typing_extensions import override

from evoflow.moremath.mathutils import shifted_weights
from evoflow.optimization.decayfunctions import (DecayFunctionType,
                                                 boltzmann_weights,
                                                 get_decay_function)
from evoflow.optimization.evolutionary.chromosomes import Chromosome, Couple
from evoflow.optimization.evolutionary.errors import ConfigurationError
from evoflow.optimization.evolutionary.operators import GeneticOperator
from evoflow.optimization.evolutionary.roulettewheel import \
    WeightedRouletteWheel

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "ParentSelector",
    "RandomParentSelector",
    "RouletteWheelParentSelector",
    "RankParentSelector",
    "BoltzmannParentSelector",
    "TournamentParentSelector",
    "ElitistParentSelector"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


def _by_fitness(
    population: Iterable[Chromosome[Any]],
    descending: bool = False
) -> list[Chromosome[Any]]:
    """Sort chromosomes by fitness, ties keep their population order."""
    return sorted(population, key=lambda c: c.fitness, reverse=descending)


class ParentSelector(GeneticOperator):
    """
    Base class for parent selection operators.

    Populations of fewer than two chromosomes produce no couples, and a
    population of exactly two produces the same couple the requested
    number of times. Subclasses only handle larger populations.
    """

    __slots__ = ()

    def select_mating_pairs(
        self,
        population: Sequence[Chromosome[Any]],
        generator: Generator,
        minimum_number_of_couples: int,
        epoch: int = 0
    ) -> list[Couple]:
        """
        Select couples of chromosomes from the population to mate.

        Parameters
        ----------
        `population: Sequence[Chromosome]` - The current population.

        `generator: Generator` - The random number generator of the run.

        `minimum_number_of_couples: int` - The number of couples to select.

        `epoch: int = 0` - The current epoch of the run.

        Returns
        -------
        `list[Couple]` - The selected couples.

        Raises
        ------
        `ConfigurationError` - If the number of couples is negative.
        """
        if minimum_number_of_couples < 0:
            raise ConfigurationError(
                "The number of couples must be non-negative. "
                f"Got; {minimum_number_of_couples}.")
        population_ = list(population)
        if len(population_) <= 1 or minimum_number_of_couples == 0:
            return []
        if len(population_) == 2:
            return [
                Couple(population_[0], population_[1])
                for _ in range(minimum_number_of_couples)
            ]
        return self._select_pairs(
            population_, generator, minimum_number_of_couples, epoch)

    @abstractmethod
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        """Select couples from a population of at least three chromosomes."""
        ...

    @staticmethod
    def _create_stochastic_couples(
        population: list[Chromosome[Any]],
        weights: list[float],
        generator: Generator,
        quantity: int
    ) -> list[Couple]:
        """
        Create couples by drawing two parents without replacement from a
        fresh roulette wheel for each couple.
        """
        couples: list[Couple] = []
        for _ in range(quantity):
            wheel = WeightedRouletteWheel(population, weights)
            couples.append(Couple(wheel.spin_and_readjust(generator),
                                  wheel.spin_and_readjust(generator)))
        return couples


class RandomParentSelector(ParentSelector):
    """Selects parents uniformly at random."""

    __slots__ = ()

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        return self._create_stochastic_couples(
            population, [1.0] * len(population), generator, quantity)


class RouletteWheelParentSelector(ParentSelector):
    """
    Selects parents with probability proportional to fitness.

    Fitness values must be non-negative.
    """

    __slots__ = ()

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        return self._create_stochastic_couples(
            population,
            [chromosome.fitness for chromosome in population],
            generator,
            quantity
        )


class RankParentSelector(ParentSelector):
    """
    Selects parents with probability proportional to their fitness rank.

    The least fit chromosome has rank one and the fittest has rank equal to
    the population size. Rank selection keeps a steady selection pressure
    regardless of the scale of the fitness values.
    """

    __slots__ = ()

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        ranked = _by_fitness(population)
        return self._create_stochastic_couples(
            ranked,
            [float(rank) for rank in range(1, len(ranked) + 1)],
            generator,
            quantity
        )


class BoltzmannParentSelector(ParentSelector):
    """
    Selects parents with probability proportional to `exp(fitness / T)`.

    The temperature `T` decays with the epoch, so selection starts close to
    uniform (exploration) and becomes increasingly greedy (exploitation).
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
        Create a new Boltzmann parent selector.

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

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        weights = boltzmann_weights(
            (chromosome.fitness for chromosome in population),
            self.temperature(epoch)
        )
        return self._create_stochastic_couples(
            population, weights, generator, quantity)


class TournamentParentSelector(ParentSelector):
    """
    Selects parents by pitching randomly chosen chromosomes against each
    other in tournaments.

    For each couple, `tournament_size` distinct chromosomes are chosen
    uniformly (all of them if the population is smaller). The two winners
    are either the two fittest members (deterministic tournament) or drawn
    without replacement from a roulette wheel over the members weighted
    by their shifted fitness (stochastic tournament).
    """

    __slots__ = {
        "__tournament_size": "The number of chromosomes in each tournament.",
        "__stochastic": "Whether winners are drawn randomly by fitness."
    }

    def __init__(
        self,
        tournament_size: int = 3,
        stochastic: bool = True
    ) -> None:
        """
        Create a new tournament parent selector.

        Parameters
        ----------
        `tournament_size: int = 3` - The number of chromosomes in each
        tournament, must be at least two.

        `stochastic: bool = True` - Whether the winners are drawn randomly
        with probability increasing with fitness, or are always the fittest.

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
    def stochastic(self) -> bool:
        """Whether winners are drawn randomly by fitness."""
        return self.__stochastic

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        size: int = min(self.__tournament_size, len(population))
        couples: list[Couple] = []
        for _ in range(quantity):
            members = [
                population[index]
                for index in generator.choice(
                    len(population), size=size, replace=False)
            ]
            if self.__stochastic:
                wheel = WeightedRouletteWheel(
                    members,
                    shifted_weights(member.fitness for member in members)
                )
                winners = wheel.spin_many(generator, 2)
            else:
                winners = _by_fitness(members, descending=True)[:2]
            couples.append(Couple(winners[0], winners[1]))
        return couples


class ElitistParentSelector(ParentSelector):
    """
    Selects parents giving every elite a chance to mate.

    The elites are the fittest `proportion_of_elites` of the population
    (always at least one). The fittest `proportion_of_non_elites_allowed_to_mate`
    of the remaining chromosomes are eligible to mate as well, all others
    are never selected.

    Selection runs in two phases:
        1. Each elite, fittest first, that has not yet mated picks a partner
           that has not yet mated by a fitness weighted draw. The partner is
           another elite, or an eligible non-elite if elites may mate with
           non-elites. If every candidate partner has already mated, any
           candidate other than the elite itself is used. This continues
           until every elite has mated or enough couples exist.
        2. Remaining couples are drawn uniformly from the pool of elites and
           eligible non-elites. If elites may not mate with non-elites,
           elites only mate with elites and non-elites with non-elites.

    Never returns more couples than requested, and may return fewer if no
    valid couple can be formed.
    """

    __slots__ = {
        "__proportion_of_elites": "The proportion of the population that are elites.",
        "__proportion_of_non_elites": "The proportion of non-elites eligible to mate.",
        "__allow_mixed_mating": "Whether elites may mate with non-elites."
    }

    def __init__(
        self,
        proportion_of_elites: float = 0.1,
        proportion_of_non_elites_allowed_to_mate: float = 0.01,
        allow_mating_elites_with_non_elites: bool = True
    ) -> None:
        """
        Create a new elitist parent selector.

        Parameters
        ----------
        `proportion_of_elites: float = 0.1` - The proportion of the
        population that are elites, in `[0, 1]`.

        `proportion_of_non_elites_allowed_to_mate: float = 0.01` - The
        proportion of the non-elites that are eligible to mate, in `[0, 1]`.

        `allow_mating_elites_with_non_elites: bool = True` - Whether elites
        may mate with eligible non-elites.

        Raises
        ------
        `ConfigurationError` - If either proportion is outside `[0, 1]`.
        """
        super().__init__()
        if not 0.0 <= proportion_of_elites <= 1.0:
            raise ConfigurationError(
                "Proportion of elites must be in [0.0, 1.0]. "
                f"Got; {proportion_of_elites}.")
        if not 0.0 <= proportion_of_non_elites_allowed_to_mate <= 1.0:
            raise ConfigurationError(
                "Proportion of non-elites allowed to mate must be in "
                f"[0.0, 1.0]. Got; {proportion_of_non_elites_allowed_to_mate}.")
        self.__proportion_of_elites: float = proportion_of_elites
        self.__proportion_of_non_elites: float = \
            proportion_of_non_elites_allowed_to_mate
        self.__allow_mixed_mating: bool = allow_mating_elites_with_non_elites

    def __repr__(self) -> str:
        """Return an instantiable string representation of the selector."""
        return (f"{self.__class__.__name__}("
                f"{self.__proportion_of_elites}, "
                f"{self.__proportion_of_non_elites}, "
                f"{self.__allow_mixed_mating})")

    def partition(
        self,
        population: Sequence[Chromosome[Any]]
    ) -> tuple[list[Chromosome[Any]], list[Chromosome[Any]]]:
        """
        Split the population into its elites and its eligible non-elites,
        both in descending order of fitness.
        """
        ordered = _by_fitness(population, descending=True)
        elite_count: int = min(
            len(ordered),
            max(1, math.ceil(self.__proportion_of_elites * len(ordered)))
        )
        non_elite_count: int = math.ceil(
            self.__proportion_of_non_elites * (len(ordered) - elite_count))
        return (ordered[:elite_count],
                ordered[elite_count:elite_count + non_elite_count])

    @override
    def _select_pairs(
        self,
        population: list[Chromosome[Any]],
        generator: Generator,
        quantity: int,
        epoch: int
    ) -> list[Couple]:
        elites, non_elites = self.partition(population)
        couples = self.__mate_elites(elites, non_elites, generator, quantity)
        couples.extend(
            self.__fill_from_pool(
                elites, non_elites, generator, quantity - len(couples)))
        return couples

    def __mate_elites(
        self,
        elites: list[Chromosome[Any]],
        non_elites: list[Chromosome[Any]],
        generator: Generator,
        quantity: int
    ) -> list[Couple]:
        """Give every elite one mating opportunity."""
        couples: list[Couple] = []
        mated: set[Any] = set()
        partners = elites + non_elites if self.__allow_mixed_mating else elites
        for elite in elites:
            if len(couples) >= quantity:
                break
            if elite.identifier in mated:
                continue
            candidates = [
                partner for partner in partners
                if partner is not elite and partner.identifier not in mated
            ]
            if not candidates:
                candidates = [
                    partner for partner in partners if partner is not elite]
            if not candidates:
                break
            mate = WeightedRouletteWheel(
                candidates,
                shifted_weights(candidate.fitness for candidate in candidates)
            ).spin(generator)
            couples.append(Couple(elite, mate))
            mated.add(elite.identifier)
            mated.add(mate.identifier)
        return couples

    def __fill_from_pool(
        self,
        elites: list[Chromosome[Any]],
        non_elites: list[Chromosome[Any]],
        generator: Generator,
        quantity: int
    ) -> list[Couple]:
        """Draw the remaining couples uniformly from the mating pool."""
        groups: list[list[Chromosome[Any]]]
        if self.__allow_mixed_mating:
            groups = [elites + non_elites]
        else:
            groups = [elites, non_elites]
        groups = [group for group in groups if len(group) >= 2]
        if not groups:
            return []
        pool = [chromosome for group in groups for chromosome in group]
        group_of = {
            chromosome.identifier: group
            for group in groups
            for chromosome in group
        }
        couples: list[Couple] = []
        for _ in range(quantity):
            first = pool[generator.integers(len(pool))]
            wheel = WeightedRouletteWheel.uniform(
                partner for partner in group_of[first.identifier]
                if partner is not first
            )
            couples.append(Couple(first, wheel.spin(generator)))
        return couples
