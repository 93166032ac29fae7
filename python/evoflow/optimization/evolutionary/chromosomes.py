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
Module defining chromosomes and couples.

A chromosome is a candidate solution, a sequence of genes with a fitness
score. The engine is agnostic to what the genes represent, users subclass
`Chromosome` and provide the fitness function and mutation operator for
their problem.
"""

import copy
import dataclasses
import uuid
from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Iterable, Iterator, TypeVar

from numpy.random import Generator

from evoflow.optimization.evolutionary.errors import InvalidChromosomeError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Chromosome",
    "Couple"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


# Generic gene type.
GT = TypeVar("GT")


class Chromosome(Generic[GT], metaclass=ABCMeta):
    """
    Base class for chromosomes.

    Subclasses must implement `calculate_fitness` and `mutate`. Fitness is
    calculated lazily and cached until `invalidate_fitness` is called, or the
    genes are replaced.

    Every chromosome has a stable identifier, which is unique to the instance
    and is not shared with deep copies, and an age, the number of epochs it
    has survived.
    """

    __slots__ = {
        "__identifier": "The unique identifier of the chromosome.",
        "__genes": "The genes of the chromosome.",
        "__fitness": "The cached fitness, None if not yet calculated.",
        "__age": "The number of epochs the chromosome has survived."
    }

    def __init__(self, genes: Iterable[GT]) -> None:
        """
        Super constructor for chromosomes.

        Parameters
        ----------
        `genes: Iterable[GT]` - The genes of the chromosome.
        """
        self.__identifier: uuid.UUID = uuid.uuid4()
        self.__genes: list[GT] = list(genes)
        self.__fitness: float | None = None
        self.__age: int = 0

    def __str__(self) -> str:
        """Return a human readable string of the chromosome."""
        fitness = "unknown" if self.__fitness is None else self.__fitness
        return (f"{self.__class__.__name__}: genes={self.__genes}, "
                f"fitness={fitness}, age={self.__age}")

    def __repr__(self) -> str:
        """Return a string representation of the chromosome."""
        return f"{self.__class__.__name__}({self.__genes!r})"

    @property
    def identifier(self) -> uuid.UUID:
        """The unique identifier of the chromosome."""
        return self.__identifier

    @property
    def genes(self) -> list[GT]:
        """
        The genes of the chromosome.

        The list is returned by reference so that mutation operators can
        change it in place, they must then call `invalidate_fitness`.
        """
        return self.__genes

    @genes.setter
    def genes(self, genes: Iterable[GT]) -> None:
        """Replace the genes of the chromosome, invalidating its fitness."""
        self.__genes = list(genes)
        self.__fitness = None

    @property
    def fitness(self) -> float:
        """The fitness of the chromosome, calculated on first access."""
        if self.__fitness is None:
            self.__fitness = float(self.calculate_fitness())
        return self.__fitness

    @property
    def age(self) -> int:
        """The number of epochs the chromosome has survived."""
        return self.__age

    def invalidate_fitness(self) -> None:
        """Clear the cached fitness, it is recalculated on next access."""
        self.__fitness = None

    def increment_age(self) -> None:
        """Increase the age of the chromosome by one epoch."""
        self.__age += 1

    def reset_age(self) -> None:
        """Reset the age of the chromosome to zero."""
        self.__age = 0

    @abstractmethod
    def calculate_fitness(self) -> float:
        """
        Calculate the fitness of the chromosome.

        Must be a pure function of the genes, higher is better.
        """
        ...

    @abstractmethod
    def mutate(self, generator: Generator) -> None:
        """
        Mutate the genes of the chromosome in place.

        The given generator must be used as the only source of randomness,
        so that runs are reproducible from a seed.
        """
        ...

    def genetic_repair(self) -> None:
        """
        Repair the genes of the chromosome after crossover or mutation.

        Called on every new offspring, by default does nothing. Override to
        restore problem constraints, such as permutation validity.
        """
        pass

    def deep_copy(self) -> "Chromosome[GT]":
        """
        Create an independent copy of the chromosome.

        The copy shares no mutable state with the original, has a new
        identifier and starts at age zero with no cached fitness.
        """
        clone = copy.deepcopy(self)
        clone.__identifier = uuid.uuid4()
        clone.__age = 0
        clone.__fitness = None
        return clone


@dataclasses.dataclass(frozen=True)
class Couple:
    """
    A pair of distinct chromosomes selected to reproduce.

    Fields
    ------
    `individual_a: Chromosome` - The first parent.

    `individual_b: Chromosome` - The second parent.

    Raises
    ------
    `InvalidChromosomeError` - If both parents have the same identifier.
    """

    individual_a: Chromosome[Any]
    individual_b: Chromosome[Any]

    def __post_init__(self) -> None:
        """Check the parents are distinct chromosomes."""
        if self.individual_a.identifier == self.individual_b.identifier:
            raise InvalidChromosomeError(
                "A couple must be formed from two distinct chromosomes. "
                f"Got; {self.individual_a.identifier} twice.")

    def __iter__(self) -> Iterator[Chromosome[Any]]:
        """Iterate over the two parents, first parent first."""
        yield self.individual_a
        yield self.individual_b

    @property
    def fittest(self) -> Chromosome[Any]:
        """The fitter of the two parents, the first parent on ties."""
        if self.individual_b.fitness > self.individual_a.fitness:
            return self.individual_b
        return self.individual_a
