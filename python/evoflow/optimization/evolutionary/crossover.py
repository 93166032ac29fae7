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
Module defining crossover operators.

A crossover operator recombines the genes of a couple of parent chromosomes
to create two offspring, each of which is some combination of the parents.
Crossover operators only consider the positions of genes, not what they
encode, so they work for any chromosome representation. Offspring are deep
copies of the parents with new genes, a new identifier, an age of zero and
no cached fitness.
"""

from abc import abstractmethod
from typing import Any

from numpy.random import Generator
from typing_extensions import override

from evoflow.optimization.evolutionary.chromosomes import Chromosome, Couple
from evoflow.optimization.evolutionary.errors import (ConfigurationError,
                                                      InvalidChromosomeError)
from evoflow.optimization.evolutionary.operators import GeneticOperator

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "CrossoverStrategy",
    "OnePointCrossover",
    "KPointCrossover",
    "UniformCrossover"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class CrossoverStrategy(GeneticOperator):
    """Base class for crossover operators."""

    __slots__ = ()

    def crossover(
        self,
        couple: Couple,
        generator: Generator
    ) -> list[Chromosome[Any]]:
        """
        Create two offspring by recombining the genes of a couple.

        Raises
        ------
        `InvalidChromosomeError` - If either parent has no genes.
        """
        parent_a, parent_b = couple
        for parent in couple:
            if len(parent.genes) == 0:
                raise InvalidChromosomeError(
                    "Cannot perform crossover on a chromosome without genes. "
                    f"Got; {parent!r}.")
        genes_a, genes_b = self.recombine(
            list(parent_a.genes), list(parent_b.genes), couple, generator)
        return [
            self._offspring(parent_a, genes_a),
            self._offspring(parent_b, genes_b)
        ]

    @abstractmethod
    def recombine(
        self,
        genes_a: list[Any],
        genes_b: list[Any],
        couple: Couple,
        generator: Generator
    ) -> tuple[list[Any], list[Any]]:
        """
        Recombine the non-empty gene lists of two parents into the gene
        lists of two offspring.
        """
        ...

    @staticmethod
    def _offspring(
        parent: Chromosome[Any],
        genes: list[Any]
    ) -> Chromosome[Any]:
        """Create an offspring from a deep copy of a parent."""
        child = parent.deep_copy()
        child.genes = genes
        return child


class OnePointCrossover(CrossoverStrategy):
    """
    Crosses over the genes of two parents at a single point.

    Offspring A takes the genes of parent A before the point and of parent
    B after it, and offspring B the reverse. The point is drawn uniformly
    from `[1, min(len(A), len(B))]`.
    """

    __slots__ = ()

    def crossover_point(self, couple: Couple, generator: Generator) -> int:
        """Draw the crossover point for the given couple."""
        shortest: int = min(len(parent.genes) for parent in couple)
        return int(generator.integers(1, shortest + 1))

    @override
    def recombine(
        self,
        genes_a: list[Any],
        genes_b: list[Any],
        couple: Couple,
        generator: Generator
    ) -> tuple[list[Any], list[Any]]:
        point: int = self.crossover_point(couple, generator)
        return (genes_a[:point] + genes_b[point:],
                genes_b[:point] + genes_a[point:])


class KPointCrossover(CrossoverStrategy):
    """
    Crosses over the genes of two parents at several points.

    The gene sequences are cut at `number_of_points` distinct points and
    the offspring alternate between the segments of each parent, starting
    with their own. If the shorter parent has fewer cut positions than
    points, every position is used.
    """

    __slots__ = ("__number_of_points",)

    def __init__(self, number_of_points: int = 2) -> None:
        """
        Create a new k-point crossover operator.

        Raises
        ------
        `ConfigurationError` - If the number of points is less than one.
        """
        super().__init__()
        if number_of_points < 1:
            raise ConfigurationError(
                "Number of points must be at least one. "
                f"Got; {number_of_points}.")
        self.__number_of_points: int = number_of_points

    def __repr__(self) -> str:
        """Return an instantiable string representation of the operator."""
        return f"{self.__class__.__name__}({self.__number_of_points})"

    @property
    def number_of_points(self) -> int:
        """The number of crossover points."""
        return self.__number_of_points

    def crossover_points(self, couple: Couple, generator: Generator) -> list[int]:
        """Draw the sorted, distinct crossover points for the given couple."""
        shortest: int = min(len(parent.genes) for parent in couple)
        points: int = min(self.__number_of_points, shortest)
        return sorted(
            int(point) + 1
            for point in generator.choice(shortest, size=points, replace=False)
        )

    @override
    def recombine(
        self,
        genes_a: list[Any],
        genes_b: list[Any],
        couple: Couple,
        generator: Generator
    ) -> tuple[list[Any], list[Any]]:
        child_a: list[Any] = []
        child_b: list[Any] = []
        source_a, source_b = genes_a, genes_b
        start: int = 0
        for point in self.crossover_points(couple, generator):
            child_a.extend(source_a[start:point])
            child_b.extend(source_b[start:point])
            source_a, source_b = source_b, source_a
            start = point
        child_a.extend(source_a[start:])
        child_b.extend(source_b[start:])
        return child_a, child_b


class UniformCrossover(CrossoverStrategy):
    """
    Swaps each gene between two parents with probability one half.

    Genes beyond the length of the shorter parent are kept by their own
    parent's offspring.
    """

    __slots__ = ()

    @override
    def recombine(
        self,
        genes_a: list[Any],
        genes_b: list[Any],
        couple: Couple,
        generator: Generator
    ) -> tuple[list[Any], list[Any]]:
        child_a = list(genes_a)
        child_b = list(genes_b)
        shortest: int = min(len(genes_a), len(genes_b))
        swaps = generator.random(shortest) < 0.5
        for index in range(shortest):
            if swaps[index]:
                child_a[index], child_b[index] = genes_b[index], genes_a[index]
        return child_a, child_b
