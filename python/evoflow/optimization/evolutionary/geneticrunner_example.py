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

"""Solve the OneMax problem, maximise the number of ones in a bit string."""

import logging

from numpy.random import Generator, default_rng

from evoflow.optimization.evolutionary.chromosomes import Chromosome
from evoflow.optimization.evolutionary.crossover import (OnePointCrossover,
                                                         UniformCrossover)
from evoflow.optimization.evolutionary.parentselection import (
    RankParentSelector, TournamentParentSelector)
from evoflow.optimization.evolutionary.runner import GeneticRunner
from evoflow.optimization.evolutionary.survivorselection import \
    ElitistSurvivorSelector
from evoflow.optimization.evolutionary.termination import (
    MaximumEpochsTermination, TargetFitnessTermination)


class OneMax(Chromosome[int]):
    """A bit string whose fitness is its number of ones."""

    __slots__ = ()

    def calculate_fitness(self) -> float:
        return float(sum(self.genes))

    def mutate(self, generator: Generator) -> None:
        index = int(generator.integers(len(self.genes)))
        self.genes[index] = 1 - self.genes[index]
        self.invalidate_fitness()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    length: int = 50
    rng = default_rng(1)
    population = [
        OneMax(rng.integers(0, 2, size=length).tolist())
        for _ in range(100)
    ]

    runner = GeneticRunner(population, rng=1, progress_bar=True)
    runner.parent_selection.register(TournamentParentSelector())
    runner.parent_selection.register(RankParentSelector())
    runner.crossover.register(OnePointCrossover())
    runner.crossover.register(UniformCrossover())
    runner.survivor_selection.register(ElitistSurvivorSelector(0.2))
    runner.termination.add(TargetFitnessTermination(length))
    runner.termination.add(MaximumEpochsTermination(500))

    best = runner.run()
    print(f"\nBest chromosome :: {best}")
    print(f"Final state :: {runner.last_state}")
