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
Module defining the genetic runner.

The runner evolves a population of chromosomes in epochs until a
termination condition is met. Each epoch:
    1. selects couples of parents,
    2. recombines them into offspring by crossover,
    3. mutates the offspring,
    4. replaces part of the population with the offspring,
    5. builds a snapshot of the run and asks whether to terminate.
"""

import enum
import logging
import math
import time
from typing import Any, Iterable

from numpy.random import Generator, default_rng

from evoflow.auxiliary.progressbars import ResourceProgressBar
from evoflow.moremath.mathutils import mean, standard_deviation, value_range
from evoflow.optimization.evolutionary.chromosomes import Chromosome, Couple
from evoflow.optimization.evolutionary.crossover import (CrossoverStrategy,
                                                         OnePointCrossover)
from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError, MissingInitialPopulationError)
from evoflow.optimization.evolutionary.parentselection import (
    ParentSelector, TournamentParentSelector)
from evoflow.optimization.evolutionary.policies import AdaptivePursuitPolicy
from evoflow.optimization.evolutionary.registration import (
    CrossoverRegistration, ParentSelectionRegistration,
    SurvivorSelectionRegistration)
from evoflow.optimization.evolutionary.survivorselection import (
    ElitistSurvivorSelector, SurvivorSelector)
from evoflow.optimization.evolutionary.termination import (
    MaximumEpochsTermination, RunState, TerminationEvaluator)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "RunnerStatus",
    "GeneticRunner"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class RunnerStatus(enum.Enum):
    """The states of a genetic runner."""

    INITIALIZED = "initialized"
    EVALUATING = "evaluating"
    TERMINATED = "terminated"


class GeneticRunner:
    """
    Evolves a population of chromosomes until a termination condition is met.

    Operators are registered per phase through the `parent_selection`,
    `crossover` and `survivor_selection` registrations, and termination
    strategies are added to `termination`. Phases left empty are given a
    default when the run starts:
        - parent selection: `TournamentParentSelector()`,
        - crossover: `OnePointCrossover()`,
        - survivor selection: `ElitistSurvivorSelector()`,
        - termination: `MaximumEpochsTermination(100)`.

    All randomness comes from the single generator of the runner, so a run
    is reproducible from its seed. A generator must not be shared between
    runners that are used concurrently.

    Example
    -------
    ```
    runner = GeneticRunner(population, rng=42)
    runner.parent_selection.register(RankParentSelector())
    runner.crossover.register(OnePointCrossover()).with_crossover_rate(0.8)
    runner.survivor_selection.register(ElitistSurvivorSelector(0.2))
    runner.termination.add(TargetFitnessTermination(100.0))
    best = runner.run()
    ```
    """

    __RUNNER_LOGGER = logging.getLogger("GeneticRunner")

    # Consecutive reproduction batches without offspring before giving up.
    __MAX_EMPTY_BATCHES: int = 10

    __slots__ = {
        "__generator": "The random number generator of the run.",
        "__population": "The current population.",
        "__mutation_rate": "The probability an offspring is mutated.",
        "__minimum_population_size": "The lower population bound.",
        "__maximum_population_size": "The upper population bound.",
        "__parent_selection": "The parent selection registration.",
        "__crossover": "The crossover registration.",
        "__survivor_selection": "The survivor selection registration.",
        "__termination": "The termination evaluator.",
        "__show_progress": "Whether to display a progress bar.",
        "__status": "The current state of the runner.",
        "__current_epoch": "The index of the current epoch.",
        "__elapsed_offset": "Seconds added to the measured run time.",
        "__last_state": "The snapshot of the last evaluated epoch."
    }

    def __init__(
        self,
        initial_population: Iterable[Chromosome[Any]] | None,
        rng: Generator | int | None = None,
        *,
        mutation_rate: float = 0.2,
        minimum_population_percentage: float = 0.5,
        maximum_population_percentage: float = 2.0,
        progress_bar: bool = False
    ) -> None:
        """
        Create a new genetic runner.

        Parameters
        ----------
        `initial_population: Iterable[Chromosome] | None` - The population to
        evolve, must contain at least one chromosome.

        `rng: Generator | int | None = None` - Either a random number
        generator instance, or a seed for the runner to create its own, None
        generates a random seed.

        `mutation_rate: float = 0.2` - The probability that an offspring is
        mutated, in `[0, 1]`.

        `minimum_population_percentage: float = 0.5` - The lower population
        bound as a fraction of the initial size, in `(0, 1]`.

        `maximum_population_percentage: float = 2.0` - The upper population
        bound as a fraction of the initial size, at least one.

        `progress_bar: bool = False` - Whether to display a progress bar
        during the run.

        Raises
        ------
        `MissingInitialPopulationError` - If the population is None or empty.

        `ConfigurationError` - If any rate or percentage is out of range.
        """
        population = [] if initial_population is None else list(initial_population)
        if not population:
            raise MissingInitialPopulationError(
                "A genetic runner requires at least one chromosome in its "
                "initial population.")
        if not 0.0 <= mutation_rate <= 1.0:
            raise ConfigurationError(
                f"Mutation rate must be in [0.0, 1.0]. Got; {mutation_rate}.")
        if not 0.0 < minimum_population_percentage <= 1.0:
            raise ConfigurationError(
                "Minimum population percentage must be in (0.0, 1.0]. "
                f"Got; {minimum_population_percentage}.")
        if maximum_population_percentage < 1.0:
            raise ConfigurationError(
                "Maximum population percentage must be at least 1.0. "
                f"Got; {maximum_population_percentage}.")

        self.__generator: Generator = default_rng(rng)
        self.__population: list[Chromosome[Any]] = population
        self.__mutation_rate: float = mutation_rate
        self.__minimum_population_size: int = int(
            len(population) * minimum_population_percentage)
        self.__maximum_population_size: int = int(
            len(population) * maximum_population_percentage)
        self.__parent_selection = ParentSelectionRegistration()
        self.__crossover = CrossoverRegistration()
        self.__survivor_selection = SurvivorSelectionRegistration()
        self.__termination = TerminationEvaluator()
        self.__show_progress: bool = progress_bar
        self.__status: RunnerStatus = RunnerStatus.INITIALIZED
        self.__current_epoch: int = 0
        self.__elapsed_offset: float = 0.0
        self.__last_state: RunState | None = None

    def __repr__(self) -> str:
        """Return a string representation of the runner."""
        return (f"{self.__class__.__name__}(population={len(self.__population)}, "
                f"status={self.__status.name}, epoch={self.__current_epoch})")

    @property
    def generator(self) -> Generator:
        """The random number generator of the run."""
        return self.__generator

    @property
    def status(self) -> RunnerStatus:
        """The current state of the runner."""
        return self.__status

    @property
    def current_epoch(self) -> int:
        """The index of the current (or last evaluated) epoch."""
        return self.__current_epoch

    @property
    def population(self) -> tuple[Chromosome[Any], ...]:
        """The current population."""
        return tuple(self.__population)

    @property
    def last_state(self) -> RunState | None:
        """The snapshot of the last evaluated epoch, None before the run."""
        return self.__last_state

    @property
    def mutation_rate(self) -> float:
        """The probability that an offspring is mutated."""
        return self.__mutation_rate

    @property
    def parent_selection(self) -> ParentSelectionRegistration:
        """The parent selection operators of the run."""
        return self.__parent_selection

    @property
    def crossover(self) -> CrossoverRegistration:
        """The crossover operators of the run."""
        return self.__crossover

    @property
    def survivor_selection(self) -> SurvivorSelectionRegistration:
        """The survivor selection operators of the run."""
        return self.__survivor_selection

    @property
    def termination(self) -> TerminationEvaluator:
        """The termination strategies of the run."""
        return self.__termination

    def with_state(
        self,
        current_epoch: int,
        elapsed: float = 0.0
    ) -> "GeneticRunner":
        """
        Start the run from a given epoch and elapsed time.

        Only valid before the run starts. Intended for resuming a run, or
        for exercising epoch dependent behaviour in tests.

        Raises
        ------
        `InvalidOperationError` - If the run has already started.

        `ConfigurationError` - If the epoch or elapsed time is negative.
        """
        if self.__status is not RunnerStatus.INITIALIZED:
            raise InvalidOperationError(
                "The state of a runner can only be set before it runs. "
                f"Got; status {self.__status.name}.")
        if current_epoch < 0:
            raise ConfigurationError(
                f"Current epoch must be non-negative. Got; {current_epoch}.")
        if elapsed < 0.0:
            raise ConfigurationError(
                f"Elapsed time must be non-negative. Got; {elapsed}.")
        self.__current_epoch = current_epoch
        self.__elapsed_offset = elapsed
        return self

    def fittest(self) -> Chromosome[Any]:
        """Get the fittest chromosome of the current population."""
        return max(self.__population, key=lambda c: c.fitness)

    def run(self) -> Chromosome[Any]:
        """
        Run epochs until a termination strategy is satisfied.

        Returns
        -------
        `Chromosome` - The fittest chromosome of the final population.

        Raises
        ------
        `InvalidOperationError` - If the runner has already run.

        `ConfigurationError` - If the configuration is invalid, raised before
        the first epoch.

        Any exception raised by an operator or chromosome during an epoch
        propagates and aborts the run.
        """
        if self.__status is not RunnerStatus.INITIALIZED:
            raise InvalidOperationError(
                "A genetic runner can only be run once. "
                f"Got; status {self.__status.name}.")
        self.__configure()
        self.__status = RunnerStatus.EVALUATING
        self.__RUNNER_LOGGER.info(
            "Starting run: population=%d, epoch=%d",
            len(self.__population), self.__current_epoch)

        start_time: float = time.perf_counter()
        progress_bar = ResourceProgressBar(
            total=self.__epoch_limit(),
            initial=self.__current_epoch,
            disable=not self.__show_progress
        )
        with progress_bar:
            while True:
                self.__run_epoch()
                state = RunState(
                    self.__current_epoch,
                    self.__elapsed_offset + (time.perf_counter() - start_time),
                    self.fittest().fitness
                )
                self.__last_state = state
                self.__RUNNER_LOGGER.debug("%s", state)
                progress_bar.update(
                    data={"Best fitness": str(state.highest_fitness)})
                if self.__termination.should_terminate(state):
                    break
                self.__current_epoch += 1

        self.__status = RunnerStatus.TERMINATED
        fittest = self.fittest()
        self.__RUNNER_LOGGER.info(
            "Run terminated after %d epochs in %.3fs: highest fitness=%s",
            state.epochs_completed, state.elapsed, fittest.fitness)
        return fittest

    def __epoch_limit(self) -> int | None:
        """The smallest maximum epochs limit of the run, if any."""
        limits = [
            strategy.maximum_epochs for strategy in self.__termination
            if isinstance(strategy, MaximumEpochsTermination)
        ]
        return min(limits, default=None)

    def __configure(self) -> None:
        """Default any empty phase and resolve the operator policies."""
        if self.__parent_selection.is_empty:
            self.__parent_selection.register(TournamentParentSelector())
            self.__RUNNER_LOGGER.info("No parent selector registered, using tournament.")
        if self.__crossover.is_empty:
            self.__crossover.register(OnePointCrossover())
            self.__RUNNER_LOGGER.info("No crossover registered, using one-point.")
        if self.__survivor_selection.is_empty:
            self.__survivor_selection.register(ElitistSurvivorSelector())
            self.__RUNNER_LOGGER.info("No survivor selector registered, using elitist.")
        if self.__termination.is_empty:
            self.__termination.add(MaximumEpochsTermination(100))
            self.__RUNNER_LOGGER.info("No termination registered, using 100 epochs.")
        for registration in (self.__parent_selection,
                             self.__crossover,
                             self.__survivor_selection):
            policy = registration.resolve_policy()
            self.__RUNNER_LOGGER.debug(
                "Resolved %s policy: %r", registration.phase, policy)

    def required_offspring(self, offspring_generation_rate: float) -> int:
        """
        The number of offspring to generate for the current population.

        The number is `max(1, int(n * rate))` clamped so that the
        population stays within its bounds.
        """
        size: int = len(self.__population)
        lower: int = max(1, self.__minimum_population_size - size)
        upper: int = max(
            lower,
            self.__maximum_population_size - self.__minimum_population_size)
        required: int = max(1, int(size * offspring_generation_rate))
        return min(max(required, lower), upper)

    def __run_epoch(self) -> None:
        """Evaluate one epoch, replacing part of the population."""
        epoch: int = self.__current_epoch
        policy = self.__survivor_selection.policy
        selector: SurvivorSelector = policy.select_operator(self.__generator, epoch)
        required: int = self.required_offspring(
            self.__survivor_selection.offspring_generation_rate_for(selector))

        offspring = self.__reproduce(required, epoch)
        self.__mutate(offspring)

        if not offspring:
            self.__RUNNER_LOGGER.warning(
                "Epoch %d produced no offspring, the population is unchanged.",
                epoch)
            for chromosome in self.__population:
                chromosome.increment_age()
            return

        pre_fitness = [chromosome.fitness for chromosome in self.__population]
        population = selector.apply_survivor_selection(
            self.__population, offspring, self.__generator, epoch)
        newborn = {child.identifier for child in offspring}
        for chromosome in population:
            if chromosome.identifier not in newborn:
                chromosome.increment_age()
        self.__population = population

        if isinstance(policy, AdaptivePursuitPolicy):
            post_fitness = [chromosome.fitness for chromosome in population]
            policy.update_reward(
                selector,
                mean(pre_fitness),
                mean(post_fitness),
                value_range(pre_fitness),
                standard_deviation(post_fitness) - standard_deviation(pre_fitness)
            )

    def __reproduce(
        self,
        required: int,
        epoch: int
    ) -> list[Chromosome[Any]]:
        """Select couples and recombine them until enough offspring exist."""
        parent_policy = self.__parent_selection.policy
        crossover_policy = self.__crossover.policy
        crossover_rate: float = self.__crossover.crossover_rate
        fitness_range: float = value_range(
            chromosome.fitness for chromosome in self.__population)

        offspring: list[Chromosome[Any]] = []
        empty_batches: int = 0
        while len(offspring) < required:
            parent_selector: ParentSelector = parent_policy.select_operator(
                self.__generator, epoch)
            couples = parent_selector.select_mating_pairs(
                self.__population,
                self.__generator,
                max(1, math.ceil((required - len(offspring)) / 2)),
                epoch
            )
            if not couples:
                break
            batch: list[Chromosome[Any]] = []
            for couple in couples:
                strategy: CrossoverStrategy = crossover_policy.select_operator(
                    self.__generator, epoch)
                if self.__generator.random() >= crossover_rate:
                    continue
                children = strategy.crossover(couple, self.__generator)
                batch.extend(children)
                self.__reward_reproduction(
                    parent_selector, strategy, couple, children, fitness_range)
            if batch:
                empty_batches = 0
                offspring.extend(batch)
            else:
                empty_batches += 1
                if empty_batches >= self.__MAX_EMPTY_BATCHES:
                    break
        return offspring[:required]

    def __reward_reproduction(
        self,
        parent_selector: ParentSelector,
        strategy: CrossoverStrategy,
        couple: Couple,
        children: list[Chromosome[Any]],
        fitness_range: float
    ) -> None:
        """Reward adaptive operators with the improvement over the parents."""
        parent_policy = self.__parent_selection.policy
        crossover_policy = self.__crossover.policy
        if not (isinstance(parent_policy, AdaptivePursuitPolicy)
                or isinstance(crossover_policy, AdaptivePursuitPolicy)):
            return
        children_fitness = [child.fitness for child in children]
        arguments = (
            couple.fittest.fitness,
            max(children_fitness),
            fitness_range,
            standard_deviation(children_fitness)
        )
        if isinstance(parent_policy, AdaptivePursuitPolicy):
            parent_policy.update_reward(parent_selector, *arguments)
        if isinstance(crossover_policy, AdaptivePursuitPolicy):
            crossover_policy.update_reward(strategy, *arguments)

    def __mutate(self, offspring: list[Chromosome[Any]]) -> None:
        """Mutate offspring with the mutation rate and repair them."""
        for child in offspring:
            if self.__generator.random() < self.__mutation_rate:
                child.mutate(self.__generator)
            child.genetic_repair()
            child.invalidate_fitness()
