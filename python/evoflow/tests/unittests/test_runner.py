import unittest

from numpy.random import Generator, default_rng

from evoflow.optimization.evolutionary.chromosomes import Chromosome
from evoflow.optimization.evolutionary.crossover import (OnePointCrossover,
                                                         UniformCrossover)
from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError, MissingInitialPopulationError)
from evoflow.optimization.evolutionary.parentselection import (
    RankParentSelector, TournamentParentSelector)
from evoflow.optimization.evolutionary.policies import (AdaptivePursuitPolicy,
                                                        FirstChoicePolicy)
from evoflow.optimization.evolutionary.runner import (GeneticRunner,
                                                      RunnerStatus)
from evoflow.optimization.evolutionary.survivorselection import (
    ElitistSurvivorSelector, GenerationalSurvivorSelector)
from evoflow.optimization.evolutionary.termination import (
    MaximumEpochsTermination, RunState, TargetFitnessTermination,
    TerminationStrategy)


class BitString(Chromosome[int]):
    __slots__ = ()

    def calculate_fitness(self) -> float:
        return float(sum(self.genes))

    def mutate(self, generator: Generator) -> None:
        index = int(generator.integers(len(self.genes)))
        self.genes[index] = 1 - self.genes[index]


class BrokenMutation(BitString):
    __slots__ = ()

    def mutate(self, generator: Generator) -> None:
        raise RuntimeError("mutation failed")


class RecordingTermination(TerminationStrategy):
    __slots__ = ("states",)

    def __init__(self) -> None:
        self.states: list[RunState] = []

    def terminate(self, state: RunState) -> bool:
        self.states.append(state)
        return False


def make_population(size: int = 20, length: int = 16, seed: int = 7, type_=BitString):
    rng = default_rng(seed)
    return [type_(rng.integers(0, 2, size=length).tolist()) for _ in range(size)]


class TestRunnerConfiguration(unittest.TestCase):
    def test_missing_population(self):
        with self.assertRaises(MissingInitialPopulationError):
            GeneticRunner([])
        with self.assertRaises(MissingInitialPopulationError):
            GeneticRunner(None)

    def test_invalid_parameters(self):
        population = make_population()
        with self.assertRaises(ConfigurationError):
            GeneticRunner(population, mutation_rate=1.5)
        with self.assertRaises(ConfigurationError):
            GeneticRunner(population, minimum_population_percentage=0.0)
        with self.assertRaises(ConfigurationError):
            GeneticRunner(population, maximum_population_percentage=0.5)

    def test_defaults_registered(self):
        runner = GeneticRunner(make_population(), rng=0)
        runner.termination.add(MaximumEpochsTermination(2))
        runner.run()
        self.assertIsInstance(runner.parent_selection.operators[0], TournamentParentSelector)
        self.assertIsInstance(runner.crossover.operators[0], OnePointCrossover)
        self.assertIsInstance(runner.survivor_selection.operators[0], ElitistSurvivorSelector)
        self.assertIsInstance(runner.crossover.policy, FirstChoicePolicy)

    def test_default_termination(self):
        runner = GeneticRunner(make_population(size=6, length=4), rng=0)
        runner.run()
        self.assertEqual(runner.last_state.epochs_completed, 100)

    def test_required_offspring(self):
        runner = GeneticRunner(make_population(size=10))
        self.assertEqual(runner.required_offspring(0.5), 5)
        self.assertEqual(runner.required_offspring(1.0), 10)
        self.assertEqual(runner.required_offspring(0.01), 1)

    def test_with_state(self):
        runner = GeneticRunner(make_population(), rng=0)
        with self.assertRaises(ConfigurationError):
            runner.with_state(-1)
        runner.with_state(3, elapsed=10.0)
        runner.termination.add(MaximumEpochsTermination(5))
        runner.run()
        self.assertEqual(runner.last_state.current_epoch, 4)
        self.assertGreaterEqual(runner.last_state.elapsed, 10.0)
        with self.assertRaises(InvalidOperationError):
            runner.with_state(0)


class TestRunnerRun(unittest.TestCase):
    def test_run_terminates(self):
        runner = GeneticRunner(make_population(), rng=1)
        runner.termination.add(MaximumEpochsTermination(5))
        self.assertEqual(runner.status, RunnerStatus.INITIALIZED)
        best = runner.run()
        self.assertEqual(runner.status, RunnerStatus.TERMINATED)
        self.assertEqual(runner.current_epoch, 4)
        self.assertEqual(runner.last_state.epochs_completed, 5)
        self.assertEqual(best.fitness, max(c.fitness for c in runner.population))
        with self.assertRaises(InvalidOperationError):
            runner.run()

    def test_target_fitness_stops_early(self):
        runner = GeneticRunner(make_population(), rng=2)
        runner.termination.add(TargetFitnessTermination(0.0))
        runner.termination.add(MaximumEpochsTermination(50))
        runner.run()
        self.assertEqual(runner.last_state.epochs_completed, 1)

    def test_elitism_never_loses_best(self):
        recorder = RecordingTermination()
        runner = GeneticRunner(make_population(), rng=3)
        runner.survivor_selection.register(ElitistSurvivorSelector(0.2))
        runner.termination.add(recorder).add(MaximumEpochsTermination(30))
        runner.run()
        highest = [state.highest_fitness for state in recorder.states]
        self.assertEqual(len(highest), 30)
        self.assertEqual(highest, sorted(highest))
        self.assertEqual(len(runner.population), 20)

    def test_reproducible_from_seed(self):
        results = []
        for _ in range(2):
            runner = GeneticRunner(make_population(), rng=4)
            runner.parent_selection.register(TournamentParentSelector())
            runner.parent_selection.register(RankParentSelector())
            runner.crossover.register(OnePointCrossover())
            runner.crossover.register(UniformCrossover())
            runner.termination.add(MaximumEpochsTermination(15))
            best = runner.run()
            results.append((best.genes, [c.genes for c in runner.population]))
        self.assertEqual(results[0], results[1])

    def test_adaptive_pursuit_used_for_several_operators(self):
        runner = GeneticRunner(make_population(), rng=5)
        runner.parent_selection.register(TournamentParentSelector())
        runner.parent_selection.register(RankParentSelector())
        runner.termination.add(MaximumEpochsTermination(20))
        runner.run()
        policy = runner.parent_selection.policy
        self.assertIsInstance(policy, AdaptivePursuitPolicy)
        self.assertTrue(all(usage > 0 for usage in policy.usage_counts))
        self.assertAlmostEqual(sum(policy.probabilities), 1.0)

    def test_generational_replaces_population(self):
        population = make_population(size=10)
        runner = GeneticRunner(population, rng=6)
        runner.survivor_selection.register(GenerationalSurvivorSelector())
        runner.crossover.with_crossover_rate(1.0)
        runner.termination.add(MaximumEpochsTermination(1))
        runner.run()
        original = {c.identifier for c in population}
        self.assertEqual(len(runner.population), 10)
        self.assertTrue(all(c.identifier not in original for c in runner.population))

    def test_no_offspring_keeps_population(self):
        population = make_population(size=10)
        runner = GeneticRunner(population, rng=7)
        runner.crossover.with_crossover_rate(0.0)
        runner.termination.add(MaximumEpochsTermination(2))
        with self.assertLogs("GeneticRunner", level="WARNING"):
            runner.run()
        self.assertEqual(list(runner.population), population)
        self.assertTrue(all(c.age == 2 for c in runner.population))

    def test_survivors_age(self):
        population = make_population(size=10)
        runner = GeneticRunner(population, rng=8)
        runner.survivor_selection.register(ElitistSurvivorSelector(0.5))
        runner.termination.add(MaximumEpochsTermination(1))
        runner.run()
        original = {c.identifier for c in population}
        for chromosome in runner.population:
            expected = 1 if chromosome.identifier in original else 0
            self.assertEqual(chromosome.age, expected)

    def test_operator_errors_propagate(self):
        runner = GeneticRunner(
            make_population(type_=BrokenMutation), rng=9, mutation_rate=1.0)
        runner.termination.add(MaximumEpochsTermination(3))
        with self.assertRaises(RuntimeError):
            runner.run()


if __name__ == "__main__":
    unittest.main()
