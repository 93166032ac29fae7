import unittest

from numpy.random import Generator, default_rng

from evoflow.optimization.evolutionary.chromosomes import Chromosome
from evoflow.optimization.evolutionary.errors import ConfigurationError
from evoflow.optimization.evolutionary.survivorselection import (
    AgeBasedSurvivorSelector, BoltzmannSurvivorSelector,
    ElitistSurvivorSelector, GenerationalSurvivorSelector,
    RandomEliminationSurvivorSelector, TournamentSurvivorSelector)


class FixedChromosome(Chromosome[float]):
    __slots__ = ()

    def calculate_fitness(self) -> float:
        return self.genes[0]

    def mutate(self, generator: Generator) -> None:
        pass


def make_population(fitness_values) -> list[FixedChromosome]:
    return [FixedChromosome([float(value)]) for value in fitness_values]


class TestElitistSurvivorSelector(unittest.TestCase):
    def test_all_elites_eliminates_nothing(self):
        population = make_population(range(10))
        offspring = make_population(range(100, 110))
        selector = ElitistSurvivorSelector(1.0)
        self.assertEqual(selector.select_for_elimination(population, offspring, default_rng(0)), [])
        self.assertEqual(selector.apply_survivor_selection(population, offspring, default_rng(0)), population)

    def test_no_elites_can_eliminate_fittest(self):
        population = make_population(range(10))
        offspring = make_population(range(10))
        eliminated = ElitistSurvivorSelector(0.0).select_for_elimination(
            population, offspring, default_rng(1))
        self.assertEqual(len(eliminated), 10)
        self.assertIn(population[9], eliminated)

    def test_elites_protected(self):
        population = make_population(range(10))
        offspring = make_population(range(5))
        selector = ElitistSurvivorSelector(0.2)
        for seed in range(10):
            eliminated = selector.select_for_elimination(population, offspring, default_rng(seed))
            self.assertEqual(len(eliminated), 5)
            self.assertTrue(all(c.fitness < 8.0 for c in eliminated))

    def test_elite_count(self):
        selector = ElitistSurvivorSelector(0.15)
        self.assertEqual(selector.elite_count(10), 2)
        self.assertEqual(selector.elite_count(0), 0)
        self.assertAlmostEqual(selector.recommended_offspring_generation_rate, 0.85)
        with self.assertRaises(ConfigurationError):
            ElitistSurvivorSelector(1.1)


class TestGenerationalSurvivorSelector(unittest.TestCase):
    def test_population_replaced(self):
        population = make_population(range(10))
        offspring = make_population(range(4))
        selector = GenerationalSurvivorSelector()
        self.assertEqual(selector.apply_survivor_selection(population, offspring, default_rng(0)), offspring)
        self.assertEqual(selector.apply_survivor_selection(population, [], default_rng(0)), [])
        self.assertEqual(selector.select_for_elimination(population, offspring, default_rng(0)), population)


class TestSurvivorSelection(unittest.TestCase):
    def test_size_preserved_with_few_offspring(self):
        population = make_population(range(10))
        offspring = make_population([50, 60, 70])
        survivors = RandomEliminationSurvivorSelector().apply_survivor_selection(
            population, offspring, default_rng(2))
        self.assertEqual(len(survivors), 10)
        for child in offspring:
            self.assertIn(child, survivors)

    def test_size_preserved_with_many_offspring(self):
        population = make_population(range(4))
        offspring = make_population(range(10, 16))
        survivors = RandomEliminationSurvivorSelector().apply_survivor_selection(
            population, offspring, default_rng(3))
        self.assertEqual([c.fitness for c in survivors], [15.0, 14.0, 13.0, 12.0])

    def test_no_offspring_no_elimination(self):
        population = make_population(range(5))
        for selector in (AgeBasedSurvivorSelector(), TournamentSurvivorSelector(),
                         BoltzmannSurvivorSelector(), RandomEliminationSurvivorSelector()):
            with self.subTest(selector=selector):
                self.assertEqual(selector.select_for_elimination(population, [], default_rng(4)), [])

    def test_distinct_eliminations(self):
        population = make_population(range(10))
        offspring = make_population(range(6))
        for selector in (AgeBasedSurvivorSelector(), TournamentSurvivorSelector(),
                         BoltzmannSurvivorSelector(), RandomEliminationSurvivorSelector(),
                         ElitistSurvivorSelector()):
            with self.subTest(selector=selector):
                eliminated = selector.select_for_elimination(
                    population, offspring, default_rng(5), epoch=2)
                self.assertEqual(len(eliminated), 6)
                self.assertEqual(len({c.identifier for c in eliminated}), 6)

    def test_deterministic_tournament_eliminates_least_fit(self):
        population = make_population([3, 1, 5, 2, 4])
        offspring = make_population([0, 0])
        selector = TournamentSurvivorSelector(5, stochastic=False)
        eliminated = selector.select_for_elimination(population, offspring, default_rng(6))
        self.assertEqual({c.fitness for c in eliminated}, {1.0, 2.0})

    def test_cold_boltzmann_eliminates_least_fit(self):
        population = make_population([3, 1, 5, 2, 4])
        offspring = make_population([0])
        selector = BoltzmannSurvivorSelector(decay_rate=0.0, initial_temperature=1e-6)
        for seed in range(5):
            eliminated = selector.select_for_elimination(population, offspring, default_rng(seed))
            self.assertEqual([c.fitness for c in eliminated], [1.0])

    def test_age_based_prefers_old(self):
        population = make_population(range(10))
        for _ in range(10000):
            population[0].increment_age()
        offspring = make_population([0])
        selector = AgeBasedSurvivorSelector()
        eliminated = [
            selector.select_for_elimination(population, offspring, default_rng(seed))[0]
            for seed in range(20)
        ]
        self.assertGreaterEqual(eliminated.count(population[0]), 18)

    def test_recommended_rates(self):
        self.assertEqual(GenerationalSurvivorSelector().recommended_offspring_generation_rate, 1.0)
        self.assertEqual(AgeBasedSurvivorSelector().recommended_offspring_generation_rate, 0.35)
        self.assertEqual(TournamentSurvivorSelector().recommended_offspring_generation_rate, 0.5)
        self.assertEqual(BoltzmannSurvivorSelector().recommended_offspring_generation_rate, 0.4)
        self.assertEqual(RandomEliminationSurvivorSelector().recommended_offspring_generation_rate, 0.25)


if __name__ == "__main__":
    unittest.main()
