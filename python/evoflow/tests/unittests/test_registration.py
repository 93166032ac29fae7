import unittest

from evoflow.optimization.evolutionary.crossover import (OnePointCrossover,
                                                         UniformCrossover)
from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError,
    OperatorSelectionPolicyConflictError)
from evoflow.optimization.evolutionary.parentselection import (
    RankParentSelector, RandomParentSelector)
from evoflow.optimization.evolutionary.policies import (AdaptivePursuitPolicy,
                                                        CustomWeightPolicy,
                                                        FirstChoicePolicy,
                                                        RandomChoicePolicy,
                                                        RoundRobinPolicy)
from evoflow.optimization.evolutionary.registration import (
    CrossoverRegistration, ParentSelectionRegistration,
    SurvivorSelectionRegistration)
from evoflow.optimization.evolutionary.survivorselection import (
    ElitistSurvivorSelector, GenerationalSurvivorSelector)


class TestPolicyResolution(unittest.TestCase):
    def test_single_operator_first_choice(self):
        registration = ParentSelectionRegistration()
        registration.register(RankParentSelector())
        self.assertIsInstance(registration.resolve_policy(), FirstChoicePolicy)

    def test_several_operators_adaptive_pursuit(self):
        registration = ParentSelectionRegistration()
        registration.register(RankParentSelector()).register(RandomParentSelector())
        policy = registration.resolve_policy()
        self.assertIsInstance(policy, AdaptivePursuitPolicy)
        self.assertIs(registration.policy, policy)
        self.assertEqual(len(policy.operators), 2)

    def test_custom_weights_custom_weight_policy(self):
        registration = CrossoverRegistration()
        registration.register(OnePointCrossover(), custom_weight=1.0)
        registration.register(UniformCrossover())
        self.assertTrue(registration.has_custom_weights)
        self.assertIsInstance(registration.resolve_policy(), CustomWeightPolicy)

    def test_custom_weights_with_other_policy_conflict(self):
        registration = CrossoverRegistration()
        registration.register(OnePointCrossover().with_custom_weight(2.0))
        registration.with_policy("round-robin")
        with self.assertRaises(OperatorSelectionPolicyConflictError):
            registration.resolve_policy()

    def test_requested_policy(self):
        registration = ParentSelectionRegistration()
        registration.register(RankParentSelector()).register(RandomParentSelector())
        registration.with_policy("random")
        self.assertIsInstance(registration.resolve_policy(), RandomChoicePolicy)
        registration.with_policy(RoundRobinPolicy())
        self.assertIsInstance(registration.resolve_policy(), RoundRobinPolicy)

    def test_duplicate_registration(self):
        registration = ParentSelectionRegistration()
        selector = RankParentSelector()
        registration.register(selector)
        with self.assertRaises(ConfigurationError):
            registration.register(selector)

    def test_unresolved_and_empty(self):
        registration = SurvivorSelectionRegistration()
        self.assertTrue(registration.is_empty)
        with self.assertRaises(InvalidOperationError):
            registration.policy
        with self.assertRaises(ConfigurationError):
            registration.resolve_policy()


class TestPhaseSettings(unittest.TestCase):
    def test_crossover_rate(self):
        registration = CrossoverRegistration()
        self.assertEqual(registration.crossover_rate, 0.9)
        self.assertEqual(registration.with_crossover_rate(0.5).crossover_rate, 0.5)
        with self.assertRaises(ConfigurationError):
            registration.crossover_rate = 1.5
        with self.assertRaises(ConfigurationError):
            CrossoverRegistration(-0.1)

    def test_offspring_generation_rate(self):
        registration = SurvivorSelectionRegistration()
        elitist = ElitistSurvivorSelector(0.2)
        self.assertAlmostEqual(registration.offspring_generation_rate_for(elitist), 0.8)
        registration.with_offspring_generation_rate(0.3)
        self.assertEqual(
            registration.offspring_generation_rate_for(GenerationalSurvivorSelector()),
            0.3)
        with self.assertRaises(ConfigurationError):
            registration.offspring_generation_rate = 0.0
        with self.assertRaises(ConfigurationError):
            registration.offspring_generation_rate = 1.1


if __name__ == "__main__":
    unittest.main()
