import unittest

from numpy.random import default_rng

from evoflow.optimization.evolutionary.errors import (ConfigurationError,
                                                      InvalidOperationError)
from evoflow.optimization.evolutionary.operators import GeneticOperator
from evoflow.optimization.evolutionary.policies import (AdaptivePursuitPolicy,
                                                        CustomWeightPolicy,
                                                        FirstChoicePolicy,
                                                        RandomChoicePolicy,
                                                        RoundRobinPolicy,
                                                        get_policy)


class NamedOperator(GeneticOperator):
    __slots__ = ("label",)

    def __init__(self, label: str) -> None:
        super().__init__()
        self.label = label

    def __repr__(self) -> str:
        return f"NamedOperator({self.label!r})"


def make_operators(labels: str) -> list[NamedOperator]:
    return [NamedOperator(label) for label in labels]


class TestSimplePolicies(unittest.TestCase):
    def test_round_robin(self):
        policy = RoundRobinPolicy()
        policy.apply_operators(make_operators("ABC"))
        rng = default_rng(0)
        labels = "".join(policy.select_operator(rng).label for _ in range(9))
        self.assertEqual(labels, "ABCABCABC")

    def test_round_robin_reset(self):
        policy = RoundRobinPolicy()
        policy.apply_operators(make_operators("AB"))
        policy.select_operator(default_rng(0))
        policy.apply_operators(make_operators("XY"))
        self.assertEqual(policy.select_operator(default_rng(0)).label, "X")

    def test_random_choice(self):
        policy = RandomChoicePolicy()
        operators = make_operators("ABC")
        policy.apply_operators(operators)
        rng = default_rng(1)
        selected = {policy.select_operator(rng).label for _ in range(100)}
        self.assertEqual(selected, {"A", "B", "C"})

    def test_custom_weight(self):
        operators = make_operators("AB")
        operators[1].custom_weight = 2.0
        policy = CustomWeightPolicy()
        policy.apply_operators(operators)
        rng = default_rng(2)
        selected = {policy.select_operator(rng).label for _ in range(50)}
        self.assertEqual(selected, {"B"})

    def test_first_choice(self):
        policy = FirstChoicePolicy()
        operator = NamedOperator("A")
        policy.apply_operators([operator])
        self.assertIs(policy.select_operator(default_rng(3)), operator)
        with self.assertRaises(ConfigurationError):
            FirstChoicePolicy().apply_operators(make_operators("AB"))

    def test_apply_invalid_operators(self):
        with self.assertRaises(ConfigurationError):
            RoundRobinPolicy().apply_operators(None)
        with self.assertRaises(ConfigurationError):
            RoundRobinPolicy().apply_operators([])

    def test_select_before_apply(self):
        policy = RoundRobinPolicy()
        self.assertFalse(policy.is_applied)
        with self.assertRaises(InvalidOperationError):
            policy.select_operator(default_rng(4))

    def test_select_without_generator(self):
        policies = [
            (RoundRobinPolicy(), make_operators("AB")),
            (RandomChoicePolicy(), make_operators("AB")),
            (CustomWeightPolicy(), make_operators("AB")),
            (FirstChoicePolicy(), make_operators("A")),
            (AdaptivePursuitPolicy(warmup_runs=5), make_operators("AB"))
        ]
        for policy, operators in policies:
            with self.subTest(policy=policy.__class__.__name__):
                policy.apply_operators(operators)
                with self.assertRaises(InvalidOperationError):
                    policy.select_operator(None, 0)

    def test_negative_custom_weight(self):
        with self.assertRaises(ConfigurationError):
            NamedOperator("A").custom_weight = -1.0


class TestAdaptivePursuitPolicy(unittest.TestCase):
    def make_policy(self, **kwargs) -> tuple[AdaptivePursuitPolicy, list[NamedOperator]]:
        parameters = dict(
            learning_rate=0.5,
            minimum_probability=0.1,
            minimum_usage_before_adaptation=0,
            warmup_runs=0
        )
        parameters.update(kwargs)
        policy = AdaptivePursuitPolicy(**parameters)
        operators = make_operators("AB")
        policy.apply_operators(operators)
        return policy, operators

    def test_initial_probabilities_uniform(self):
        policy, _ = self.make_policy()
        self.assertEqual(policy.probabilities, (0.5, 0.5))
        self.assertAlmostEqual(policy.maximum_probability, 0.9)

    def test_rewarded_operator_pursued(self):
        policy, (a, b) = self.make_policy()
        previous = policy.probability_of(a)
        for _ in range(10):
            policy.update_reward(a, 0.0, 1.0)
            current = policy.probability_of(a)
            self.assertGreater(current, previous)
            self.assertAlmostEqual(sum(policy.probabilities), 1.0)
            self.assertGreaterEqual(policy.probability_of(b), 0.1 - 1e-9)
            self.assertLessEqual(current, 0.9 + 1e-9)
            previous = current
        self.assertAlmostEqual(policy.probability_of(a), 0.9, places=2)

    def test_reward_normalised(self):
        policy, (a, _) = self.make_policy(diversity_weight=0.5)
        reward = policy.update_reward(a, 1.0, 3.0, 4.0, 1.0)
        self.assertAlmostEqual(reward, 1.0)
        self.assertAlmostEqual(policy.reward_of(a), 1.0)
        reward = policy.update_reward(a, 1.0, 3.0, 0.0)
        self.assertAlmostEqual(reward, 2.0)

    def test_no_adaptation_before_minimum_usage(self):
        policy, (a, _) = self.make_policy(minimum_usage_before_adaptation=2)
        policy.update_reward(a, 0.0, 1.0)
        self.assertEqual(policy.probabilities, (0.5, 0.5))

    def test_warmup_round_robin(self):
        policy, _ = self.make_policy(warmup_runs=3)
        rng = default_rng(0)
        labels = "".join(
            policy.select_operator(rng, epoch).label for epoch in range(3))
        self.assertEqual(labels, "ABA")
        self.assertEqual(policy.usage_counts, (2, 1))

    def test_selects_by_probability_after_warmup(self):
        policy, (a, _) = self.make_policy(minimum_probability=0.0)
        for _ in range(50):
            policy.update_reward(a, 0.0, 1.0)
        rng = default_rng(1)
        labels = {policy.select_operator(rng, 100).label for _ in range(20)}
        self.assertEqual(labels, {"A"})

    def test_invalid_parameters(self):
        with self.assertRaises(ConfigurationError):
            AdaptivePursuitPolicy(learning_rate=0.0)
        with self.assertRaises(ConfigurationError):
            AdaptivePursuitPolicy(minimum_probability=1.0)
        with self.assertRaises(ConfigurationError):
            AdaptivePursuitPolicy(reward_window_size=0)
        with self.assertRaises(ConfigurationError):
            AdaptivePursuitPolicy(warmup_runs=-1)

    def test_minimum_probability_too_large(self):
        with self.assertRaises(ConfigurationError):
            AdaptivePursuitPolicy(minimum_probability=0.6).apply_operators(
                make_operators("AB"))

    def test_reward_errors(self):
        with self.assertRaises(InvalidOperationError):
            AdaptivePursuitPolicy().update_reward(NamedOperator("A"), 0.0, 1.0)
        policy, _ = self.make_policy()
        with self.assertRaises(ConfigurationError):
            policy.update_reward(NamedOperator("Z"), 0.0, 1.0)


class TestGetPolicy(unittest.TestCase):
    def test_get_policy(self):
        self.assertIsInstance(get_policy("round-robin"), RoundRobinPolicy)
        self.assertIsInstance(get_policy("random"), RandomChoicePolicy)
        self.assertIsInstance(get_policy("custom-weight"), CustomWeightPolicy)
        self.assertIsInstance(get_policy("first-choice"), FirstChoicePolicy)
        policy = get_policy("adaptive-pursuit", learning_rate=0.2)
        self.assertIsInstance(policy, AdaptivePursuitPolicy)
        self.assertEqual(policy.learning_rate, 0.2)

    def test_get_policy_errors(self):
        with self.assertRaises(ConfigurationError):
            get_policy("round-robin", learning_rate=0.2)
        with self.assertRaises(ConfigurationError):
            get_policy("unknown")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
