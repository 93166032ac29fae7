import unittest
from collections import Counter

from numpy.random import default_rng

from evoflow.optimization.evolutionary.errors import (ConfigurationError,
                                                      InvalidOperationError)
from evoflow.optimization.evolutionary.roulettewheel import \
    WeightedRouletteWheel


class TestWeightedRouletteWheel(unittest.TestCase):
    def test_spin_frequencies(self):
        wheel = WeightedRouletteWheel("abc", [0.1, 0.6, 0.3])
        rng = default_rng(0)
        counts = Counter(wheel.spin(rng) for _ in range(10000))
        for item, expected in zip("abc", [0.1, 0.6, 0.3]):
            self.assertAlmostEqual(counts[item] / 10000, expected, delta=0.05)
        self.assertEqual(len(wheel), 3)

    def test_probabilities(self):
        wheel = WeightedRouletteWheel("abcd", [1.0, 2.0, 3.0, 4.0])
        for actual, expected in zip(wheel.probabilities, [0.1, 0.2, 0.3, 0.4]):
            self.assertAlmostEqual(actual, expected)

    def test_spin_many_no_repeats(self):
        wheel = WeightedRouletteWheel(range(10), [1.0] * 10)
        drawn = wheel.spin_many(default_rng(1), 10)
        self.assertEqual(sorted(drawn), list(range(10)))
        self.assertEqual(len(wheel), 0)

    def test_spin_and_readjust_renormalises(self):
        wheel = WeightedRouletteWheel("ab", [1.0, 3.0])
        wheel.spin_and_readjust(default_rng(2))
        self.assertEqual(len(wheel), 1)
        self.assertEqual(wheel.probabilities, (1.0,))

    def test_single_item(self):
        wheel = WeightedRouletteWheel(["only"], [5.0])
        rng = default_rng(3)
        self.assertEqual([wheel.spin(rng) for _ in range(5)], ["only"] * 5)

    def test_single_zero_weight_item(self):
        wheel = WeightedRouletteWheel(["only"], [0.0])
        rng = default_rng(4)
        self.assertEqual(wheel.spin(rng), "only")
        self.assertEqual(wheel.spin_and_readjust(rng), "only")
        self.assertEqual(len(wheel), 0)

    def test_zero_weights_are_uniform(self):
        wheel = WeightedRouletteWheel("abc", [0.0, 0.0, 0.0])
        for probability in wheel.probabilities:
            self.assertAlmostEqual(probability, 1.0 / 3.0)
        rng = default_rng(4)
        self.assertEqual(set(wheel.spin(rng) for _ in range(300)), set("abc"))

    def test_zero_weight_item_never_drawn(self):
        wheel = WeightedRouletteWheel("ab", [0.0, 1.0])
        rng = default_rng(5)
        self.assertEqual(set(wheel.spin(rng) for _ in range(200)), {"b"})

    def test_uniform_and_weight_function(self):
        self.assertEqual(WeightedRouletteWheel.uniform("ab").weights, (1.0, 1.0))
        wheel = WeightedRouletteWheel.from_weight_function([1, 2, 3], lambda x: x * 2)
        self.assertEqual(wheel.weights, (2.0, 4.0, 6.0))

    def test_invalid_construction(self):
        with self.assertRaises(ConfigurationError):
            WeightedRouletteWheel([], [])
        with self.assertRaises(ConfigurationError):
            WeightedRouletteWheel("ab", [1.0])
        with self.assertRaises(ConfigurationError):
            WeightedRouletteWheel("ab", [1.0, -1.0])
        with self.assertRaises(ConfigurationError):
            WeightedRouletteWheel("ab", [1.0, float("nan")])

    def test_invalid_spins(self):
        wheel = WeightedRouletteWheel("ab", [1.0, 1.0])
        with self.assertRaises(InvalidOperationError):
            wheel.spin(None)
        with self.assertRaises(InvalidOperationError):
            wheel.spin_many(default_rng(6), 3)
        wheel.spin_many(default_rng(6), 2)
        with self.assertRaises(InvalidOperationError):
            wheel.spin(default_rng(6))


if __name__ == "__main__":
    unittest.main()
