import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seedforge.rng import derive_seed, hash_from_string, seeded, uniform_float, uniform_int
from seedforge.sampling import fast_cartesian_product, fill_template, get_weighted_indices, product_size
from seedforge.errors import ConfigurationError


class TestRandomSource(unittest.TestCase):

    def draw(self, seed, low, high, n):
        rng = seeded(seed)
        values = []
        for _ in range(n):
            value, rng = uniform_int(low, high, rng)
            values.append(value)
        return values

    def test_same_seed_same_sequence(self):
        self.assertEqual(self.draw(7, 0, 1000, 50), self.draw(7, 0, 1000, 50))
        self.assertNotEqual(self.draw(7, 0, 1000, 50), self.draw(8, 0, 1000, 50))

    def test_bounds_are_inclusive(self):
        values = set(self.draw(3, 5, 7, 300))
        self.assertEqual(values, {5, 6, 7})

    def test_single_value_range(self):
        self.assertEqual(self.draw(1, 4, 4, 3), [4, 4, 4])

    def test_wide_range(self):
        high = 2**128 - 1
        for value in self.draw(11, 0, high, 100):
            self.assertTrue(0 <= value <= high)
        self.assertEqual(self.draw(11, -(2**100), 2**100, 5), self.draw(11, -(2**100), 2**100, 5))

    def test_negative_seed_is_accepted(self):
        self.assertEqual(self.draw(-5, 0, 10, 5), self.draw(-5, 0, 10, 5))

    def test_empty_range_raises(self):
        with self.assertRaises(ValueError):
            uniform_int(3, 2, seeded(0))

    def test_uniform_float(self):
        value, _ = uniform_float(seeded(2))
        self.assertTrue(0 <= value < 1)

    def test_hash_from_string_is_stable(self):
        self.assertEqual(hash_from_string("users.id"), hash_from_string("users.id"))
        self.assertNotEqual(hash_from_string("users.id"), hash_from_string("posts.id"))
        self.assertTrue(0 <= hash_from_string("users.id") < 2**32)

    def test_derive_seed(self):
        self.assertEqual(derive_seed(1, "a", 2), derive_seed(1, "a", 2))
        self.assertNotEqual(derive_seed(1, "a"), derive_seed(2, "a"))


class TestWeightedIndices(unittest.TestCase):

    def test_even_weights(self):
        pool = get_weighted_indices([0.5, 0.5], accuracy=10)
        self.assertEqual(len(pool), 10)
        self.assertEqual(pool.count(0), 5)
        self.assertEqual(pool.count(1), 5)

    def test_ticket_total_never_exceeds_accuracy(self):
        pool = get_weighted_indices([0.29, 0.33, 0.38])
        self.assertLessEqual(len(pool), 100)
        self.assertEqual(pool.count(0), 29)

    def test_weights_must_sum_to_one(self):
        with self.assertRaises(ConfigurationError):
            get_weighted_indices([0.5, 0.6])
        with self.assertRaises(ConfigurationError):
            get_weighted_indices([])

    def test_negative_weight(self):
        with self.assertRaises(ConfigurationError):
            get_weighted_indices([1.5, -0.5])


class TestDecoding(unittest.TestCase):

    def test_cartesian_product_last_set_fastest(self):
        sets = [["a", "b"], ["x", "y", "z"]]
        self.assertEqual(fast_cartesian_product(sets, 0), ["a", "x"])
        self.assertEqual(fast_cartesian_product(sets, 1), ["a", "y"])
        self.assertEqual(fast_cartesian_product(sets, 3), ["b", "x"])
        self.assertEqual(fast_cartesian_product(sets, 5), ["b", "z"])

    def test_every_index_decodes_to_a_distinct_tuple(self):
        sets = [range(3), range(4), range(2)]
        decoded = {tuple(fast_cartesian_product(sets, i)) for i in range(product_size(sets))}
        self.assertEqual(len(decoded), 24)

    def test_fill_template(self):
        self.assertEqual(fill_template("##-##", [1, 2, 3, 4]), "12-34")
        # short value lists are padded on the left
        self.assertEqual(fill_template("###", ["7"], default_value="0"), "007")
        self.assertEqual(fill_template("no placeholders", ["1"]), "no placeholders")


if __name__ == '__main__':
    unittest.main()
