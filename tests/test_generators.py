import unittest
import json
import re
import sys
import os
from datetime import date, datetime

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seedforge.base import GenerateArray, GenerateDefault, prepare_generator, resolve_unique
from seedforge.datasets import COUNTRIES, FIRST_NAMES, LAST_NAMES
from seedforge.errors import CapacityError, ConfigurationError, GeneratorStateError
from seedforge.funcs import funcs
from seedforge.numeric import GenerateInt, GenerateUniqueInet
from seedforge.schema import Column
from seedforge.unique import GenerateUniqueInt


def take(gen, count, seed=1):
    gen.init(count, seed)
    return [gen.generate(i) for i in range(count)]


class TestGeneratorContract(unittest.TestCase):

    def test_generate_before_init(self):
        with self.assertRaises(GeneratorStateError):
            funcs.int().generate(0)

    def test_params_are_read_only(self):
        gen = funcs.int(min_value=1, max_value=2)
        with self.assertRaises(TypeError):
            gen.params["min_value"] = 5

    def test_same_seed_same_values(self):
        self.assertEqual(take(funcs.full_name(), 50, 3), take(funcs.full_name(), 50, 3))
        self.assertNotEqual(take(funcs.full_name(), 50, 3), take(funcs.full_name(), 50, 4))

    def test_resolve_unique_swaps_in_unique_version(self):
        gen = GenerateInt(min_value=0, max_value=10)
        gen.is_unique = True
        unique = resolve_unique(gen)
        self.assertIsInstance(unique, GenerateUniqueInt)
        self.assertEqual(unique.params["max_value"], 10)

    def test_explicit_non_unique_on_unique_column(self):
        gen = funcs.int(is_unique=False)
        gen.is_unique = True
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)

    def test_prepare_generator_for_unique_column(self):
        column = Column("code", "integer", is_unique=True)
        gen = prepare_generator(funcs.int(min_value=0, max_value=99), column)
        values = take(gen, 100)
        self.assertEqual(sorted(values), list(range(100)))

    def test_prepare_generator_wraps_arrays(self):
        column = Column("tags", "text", array_size=3)
        gen = prepare_generator(funcs.string(), column)
        self.assertIsInstance(gen, GenerateArray)
        for value in take(gen, 5):
            self.assertEqual(len(value), 3)

    def test_default(self):
        self.assertEqual(take(GenerateDefault(default_value="x"), 3), ["x", "x", "x"])

    def test_custom(self):
        def init(gen, count, seed):
            gen.state.offset = seed

        gen = funcs.custom(generate=lambda gen, i: gen.state.offset + i, init=init)
        self.assertEqual(take(gen, 3, seed=10), [10, 11, 12])


class TestNumericGenerators(unittest.TestCase):

    def test_int_bounds(self):
        values = take(funcs.int(min_value=-3, max_value=3), 200)
        self.assertTrue(all(-3 <= v <= 3 for v in values))

    def test_int_default_range(self):
        values = take(funcs.int(), 200)
        self.assertTrue(all(-1000 <= v <= 1000 for v in values))

    def test_big_int_bounds(self):
        low, high = 2**70, 2**70 + 5
        values = take(funcs.int(min_value=low, max_value=high), 50)
        self.assertTrue(all(low <= v <= high for v in values))

    def test_int_min_greater_than_max(self):
        with self.assertRaises(ConfigurationError):
            funcs.int(min_value=5, max_value=1).init(1, 1)

    def test_number_precision(self):
        for value in take(funcs.number(min_value=0, max_value=1, precision=10), 100):
            self.assertTrue(0 <= value <= 1)
            self.assertAlmostEqual(value * 10, round(value * 10))

    def test_unique_number(self):
        values = take(funcs.unique_number(min_value=0, max_value=10, precision=10), 101)
        self.assertEqual(len(set(values)), 101)
        with self.assertRaises(CapacityError):
            funcs.unique_number(min_value=0, max_value=1, precision=10).init(12, 1)

    def test_unique_number_needs_positive_precision(self):
        with self.assertRaises(ConfigurationError):
            funcs.unique_number(min_value=0, max_value=10, precision=0).init(5, 1)

    def test_primary_key(self):
        self.assertEqual(take(funcs.int_primary_key(), 4), [1, 2, 3, 4])
        with self.assertRaises(CapacityError):
            funcs.int_primary_key(max_value=3).init(4, 1)

    def test_boolean(self):
        self.assertEqual(set(take(funcs.boolean(), 100)), {True, False})

    def test_bit_string(self):
        values = take(funcs.unique_bit_string(dimensions=4), 16)
        self.assertEqual(len(set(values)), 16)
        self.assertTrue(all(re.fullmatch(r"[01]{4}", v) for v in values))
        with self.assertRaises(CapacityError):
            funcs.unique_bit_string(dimensions=4).init(17, 1)

    def test_inet(self):
        for value in take(funcs.inet(include_cidr=False), 20):
            parts = value.split(".")
            self.assertEqual(len(parts), 4)
            self.assertTrue(all(0 <= int(p) <= 255 for p in parts))
        for value in take(funcs.inet(ip_address="ipv6"), 20):
            address, prefix = value.split("/")
            self.assertEqual(len(address.split(":")), 8)
            self.assertTrue(0 <= int(prefix) <= 128)

    def test_unique_inet(self):
        values = take(funcs.unique_inet(), 500)
        self.assertEqual(len(set(values)), 500)
        gen = GenerateUniqueInet(ip_address="ipv6", include_cidr=False)
        self.assertEqual(gen.max_unique_count(), 65536 ** 8)

    def test_bad_ip_address(self):
        with self.assertRaises(ConfigurationError):
            funcs.inet(ip_address="ipv5").init(1, 1)


class TestTemporalGenerators(unittest.TestCase):

    def test_date_range(self):
        values = take(funcs.date(min_date="2020-01-01", max_date="2020-01-31"), 100)
        self.assertTrue(all(date(2020, 1, 1) <= v <= date(2020, 1, 31) for v in values))

    def test_date_as_string(self):
        gen = funcs.date()
        gen.data_type = "string"
        for value in take(gen, 10):
            self.assertRegex(value, r"^\d{4}-\d{2}-\d{2}$")

    def test_date_bad_order(self):
        with self.assertRaises(ConfigurationError):
            funcs.date(min_date="2021-01-01", max_date="2020-01-01").init(1, 1)

    def test_bad_date(self):
        with self.assertRaises(ConfigurationError):
            funcs.date(min_date="yesterday").init(1, 1)

    def test_timestamp(self):
        values = take(funcs.timestamp(min="2024-01-01T00:00:00Z", max="2024-01-02T00:00:00Z"), 50)
        for value in values:
            self.assertIsInstance(value, datetime)
            self.assertTrue(datetime(2024, 1, 1) <= value <= datetime(2024, 1, 2))

    def test_timestamp_int(self):
        seconds = take(funcs.timestamp_int(), 10)
        millis = take(funcs.timestamp_int(unit_of_time="milliseconds"), 10)
        self.assertEqual([m // 1000 for m in millis], seconds)
        with self.assertRaises(ConfigurationError):
            funcs.timestamp_int(unit_of_time="hours").init(1, 1)

    def test_time(self):
        for value in take(funcs.time(min="08:00", max="09:00:00Z"), 50):
            self.assertTrue("08:00:00" <= value <= "09:00:00")
        with self.assertRaises(ConfigurationError):
            funcs.time(min="8 o'clock").init(1, 1)

    def test_year(self):
        gen = funcs.year()
        gen.data_type = "number"
        self.assertTrue(all(2014 <= v <= 2034 for v in take(gen, 50)))
        self.assertTrue(all(isinstance(v, str) for v in take(funcs.year(), 5)))

    def test_interval(self):
        for value in take(funcs.interval(fields="day to second"), 20):
            self.assertEqual([p for p in value.split()[1::2]], ["day", "hour", "minute", "second"])

    def test_unique_interval(self):
        values = take(funcs.unique_interval(fields="year to month"), 78)
        self.assertEqual(len(set(values)), 78)
        with self.assertRaises(CapacityError):
            funcs.unique_interval(fields="year").init(7, 1)

    def test_interval_fields_wrong_order(self):
        with self.assertRaises(ConfigurationError):
            funcs.interval(fields="second to day").init(1, 1)


class TestValueGenerators(unittest.TestCase):

    def test_values_from_array(self):
        values = take(funcs.values_from_array(values=["a", "b", "c"]), 100)
        self.assertEqual(set(values), {"a", "b", "c"})

    def test_unique_values_from_array(self):
        gen = funcs.values_from_array(values=list(range(10)), is_unique=True)
        self.assertEqual(sorted(take(gen, 10)), list(range(10)))

    def test_unique_not_null_needs_enough_values(self):
        gen = funcs.values_from_array(values=[1, 2])
        gen.is_unique = True
        gen.not_null = True
        with self.assertRaises(ConfigurationError):
            gen.init(3, 1)

    def test_unique_nullable_runs_out_with_nulls(self):
        gen = funcs.values_from_array(values=[1, 2])
        gen.is_unique = True
        self.assertEqual(sorted(take(gen, 4), key=lambda v: (v is None, v)), [1, 2, None, None])

    def test_weighted_values(self):
        gen = funcs.values_from_array(values=[
            {"weight": 0.9, "values": ["common"]},
            {"weight": 0.1, "values": ["rare"]},
        ])
        values = take(gen, 1000)
        self.assertGreater(values.count("common"), values.count("rare"))
        self.assertEqual(set(values), {"common", "rare"})

    def test_weighted_values_empty_group(self):
        gen = funcs.values_from_array(values=[{"weight": 1, "values": []}])
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)

    def test_max_repeated_values_count(self):
        gen = funcs.values_from_array(values=["a", "b", "c"])
        gen.max_repeated_values_count = 2
        gen.not_null = True
        values = take(gen, 6)
        self.assertEqual(sorted(values), ["a", "a", "b", "b", "c", "c"])

    def test_weighted_repeat_budget_too_small_for_not_null(self):
        gen = funcs.values_from_array(values=["a", "b", "c"])
        gen.max_repeated_values_count = [{"weight": 1, "count": 2}]
        gen.not_null = True
        with self.assertRaises(ConfigurationError):
            gen.init(7, 1)

    def test_repeat_budget_too_small_for_not_null(self):
        gen = funcs.values_from_array(values=["a"])
        gen.max_repeated_values_count = 2
        gen.not_null = True
        with self.assertRaises(ConfigurationError):
            gen.init(3, 1)

    def test_enum(self):
        self.assertTrue(set(take(funcs.enum(enum_values=["x", "y"]), 20)) <= {"x", "y"})

    def test_string_length(self):
        for value in take(funcs.string(), 100):
            self.assertTrue(7 <= len(value) <= 20)
            self.assertTrue(value.isalnum())

    def test_unique_string_fits_column(self):
        gen = funcs.unique_string()
        gen.type_params = {"length": 8}
        values = take(gen, 5000)
        self.assertEqual(len(set(values)), 5000)
        self.assertTrue(all(len(v) <= 8 for v in values))

    def test_unique_string_too_short_column(self):
        gen = funcs.unique_string()
        gen.type_params = {"length": 5}
        with self.assertRaises(ConfigurationError):
            gen.init(100000, 1)

    def test_uuid(self):
        values = take(funcs.uuid(), 100)
        self.assertEqual(len(set(values)), 100)
        for value in values:
            self.assertRegex(value, r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

    def test_lorem_ipsum(self):
        for value in take(funcs.lorem_ipsum(sentences_count=2), 10):
            self.assertEqual(value.count("."), 2)

    def test_lorem_ipsum_column_too_short(self):
        gen = funcs.lorem_ipsum()
        gen.type_params = {"length": 10}
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)

    def test_json(self):
        for document in take(funcs.json(), 20):
            self.assertIn("email", document)
            self.assertIn("visitedCountries", document)
            self.assertEqual(len(set(document["visitedCountries"])), len(document["visitedCountries"]))
            self.assertEqual("salary" in document, document["hasJob"])

    def test_json_string(self):
        gen = funcs.json()
        gen.data_type = "string"
        self.assertIsInstance(json.loads(take(gen, 1)[0]), dict)

    def test_weighted_random(self):
        gen = funcs.weighted_random([
            {"weight": 0.5, "value": funcs.default(default_value="left")},
            {"weight": 0.5, "value": funcs.default(default_value="right")},
        ])
        self.assertEqual(set(take(gen, 100)), {"left", "right"})

    def test_weighted_random_unique_children(self):
        gen = funcs.weighted_random([
            {"weight": 0.3, "value": funcs.int(min_value=0, max_value=999)},
            {"weight": 0.7, "value": funcs.int(min_value=1000, max_value=1999)},
        ])
        gen.is_unique = True
        values = take(gen, 500)
        self.assertEqual(len(set(values)), 500)

    def test_weighted_random_bad_weights(self):
        gen = funcs.weighted_random([{"weight": 0.3, "value": funcs.int()}])
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)


class TestPeopleAndPlaces(unittest.TestCase):

    def test_names_come_from_dataset(self):
        self.assertTrue(all(v in FIRST_NAMES for v in take(funcs.first_name(), 50)))
        self.assertTrue(all(v in LAST_NAMES for v in take(funcs.last_name(), 50)))

    def test_unique_first_name_capacity(self):
        with self.assertRaises(CapacityError):
            funcs.unique_first_name().init(len(FIRST_NAMES) + 1, 1)

    def test_unique_country(self):
        values = take(funcs.unique_country(), len(COUNTRIES))
        self.assertEqual(sorted(values), sorted(COUNTRIES))

    def test_unique_full_name(self):
        values = take(funcs.unique_full_name(), 2000)
        self.assertEqual(len(set(values)), 2000)

    def test_dataset_generator_checks_length(self):
        gen = funcs.country()
        gen.type_params = {"length": 3}
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)

    def test_email(self):
        values = take(funcs.email(), 1000)
        self.assertEqual(len(set(values)), 1000)
        for value in values[:20]:
            self.assertRegex(value, r"^[a-z]+_[^@\s]+@[\w.-]+$")

    def test_phone_number_template(self):
        values = take(funcs.phone_number(template="+1 (###) ###"), 1000)
        self.assertEqual(len(set(values)), 1000)
        self.assertTrue(all(re.fullmatch(r"\+1 \(\d{3}\) \d{3}", v) for v in values))
        with self.assertRaises(CapacityError):
            funcs.phone_number(template="##").init(101, 1)

    def test_phone_number_prefixes(self):
        gen = funcs.phone_number(prefixes=["+1 555", "+44 20"], generated_digits_numbers=[2, 3])
        values = take(gen, 1100)
        self.assertEqual(len(set(values)), 1100)
        with self.assertRaises(CapacityError):
            funcs.phone_number(prefixes=["+1 555"], generated_digits_numbers=1).init(11, 1)

    def test_phone_number_duplicate_prefixes(self):
        with self.assertRaises(ConfigurationError):
            funcs.phone_number(prefixes=["+1", "+1"]).init(1, 1)

    def test_default_phone_numbers(self):
        self.assertEqual(len(set(take(funcs.phone_number(), 500))), 500)

    def test_unique_city_and_company(self):
        self.assertEqual(len(set(take(funcs.unique_city(), 500))), 500)
        self.assertEqual(len(set(take(funcs.unique_company_name(), 500))), 500)

    def test_unique_street_address(self):
        values = take(funcs.unique_street_address(), 2000)
        self.assertEqual(len(set(values)), 2000)
        self.assertTrue(all(re.match(r"^\d+ ", v) for v in values))

    def test_postcodes(self):
        for value in take(funcs.postcode(), 50):
            self.assertRegex(value, r"^\d{5}(-\d{4})?$")
        values = take(funcs.unique_postcode(), 3000)
        self.assertEqual(len(set(values)), 3000)

    def test_job_title_and_state(self):
        self.assertTrue(all(isinstance(v, str) and v for v in take(funcs.job_title(), 10)))
        self.assertTrue(all(isinstance(v, str) and v for v in take(funcs.state(), 10)))


class TestGeometryGenerators(unittest.TestCase):

    def test_point_formats(self):
        gen = funcs.point(min_x_value=0, max_x_value=1, min_y_value=0, max_y_value=1)
        gen.data_type = "object"
        for value in take(gen, 20):
            self.assertTrue(0 <= value["x"] <= 1 and 0 <= value["y"] <= 1)
        gen = funcs.point()
        gen.data_type = "string"
        self.assertRegex(take(gen, 1)[0], r"^\[-?[\d.]+, -?[\d.]+\]$")

    def test_unique_point(self):
        gen = funcs.unique_point(min_x_value=0, max_x_value=1, min_y_value=0, max_y_value=1)
        gen.data_type = "array"
        values = take(gen, 121)
        self.assertEqual(len({tuple(v) for v in values}), 121)
        with self.assertRaises(CapacityError):
            funcs.unique_point(min_x_value=0, max_x_value=1, min_y_value=0, max_y_value=1).init(122, 1)

    def test_line_never_degenerate(self):
        gen = funcs.line(min_a_value=0, max_a_value=0.1, min_b_value=0, max_b_value=0.1)
        gen.data_type = "array"
        for a, b, _ in take(gen, 100):
            self.assertFalse(a == 0 and b == 0)

    def test_line_both_fixed_at_zero(self):
        gen = funcs.line(min_a_value=0, max_a_value=0, min_b_value=0, max_b_value=0)
        with self.assertRaises(ConfigurationError):
            gen.init(1, 1)

    def test_unique_line(self):
        gen = funcs.unique_line(min_a_value=0, max_a_value=0.1, min_b_value=0, max_b_value=0.1,
                                min_c_value=0, max_c_value=0.1)
        gen.data_type = "array"
        # 2 * 2 * 2 combinations minus the two with a = b = 0
        values = take(gen, 6)
        self.assertEqual(len({tuple(v) for v in values}), 6)
        self.assertTrue(all(not (a == 0 and b == 0) for a, b, _ in values))

    def test_vector(self):
        for value in take(funcs.vector(dimensions=4, min_value=-1, max_value=1), 10):
            self.assertEqual(len(value), 4)
            self.assertTrue(all(-1 <= v <= 1 for v in value))

    def test_unique_vector(self):
        values = take(funcs.unique_vector(dimensions=2, min_value=0, max_value=1, decimal_places=0), 4)
        self.assertEqual(sorted(tuple(v) for v in values), [(0, 0), (0, 1), (1, 0), (1, 1)])


if __name__ == '__main__':
    unittest.main()
