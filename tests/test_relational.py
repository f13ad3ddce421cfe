import unittest
from collections import Counter
import polars as pl
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seedforge.config import SeedOptions
from seedforge.errors import CapacityError, ConfigurationError, CyclicDependencyError, UnsupportedColumnError
from seedforge.funcs import funcs
from seedforge.relational import SeedEngine
from seedforge.schema import Column
from seedforge.sinks import DataSink, MemorySink


class RecordingSink(DataSink):
    """Accepts inserts but can't update rows."""

    def __init__(self):
        self.inserted = []

    def insert(self, table, rows, overriding_identity=False):
        self.inserted.append((table, len(rows)))
        return len(rows)


def blog_engine(sink=None):
    engine = SeedEngine(sink=sink)
    engine.add_table("users", [
        Column("id", "integer", primary=True),
        Column("email", "varchar", is_unique=True, type_params={"length": 255}),
        Column("first_name", "varchar"),
    ])
    engine.add_table("posts", [
        Column("id", "integer", primary=True),
        Column("user_id", "integer", not_null=True),
        Column("title", "text"),
    ])
    engine.add_relationship("posts", "user_id", "users", "id")
    return engine


DRY_RUN = SeedOptions(seed=1, insert_data_in_db=False)


class TestSeedEngine(unittest.TestCase):

    def test_users_and_posts(self):
        result = blog_engine().seed(DRY_RUN, {"users": {"count": 3}, "posts": {"count": 10}})
        self.assertEqual(result.order, ["users", "posts"])
        self.assertEqual(len(result["users"]), 3)
        self.assertEqual(len(result["posts"]), 10)
        user_ids = {row["id"] for row in result["users"]}
        self.assertEqual(user_ids, {1, 2, 3})
        for post in result["posts"]:
            self.assertIn(post["user_id"], user_ids)
        self.assertEqual(len({row["email"] for row in result["users"]}), 3)

    def test_rows_keep_column_order(self):
        result = blog_engine().seed(DRY_RUN, {"users": {"count": 1}, "posts": {"count": 1}})
        self.assertEqual(list(result["posts"][0]), ["id", "user_id", "title"])

    def test_deterministic(self):
        first = blog_engine().seed(DRY_RUN)
        second = blog_engine().seed(DRY_RUN)
        self.assertEqual(first.tables, second.tables)
        other = blog_engine().seed(SeedOptions(seed=2, insert_data_in_db=False))
        self.assertNotEqual(first["users"], other["users"])

    def test_default_counts(self):
        result = blog_engine().seed(DRY_RUN)
        self.assertEqual(result.counts, {"users": 10, "posts": 10})
        result = blog_engine().seed(SeedOptions(count=4, insert_data_in_db=False))
        self.assertEqual(result.counts, {"users": 4, "posts": 4})

    def test_with_fan_out(self):
        result = blog_engine().seed(DRY_RUN, {"users": {"count": 2, "with": {"posts": 3}}})
        self.assertEqual(result.counts["posts"], 6)
        per_user = Counter(post["user_id"] for post in result["posts"])
        self.assertEqual(per_user, {1: 3, 2: 3})

    def test_weighted_fan_out(self):
        fan_out = [{"weight": 0.5, "count": 1}, {"weight": 0.5, "count": [2, 3]}]
        result = blog_engine().seed(DRY_RUN, {"users": {"count": 10, "with": {"posts": fan_out}}})
        self.assertTrue(10 <= result.counts["posts"] <= 30)
        per_user = Counter(post["user_id"] for post in result["posts"])
        self.assertEqual(set(per_user), set(range(1, 11)))
        self.assertTrue(all(n in (1, 2, 3) for n in per_user.values()))
        again = blog_engine().seed(DRY_RUN, {"users": {"count": 10, "with": {"posts": fan_out}}})
        self.assertEqual(result["posts"], again["posts"])

    def test_explicit_count_beats_with(self):
        result = blog_engine().seed(DRY_RUN, {
            "users": {"count": 2, "with": {"posts": 3}},
            "posts": {"count": 5},
        })
        self.assertEqual(result.counts["posts"], 5)

    def test_explicit_count_above_fan_out_fails_before_insert(self):
        sink = MemorySink()
        with self.assertRaises(ConfigurationError):
            blog_engine(sink).seed(SeedOptions(seed=1), {
                "users": {"count": 3, "with": {"posts": 2}},
                "posts": {"count": 10},
            })
        self.assertEqual(dict(sink.tables), {})

    def test_explicit_count_above_weighted_fan_out(self):
        sink = MemorySink()
        with self.assertRaises(ConfigurationError):
            blog_engine(sink).seed(SeedOptions(seed=1), {
                "users": {"count": 3, "with": {"posts": [{"weight": 1, "count": 2}]}},
                "posts": {"count": 10},
            })
        self.assertEqual(dict(sink.tables), {})

    def test_explicit_count_within_weighted_fan_out(self):
        result = blog_engine().seed(DRY_RUN, {
            "users": {"count": 3, "with": {"posts": [{"weight": 1, "count": [2, 3]}]}},
            "posts": {"count": 6},
        })
        user_ids = [post["user_id"] for post in result["posts"]]
        self.assertEqual(len(user_ids), 6)
        self.assertNotIn(None, user_ids)
        self.assertTrue(all(n <= 3 for n in Counter(user_ids).values()))

    def test_with_requires_a_relation(self):
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {"posts": {"with": {"users": 2}}})
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {"users": {"with": {"users": 2}}})

    def test_unknown_refinement_table(self):
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {"comments": {"count": 1}})

    def test_refined_columns(self):
        engine = blog_engine()
        result = engine.seed(DRY_RUN, {
            "users": {"count": 5, "columns": {"first_name": funcs.default(default_value="Ann")}},
            "posts": {"count": 5, "columns": {"title": False}},
        })
        self.assertTrue(all(row["first_name"] == "Ann" for row in result["users"]))
        self.assertTrue(all(row["title"] is None for row in result["posts"]))

    def test_null_refinement_on_not_null_column(self):
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {"posts": {"columns": {"user_id": False}}})

    def test_refinement_for_unknown_column(self):
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {"users": {"columns": {"age": funcs.int()}}})

    def test_generator_shared_between_columns(self):
        shared = funcs.string()
        with self.assertRaises(ConfigurationError):
            blog_engine().seed(DRY_RUN, {
                "users": {"columns": {"first_name": shared}},
                "posts": {"columns": {"title": shared}},
            })

    def test_static_default(self):
        engine = SeedEngine()
        engine.add_table("accounts", [
            Column("id", "integer", primary=True),
            Column("status", "text", default="active", has_default=True),
        ])
        result = engine.seed(DRY_RUN, {"accounts": {"count": 4}})
        self.assertEqual([row["status"] for row in result["accounts"]], ["active"] * 4)

    def test_unique_constraint_marks_column_unique(self):
        engine = SeedEngine()
        engine.add_table("codes", [Column("code", "integer"), Column("label", "text")],
                         unique_constraints=[["code"]])
        result = engine.seed(DRY_RUN, {"codes": {"count": 50}})
        self.assertEqual(len({row["code"] for row in result["codes"]}), 50)

    def test_composite_unique_constraint(self):
        engine = SeedEngine()
        engine.add_table("memberships", [
            Column("id", "integer", primary=True),
            Column("group_code", "integer"),
            Column("role", "text", enum_values=["owner", "admin", "member"]),
        ], unique_constraints=[["group_code", "role"]])
        result = engine.seed(DRY_RUN, {"memberships": {"count": 30}})
        pairs = {(row["group_code"], row["role"]) for row in result["memberships"]}
        self.assertEqual(len(pairs), 30)

    def test_column_in_two_composite_constraints(self):
        engine = SeedEngine()
        engine.add_table("t", [Column("a", "integer"), Column("b", "integer"), Column("c", "integer")],
                         unique_constraints=[["a", "b"], ["b", "c"]])
        with self.assertRaises(ConfigurationError):
            engine.seed(DRY_RUN)

    def test_composite_key_with_foreign_keys_is_not_enforced(self):
        engine = blog_engine()
        engine.add_table("groups", [Column("id", "integer", primary=True)])
        engine.add_table("user_groups", [
            Column("user_id", "integer"),
            Column("group_id", "integer"),
        ], primary_keys=["user_id", "group_id"])
        engine.add_relationship("user_groups", "user_id", "users", "id")
        engine.add_relationship("user_groups", "group_id", "groups", "id")
        with self.assertLogs("seedforge.relational", level="WARNING"):
            result = engine.seed(DRY_RUN, {"users": {"count": 3}, "groups": {"count": 2}})
        self.assertEqual(result.order.index("user_groups"), 3)
        for row in result["user_groups"]:
            self.assertIn(row["user_id"], {1, 2, 3})
            self.assertIn(row["group_id"], {1, 2})

    def test_unique_foreign_key(self):
        engine = blog_engine()
        engine.add_table("profiles", [
            Column("id", "integer", primary=True),
            Column("user_id", "integer", is_unique=True, not_null=True),
        ])
        engine.add_relationship("profiles", "user_id", "users", "id")
        result = engine.seed(DRY_RUN, {"users": {"count": 3}, "profiles": {"count": 3}})
        self.assertEqual(sorted(row["user_id"] for row in result["profiles"]), [1, 2, 3])
        with self.assertRaises(ConfigurationError):
            engine.seed(DRY_RUN, {"users": {"count": 3}, "profiles": {"count": 4}})

    def test_self_relation(self):
        engine = SeedEngine()
        engine.add_table("employees", [
            Column("id", "integer", primary=True),
            Column("manager_id", "integer"),
        ])
        engine.add_relationship("employees", "manager_id", "employees", "id")
        result = engine.seed(DRY_RUN, {"employees": {"count": 20}})
        ids = {row["id"] for row in result["employees"]}
        managers = [row["manager_id"] for row in result["employees"] if row["manager_id"] is not None]
        self.assertTrue(managers)
        self.assertTrue(all(m in ids for m in managers))

    def test_missing_parent_table(self):
        engine = SeedEngine()
        engine.add_table("posts", [
            Column("id", "integer", primary=True),
            Column("author_id", "integer"),
        ])
        engine.add_relationship("posts", "author_id", "authors", "id")
        with self.assertLogs("seedforge.relational", level="WARNING"):
            result = engine.seed(DRY_RUN, {"posts": {"count": 3}})
        self.assertEqual([row["author_id"] for row in result["posts"]], [None, None, None])

    def test_missing_parent_table_not_null(self):
        engine = SeedEngine()
        engine.add_table("posts", [
            Column("id", "integer", primary=True),
            Column("author_id", "integer", not_null=True),
        ])
        engine.add_relationship("posts", "author_id", "authors", "id")
        with self.assertRaises(ConfigurationError):
            engine.seed(DRY_RUN)

    def test_unsupported_column_fails_before_insert(self):
        sink = MemorySink()
        engine = blog_engine(sink)
        engine.add_table("files", [Column("id", "integer", primary=True), Column("data", "bytea")])
        with self.assertRaises(UnsupportedColumnError) as ctx:
            engine.seed(SeedOptions(seed=1))
        self.assertEqual(ctx.exception.column, "data")
        self.assertEqual(dict(sink.tables), {})

    def test_capacity_error_fails_before_insert(self):
        sink = MemorySink()
        engine = blog_engine(sink)
        with self.assertRaises(CapacityError):
            engine.seed(SeedOptions(seed=1), {
                "posts": {"count": 5000, "columns": {"title": funcs.unique_country()}},
            })
        self.assertEqual(dict(sink.tables), {})


class TestSeedEngineStorage(unittest.TestCase):

    def test_inserts_into_sink(self):
        sink = MemorySink()
        result = blog_engine(sink).seed(SeedOptions(seed=1), {"users": {"count": 3}, "posts": {"count": 7}})
        self.assertEqual(len(sink.tables["users"]), 3)
        self.assertEqual(len(sink.tables["posts"]), 7)
        # nothing is kept once every dependant is done
        self.assertEqual(result.tables, {})

    def test_preserve_data(self):
        sink = MemorySink()
        result = blog_engine(sink).seed(SeedOptions(seed=1, preserve_data=True), {"users": {"count": 3}})
        self.assertEqual(result["users"], sink.tables["users"])

    def test_batches_respect_placeholder_limit(self):
        sink = MemorySink(placeholder_limit=10)
        blog_engine(sink).seed(SeedOptions(seed=1), {"users": {"count": 10}, "posts": {"count": 2}})
        # three columns per row, so at most three rows per insert
        self.assertEqual(sink.batches["users"], [3, 3, 3, 1])
        self.assertEqual(sink.batches["posts"], [2])

    def test_batch_size_option(self):
        sink = MemorySink()
        blog_engine(sink).seed(SeedOptions(seed=1, batch_size=4), {"users": {"count": 10}})
        self.assertEqual(sink.batches["users"], [4, 4, 2])

    def test_unlimited_placeholders(self):
        sink = MemorySink(placeholder_limit=None)
        blog_engine(sink).seed(SeedOptions(seed=1), {"users": {"count": 25}})
        self.assertEqual(sink.batches["users"], [25])

    def test_identity_override(self):
        sink = MemorySink()
        engine = SeedEngine(sink=sink)
        engine.add_table("tokens", [Column("id", "integer", primary=True, generated_identity="always")])
        engine.add_table("plain", [Column("id", "integer", primary=True, generated_identity="by default")])
        engine.seed(SeedOptions(seed=1, count=2))
        self.assertEqual(sink.identity_overrides, {"tokens"})

    def test_to_frames(self):
        result = blog_engine().seed(DRY_RUN, {"users": {"count": 3}, "posts": {"count": 5}})
        frames = result.to_frames()
        self.assertIsInstance(frames["posts"], pl.DataFrame)
        self.assertEqual(frames["posts"].height, 5)
        self.assertEqual(frames["users"].columns, ["id", "email", "first_name"])


class TestCyclicRelations(unittest.TestCase):

    def cyclic_engine(self, sink=None, not_null=False):
        engine = SeedEngine(sink=sink)
        engine.add_table("teams", [
            Column("id", "integer", primary=True),
            Column("captain_id", "integer", not_null=not_null),
        ])
        engine.add_table("players", [
            Column("id", "integer", primary=True),
            Column("team_id", "integer", not_null=not_null),
        ])
        engine.add_relationship("teams", "captain_id", "players", "id")
        engine.add_relationship("players", "team_id", "teams", "id")
        return engine

    def test_back_fill_in_memory(self):
        result = self.cyclic_engine().seed(DRY_RUN, {"teams": {"count": 3}, "players": {"count": 9}})
        self.assertEqual(result.order, ["teams", "players"])
        self.assertEqual(len(result.deferred), 1)
        player_ids = {row["id"] for row in result["players"]}
        team_ids = {row["id"] for row in result["teams"]}
        self.assertTrue(all(row["captain_id"] in player_ids for row in result["teams"]))
        self.assertTrue(all(row["team_id"] in team_ids for row in result["players"]))

    def test_back_fill_through_sink_update(self):
        sink = MemorySink()
        self.cyclic_engine(sink).seed(SeedOptions(seed=3), {"teams": {"count": 3}, "players": {"count": 9}})
        player_ids = {row["id"] for row in sink.tables["players"]}
        self.assertEqual(len(sink.tables["teams"]), 3)
        self.assertTrue(all(row["captain_id"] in player_ids for row in sink.tables["teams"]))

    def test_sink_without_updates_fails_before_insert(self):
        sink = RecordingSink()
        with self.assertRaises(ConfigurationError):
            self.cyclic_engine(sink).seed(SeedOptions(seed=1))
        self.assertEqual(sink.inserted, [])

    def test_not_null_cycle(self):
        with self.assertRaises(CyclicDependencyError):
            self.cyclic_engine(not_null=True).seed(DRY_RUN)


if __name__ == '__main__':
    unittest.main()
