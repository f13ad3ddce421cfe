"""
Seeding engine - multi-table generation with foreign key integrity.

Tables are generated parents first. Every column gets a generator and a seed
derived from the run seed and the column's name, so the same schema and seed
always give the same rows. Foreign key columns draw from the values actually
generated for the parent table, and rows are pushed to the sink in batches
that respect the sink's bound-parameter limit.
"""

import logging
import math
from types import SimpleNamespace

import polars as pl

from seedforge.base import AbstractGenerator, GenerateDefault, GenerateWeightedCount, HollowGenerator, prepare_generator
from seedforge.composite import GenerateCompositeUniqueKey
from seedforge.config import DEFAULTS, SeedOptions
from seedforge.errors import ConfigurationError, UnsupportedColumnError
from seedforge.ordering import build_relation_info, order_tables
from seedforge.rng import hash_from_string
from seedforge.schema import Column, Refinement, Relation, Table
from seedforge.selection import pick_generator
from seedforge.sinks import MemorySink
from seedforge.values import GenerateSelfRelationsValuesFromArray, GenerateValuesFromArray

logger = logging.getLogger(__name__)


class SeedResult:
    """What a run produced: rows of the preserved tables plus run metadata."""

    def __init__(self, tables: dict, order: list, counts: dict, deferred: list):
        self.tables = tables
        self.order = order
        self.counts = counts
        self.deferred = deferred

    def __getitem__(self, table: str) -> list:
        return self.tables[table]

    def to_frames(self) -> dict:
        """One polars DataFrame per preserved table."""
        return {
            name: pl.DataFrame(rows, infer_schema_length=None) if rows else pl.DataFrame()
            for name, rows in self.tables.items()
        }


def _as_tuple(value) -> tuple:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


class SeedEngine:
    """
    Usage:
        engine = SeedEngine()
        engine.add_table("users", [Column("id", "integer", primary=True), Column("email", "varchar")])
        engine.add_table("posts", [Column("id", "integer", primary=True), Column("user_id", "integer")])
        engine.add_relationship("posts", "user_id", "users", "id")
        result = engine.seed(SeedOptions(seed=1, insert_data_in_db=False),
                             {"users": {"count": 3, "with": {"posts": 2}}})
    """

    def __init__(self, sink=None, pick=pick_generator, defaults=DEFAULTS):
        self.sink = sink
        self.pick = pick
        self.defaults = defaults
        self.tables = {}        # name -> Table, insertion order is the tie-break order
        self.relations = []     # list of Relation

    def add_table(self, name, columns=None, primary_keys=None, unique_constraints=None) -> Table:
        """Register a table, either as a Table or by its parts."""
        table = name if isinstance(name, Table) else Table(
            name=name,
            columns=list(columns or []),
            primary_keys=list(primary_keys or []),
            unique_constraints=[list(c) for c in unique_constraints or []],
        )
        if table.name in self.tables:
            raise ConfigurationError(f"table '{table.name}' is already registered")
        self.tables[table.name] = table
        return table

    def add_relationship(self, table, columns, ref_table, ref_columns) -> Relation:
        """Foreign key table.columns -> ref_table.ref_columns; ref_table may be outside the run."""
        rel = Relation(table, _as_tuple(columns), ref_table, _as_tuple(ref_columns))
        if table not in self.tables:
            raise ConfigurationError(f"relation source table '{table}' is not registered")
        for col_name in rel.columns:
            self.tables[table].column(col_name)
        if ref_table in self.tables:
            for col_name in rel.ref_columns:
                self.tables[ref_table].column(col_name)
        self.relations.append(rel)
        return rel

    # ------------------------------------------------------------------
    # planning

    def _column_seed(self, seed: int, table: str, columns) -> int:
        return seed + hash_from_string(f"{table}.{'_'.join(columns)}")

    def _with_plan(self, refinements, info, seed):
        """child -> parent -> fan-out settings for every `with` entry."""
        plan = {}
        for parent, refinement in refinements.items():
            for child, fan_out in refinement.with_counts.items():
                if child not in self.tables:
                    raise ConfigurationError(f"'{parent}' refinement uses `with` for unknown table '{child}'")
                if child == parent:
                    raise ConfigurationError(
                        f"'{parent}' references itself; `with` can't be used on a self-referencing table."
                    )
                if parent not in info[child].dependencies:
                    raise ConfigurationError(
                        f"'{parent}' table doesn't have a reference to '{child}' table or "
                        f"you didn't include your one-to-many relation in the seed function schema. "
                        f"You can't specify '{parent}' as parent table for '{child}' table."
                    )
                if isinstance(fan_out, int):
                    if fan_out < 1:
                        raise ConfigurationError(f"`with` count for '{child}' must be positive, got {fan_out}")
                else:
                    fan_out = [{"weight": w.weight, "count": w.count} for w in fan_out]
                plan.setdefault(child, {})[parent] = SimpleNamespace(
                    repeated=fan_out,
                    weighted_seed=seed + hash_from_string(f"{parent}.{child}"),
                )
        return plan

    def _fan_out_total(self, fan, parent_count) -> int:
        """How many child rows the parents can absorb under a `with` fan-out."""
        if isinstance(fan.repeated, int):
            return parent_count * fan.repeated
        # same stream the foreign key generator draws its repeat counts from
        draws = GenerateWeightedCount(weighted_count=fan.repeated).init(0, fan.weighted_seed)
        return sum(draws.generate(i) for i in range(parent_count))

    def _resolve_counts(self, options, refinements, with_plan) -> dict:
        default = options.count if options.count is not None else self.defaults.default_count
        counts, resolving = {}, set()

        def count_of(name):
            if name in counts:
                return counts[name]
            if name in resolving:
                raise ConfigurationError(f"`with` refinements form a loop through table '{name}'")
            resolving.add(name)
            refinement = refinements.get(name)
            if refinement is not None and refinement.count is not None:
                value = refinement.count
            elif name in with_plan:
                value = 0
                for parent, fan in with_plan[name].items():
                    value = max(value, self._fan_out_total(fan, count_of(parent)))
            else:
                value = default
            if value < 0:
                raise ConfigurationError(f"count for table '{name}' must be non-negative, got {value}")
            resolving.discard(name)
            counts[name] = value
            return value

        for name in self.tables:
            count_of(name)
        return counts

    def _unique_columns(self, table: Table):
        """
        Single-column uniqueness plus the multi-column constraints still
        needing a composite key.
        """
        unique = {c.name for c in table.columns if c.is_unique}
        if len(table.primary_keys) == 1:
            unique.add(table.primary_keys[0])
        constraints = [list(c) for c in table.unique_constraints]
        if len(table.primary_keys) > 1:
            constraints.append(list(table.primary_keys))
        composite = []
        for constraint in constraints:
            if len(constraint) == 1:
                unique.add(constraint[0])
        for constraint in constraints:
            if len(constraint) == 1 or any(c in unique for c in constraint):
                continue
            if constraint not in composite:
                composite.append(constraint)
        seen = {}
        for constraint in composite:
            for col_name in constraint:
                if col_name in seen:
                    raise ConfigurationError(
                        f"column '{col_name}' of table '{table.name}' is part of two multi-column unique "
                        f"constraints ({seen[col_name]} and {constraint}), which is not supported."
                    )
                seen[col_name] = constraint
        return unique, composite

    def _assign_generators(self, table, refinement, fk_columns, unique, used):
        assigned = {}
        refined = refinement.columns if refinement is not None else {}
        for col_name in refined:
            table.column(col_name)
        for column in table.columns:
            if column.name in refined:
                gen = refined[column.name]
                if gen is False:
                    if column.not_null and not column.has_default:
                        raise ConfigurationError(
                            f"column '{column.name}' of table '{table.name}' is NOT NULL, it can't be "
                            "filled with nulls."
                        )
                    gen = GenerateDefault(default_value=None)
                elif not isinstance(gen, AbstractGenerator):
                    raise ConfigurationError(
                        f"refinement for '{table.name}.{column.name}' must be a generator or False, got {gen!r}"
                    )
                if id(gen) in used:
                    raise ConfigurationError(
                        f"the generator for '{table.name}.{column.name}' is already used by another column; "
                        "create one generator per column."
                    )
                used.add(id(gen))
            elif column.name in fk_columns:
                gen = HollowGenerator()
            elif column.has_default:
                gen = GenerateDefault(default_value=column.default)
            else:
                gen = self.pick(table, column)
                if gen is None:
                    raise UnsupportedColumnError(table.name, column.name, column.column_type)
            assigned[column.name] = (gen, column.name in unique)
        return assigned

    def _key_column(self, table: Table) -> str:
        if len(table.primary_keys) == 1:
            return table.primary_keys[0]
        for column in table.columns:
            if column.is_unique and column.not_null:
                return column.name
        raise ConfigurationError(
            f"table '{table.name}' has a cyclic foreign key that must be back-filled, but no single-column "
            "primary key or unique NOT NULL column to address its rows."
        )

    def _plan(self, options, refinements):
        tables = list(self.tables.values())
        info = build_relation_info(tables, self.relations)
        ordering = order_tables(tables, self.relations)
        with_plan = self._with_plan(refinements, info, options.seed)
        counts = self._resolve_counts(options, refinements, with_plan)
        deferred = set(ordering.deferred)

        insert = options.insert_data_in_db
        sink = self.sink
        if insert and sink is None:
            sink = MemorySink()
        key_columns = {}
        for rel in ordering.deferred if insert else []:
            key_columns[rel.table] = self._key_column(self.tables[rel.table])
            if not sink.supports_update:
                raise ConfigurationError(
                    f"{type(sink).__name__} can't update rows, so the cyclic relation "
                    f"{rel.table} -> {rel.ref_table} can't be back-filled."
                )

        used, plans = set(), {}
        for name in ordering.order:
            table = self.tables[name]
            own = [r for r in self.relations if r.table == name]
            missing = [r for r in own if r.ref_table not in self.tables]
            for rel in missing:
                for col_name in rel.columns:
                    if table.column(col_name).not_null:
                        raise ConfigurationError(
                            f"column '{col_name}' of table '{name}' references table '{rel.ref_table}', which "
                            "is not part of this run, and is NOT NULL. Add the table to the run."
                        )
                logger.warning(
                    "Table '%s' is not part of this run; %s.%s will be filled with nulls",
                    rel.ref_table, name, list(rel.columns),
                )
            fk_columns = {c for r in own for c in r.columns}
            unique, composite = self._unique_columns(table)
            assigned = self._assign_generators(table, refinements.get(name), fk_columns, unique, used)
            plans[name] = SimpleNamespace(
                table=table,
                count=counts[name],
                assigned=assigned,
                composite=composite,
                relations=[r for r in own if r.ref_table in self.tables],
                missing=missing,
                identity=any(c.identity_override for c in table.columns),
            )
            self._check_relation_capacity(plans[name], counts, deferred, with_plan)

        return SimpleNamespace(
            order=ordering.order,
            deferred=ordering.deferred,
            deferred_set=deferred,
            counts=counts,
            with_plan=with_plan,
            plans=plans,
            sink=sink,
            key_columns=key_columns,
            info=info,
        )

    def _check_relation_capacity(self, plan, counts, deferred, with_plan):
        for rel in plan.relations:
            if rel.is_self_relation or rel in deferred:
                continue
            columns = [plan.table.column(c) for c in rel.columns]
            parent_count = counts[rel.ref_table]
            not_null = any(c.not_null for c in columns)
            if not_null and parent_count == 0 and plan.count > 0:
                raise ConfigurationError(
                    f"'{plan.table.name}' needs values from '{rel.ref_table}', which has no rows."
                )
            unique = any(plan.assigned[c.name][1] for c in columns)
            if unique and not_null and parent_count < plan.count:
                raise ConfigurationError(
                    f"'{plan.table.name}' asks for {plan.count} rows with unique {list(rel.columns)}, but "
                    f"'{rel.ref_table}' only has {parent_count} rows to reference."
                )
            fan = with_plan.get(plan.table.name, {}).get(rel.ref_table)
            if fan is not None and not unique and not_null:
                total = self._fan_out_total(fan, parent_count)
                if total < plan.count:
                    raise ConfigurationError(
                        f"'{plan.table.name}' asks for {plan.count} rows, but the `with` fan-out from "
                        f"'{rel.ref_table}' only covers {total} rows and {list(rel.columns)} is NOT NULL."
                    )

    # ------------------------------------------------------------------
    # generation

    def _composite_generators(self, plan, options, skip_columns):
        """column name -> CompositeKeyColumn view, for constraints without foreign keys."""
        views = {}
        for constraint in plan.composite:
            if any(c in skip_columns for c in constraint):
                logger.warning(
                    "Unique constraint %s on '%s' contains foreign key columns; it is not enforced",
                    constraint, plan.table.name,
                )
                continue
            key = GenerateCompositeUniqueKey()
            for col_name in constraint:
                gen, _ = plan.assigned[col_name]
                gen.is_unique = True
                key.add_generator(col_name, prepare_generator(gen, plan.table.column(col_name)))
            seed = self._column_seed(options.seed, plan.table.name, constraint)
            for col_name in constraint:
                views[col_name] = (key.column(col_name), seed)
        return views

    def _init_column_generators(self, plan, options):
        fk_columns = {c for r in plan.relations for c in r.columns}
        fk_columns.update(c for r in plan.missing for c in r.columns)
        refined = {name for name, (gen, _) in plan.assigned.items() if not isinstance(gen, HollowGenerator)}
        views = self._composite_generators(plan, options, fk_columns - refined)

        generators = {}
        for column in plan.table.columns:
            gen, unique = plan.assigned[column.name]
            if isinstance(gen, HollowGenerator):
                continue
            if column.name in views:
                gen, seed = views[column.name]
            else:
                gen = prepare_generator(gen, column, is_unique=unique)
                seed = self._column_seed(options.seed, plan.table.name, [column.name])
            generators[column.name] = gen.init(plan.count, seed)
        return generators

    def _relation_generator(self, rel, plan, run, options, parent_rows):
        columns = [plan.table.column(c) for c in rel.columns]
        values = [tuple(row[c] for c in rel.ref_columns) for row in parent_rows]
        gen = GenerateValuesFromArray(values=values)
        gen.is_unique = any(plan.assigned[c.name][1] for c in columns)
        gen.not_null = any(c.not_null for c in columns)
        fan = run.with_plan.get(rel.table, {}).get(rel.ref_table)
        if fan is not None and not gen.is_unique:
            gen.max_repeated_values_count = fan.repeated
            gen.weighted_count_seed = fan.weighted_seed
        return gen.init(plan.count, self._column_seed(options.seed, rel.table, rel.columns))

    def _build_row_plan(self, plan, run, options, cache):
        """
        Ordered list of (columns, generator, kind) to evaluate per row:
        plain columns first, then foreign keys, then self references.
        """
        entries = [((name,), gen, "value") for name, gen in plan.generators.items()]
        hollow = {name for name, (gen, _) in plan.assigned.items() if isinstance(gen, HollowGenerator)}

        self_refs = {}
        for rel in plan.missing:
            for col_name in rel.columns:
                if col_name in hollow:
                    entries.append(((col_name,), None, "null"))
        for rel in plan.relations:
            columns = tuple(c for c in rel.columns if c in hollow)
            if not columns:
                continue
            if rel in run.deferred_set or (not rel.is_self_relation and not cache[rel.ref_table]):
                entries.append((columns, None, "null"))
            elif rel.is_self_relation:
                for col_name, ref_col in zip(rel.columns, rel.ref_columns):
                    if col_name not in hollow:
                        continue
                    shared = self_refs.setdefault(ref_col, [])
                    gen = GenerateSelfRelationsValuesFromArray(values=shared)
                    gen.init(plan.count, self._column_seed(options.seed, rel.table, [col_name]))
                    entries.append(((col_name,), gen, "self"))
            else:
                gen = self._relation_generator(rel, plan, run, options, cache[rel.ref_table])
                positions = [rel.columns.index(c) for c in columns]
                entries.append((columns, (gen, positions), "relation"))
        # referenced values must be in place before a self reference reads them
        entries.sort(key=lambda entry: entry[2] == "self")
        return entries, self_refs

    def _batch_size(self, options, sink, columns_count):
        batch_size = options.batch_size or self.defaults.batch_size
        limit = sink.placeholder_limit if sink is not None else None
        if limit is not None:
            batch_size = min(batch_size, limit // max(columns_count, 1))
        return max(batch_size, 1)

    def _generate_table(self, name, run, options, cache, preserve):
        plan = run.plans[name]
        entries, self_refs = self._build_row_plan(plan, run, options, cache)
        column_names = [c.name for c in plan.table.columns]
        insert = options.insert_data_in_db
        batch_size = self._batch_size(options, run.sink, len(column_names))

        kept, batch, flushed = [], [], 0
        for i in range(plan.count):
            row = {}
            for columns, gen, kind in entries:
                if kind == "null":
                    for col_name in columns:
                        row[col_name] = None
                elif kind == "relation":
                    relation_gen, positions = gen
                    picked = relation_gen.generate(i)
                    for col_name, pos in zip(columns, positions):
                        row[col_name] = None if picked is None else picked[pos]
                else:
                    row[columns[0]] = gen.generate(i)
                for col_name in columns:
                    if col_name in self_refs:
                        self_refs[col_name].append(row[col_name])
            row = {c: row[c] for c in column_names}
            batch.append(row)

            if (i + 1) % batch_size == 0 or i == plan.count - 1:
                if insert:
                    run.sink.insert(name, batch, overriding_identity=plan.identity)
                    logger.debug("Flushed %d rows into '%s'", len(batch), name)
                    flushed += 1
                if preserve:
                    kept.extend(batch)
                batch = []

        logger.info("Generated %d rows for '%s' in %d batch(es)", plan.count, name, flushed)
        return kept

    def _back_fill(self, run, options, cache):
        for rel in run.deferred:
            plan = run.plans[rel.table]
            rows = cache[rel.table]
            if not rows or not cache[rel.ref_table]:
                continue
            gen = GenerateValuesFromArray(values=[
                tuple(row[c] for c in rel.ref_columns) for row in cache[rel.ref_table]
            ])
            gen.is_unique = any(plan.assigned[c][1] for c in rel.columns)
            gen.init(plan.count, self._column_seed(options.seed, rel.table, rel.columns))

            for i, row in enumerate(rows):
                picked = gen.generate(i)
                for pos, col_name in enumerate(rel.columns):
                    row[col_name] = None if picked is None else picked[pos]
            if options.insert_data_in_db:
                key = run.key_columns[rel.table]
                updates = [{key: row[key], **{c: row[c] for c in rel.columns}} for row in rows]
                batch_size = self._batch_size(options, run.sink, len(rel.columns) + 1)
                for start in range(0, len(updates), batch_size):
                    run.sink.update(rel.table, key, updates[start:start + batch_size])
            logger.info("Back-filled %s.%s from '%s'", rel.table, list(rel.columns), rel.ref_table)

    def seed(self, options: SeedOptions = None, refinements: dict = None) -> SeedResult:
        """
        Generate every registered table.

        All generators are set up (and every capacity problem reported) before
        the first row is written.
        """
        options = options or SeedOptions()
        refinements = {name: Refinement.from_value(value) for name, value in (refinements or {}).items()}
        for name in refinements:
            if name not in self.tables:
                raise ConfigurationError(f"refinement given for unknown table '{name}'")

        run = self._plan(options, refinements)
        for name in run.order:
            run.plans[name].generators = self._init_column_generators(run.plans[name], options)
        logger.info("Seeding %d tables in order: %s", len(run.order), run.order)

        keep_all = options.preserve_data is True or not options.insert_data_in_db
        back_filled = {r.table for r in run.deferred} | {r.ref_table for r in run.deferred}
        # tables still waiting for each table's rows
        waiting = {name: 0 for name in run.order}
        for name in run.order:
            for ref in run.info[name].dependencies:
                waiting[ref] += 1

        cache = {}
        for name in run.order:
            preserve = keep_all or waiting[name] > 0 or name in back_filled
            cache[name] = self._generate_table(name, run, options, cache, preserve)
            for ref in run.info[name].dependencies:
                waiting[ref] -= 1
                if waiting[ref] == 0 and not keep_all and ref not in back_filled:
                    cache.pop(ref, None)
            if not preserve:
                cache.pop(name, None)

        self._back_fill(run, options, cache)

        tables = {name: cache.get(name, []) for name in run.order} if keep_all else {}
        return SeedResult(tables=tables, order=run.order, counts=run.counts, deferred=run.deferred)


__all__ = ["SeedEngine", "SeedResult", "Column", "Table", "Relation", "SeedOptions"]
