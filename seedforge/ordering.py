"""
Dependency ordering for the tables of one seeding run.

Tables are placed once every table they reference is placed; references to
the table itself do not block it. A genuine cycle between different tables
is broken by deferring one of its relations whose foreign key columns are
all nullable: those columns are written as null first and back-filled once
both tables exist.
"""

import logging
from collections import deque
from dataclasses import dataclass, field

from seedforge.errors import CyclicDependencyError

logger = logging.getLogger(__name__)


@dataclass
class TableRelations:
    name: str
    relations: list = field(default_factory=list)      # outgoing, includes self relations
    dependencies: list = field(default_factory=list)   # referenced tables, input order
    dependants: list = field(default_factory=list)     # tables referencing this one
    self_relations: int = 0


@dataclass
class OrderResult:
    order: list
    deferred: list = field(default_factory=list)


def build_relation_info(tables, relations) -> dict:
    """
    Group relations by source table. Relations whose either side is not part
    of the run are left out; the engine deals with those separately.
    """
    info = {t.name: TableRelations(name=t.name) for t in tables}
    for rel in relations:
        if rel.table not in info or rel.ref_table not in info:
            continue
        source = info[rel.table]
        source.relations.append(rel)
        if rel.is_self_relation:
            source.self_relations += 1
            continue
        if rel.ref_table not in source.dependencies:
            source.dependencies.append(rel.ref_table)
        target = info[rel.ref_table]
        if rel.table not in target.dependants:
            target.dependants.append(rel.table)
    return info


def _reaches(start, goal, required, remaining) -> bool:
    seen, stack = set(), [start]
    while stack:
        current = stack.pop()
        if current == goal:
            return True
        if current in seen:
            continue
        seen.add(current)
        stack.extend(dep for dep in required[current] if dep in remaining)
    return False


def _deferrable(table, ref_table, tables_by_name, info) -> list:
    """Relations table -> ref_table if every one of their columns is nullable, else []."""
    rels = [r for r in info[table].relations if r.ref_table == ref_table]
    source = tables_by_name[table]
    for rel in rels:
        if any(source.column(c).not_null for c in rel.columns):
            return []
    return rels


def _break_cycle(remaining, required, tables_by_name, info, input_order):
    for table in input_order:
        if table not in remaining:
            continue
        for ref_table in input_order:
            if ref_table not in required[table] or ref_table not in remaining:
                continue
            if not _reaches(ref_table, table, required, remaining):
                continue
            rels = _deferrable(table, ref_table, tables_by_name, info)
            if rels:
                return table, ref_table, rels
    return None


def order_tables(tables, relations) -> OrderResult:
    """
    Place tables so every referenced table comes first.

    Raises CyclicDependencyError when a cycle remains that has no relation
    with nullable foreign key columns to defer.
    """
    info = build_relation_info(tables, relations)
    tables_by_name = {t.name: t for t in tables}
    input_order = [t.name for t in tables]
    required = {name: set(info[name].dependencies) for name in input_order}

    order, placed, deferred = [], set(), []
    queue = deque(input_order)
    while queue:
        progressed = False
        for _ in range(len(queue)):
            name = queue.popleft()
            if required[name] <= placed:
                order.append(name)
                placed.add(name)
                progressed = True
            else:
                queue.append(name)
        if progressed or not queue:
            continue

        remaining = set(queue)
        broken = _break_cycle(remaining, required, tables_by_name, info, input_order)
        if broken is None:
            raise CyclicDependencyError([name for name in input_order if name in remaining])
        table, ref_table, rels = broken
        logger.warning(
            "Cyclic relation %s -> %s: columns %s are filled with nulls first and back-filled afterwards",
            table, ref_table, [list(r.columns) for r in rels],
        )
        required[table].discard(ref_table)
        deferred.extend(rels)

    logger.debug("Table order: %s", order)
    return OrderResult(order=order, deferred=deferred)
