"""Dependency ordering of tables by their foreign keys."""

from collections import defaultdict
from collections.abc import Iterable
from heapq import heappop, heappush
from logging import getLogger

from diagram.types import RelationSchema, TableSchema

logger = getLogger(__name__)


def dependency_graph(
    tables: Iterable[TableSchema],
    relations: Iterable[RelationSchema],
) -> dict[str, set[str]]:
    """Map each table id to the ids of the tables it references.

    Self references and relations to tables outside the input are ignored.
    """
    table_ids = {table["id"] for table in tables}
    graph: dict[str, set[str]] = {table_id: set() for table_id in table_ids}
    for relation in relations:
        source, target = relation["from_table_id"], relation["to_table_id"]
        if source in table_ids and target in table_ids and source != target:
            graph[source].add(target)
    return graph


def order_tables(
    tables: Iterable[TableSchema],
    relations: Iterable[RelationSchema],
) -> list[TableSchema]:
    """Order tables so referenced tables come before tables referencing them.

    Kahn's algorithm with ties broken by input order. Tables left over by a
    foreign key cycle are appended in input order.
    """
    tables = list(tables)
    graph = dependency_graph(tables, relations)

    position = {table["id"]: index for index, table in enumerate(tables)}
    pending = {table_id: len(targets) for table_id, targets in graph.items()}
    dependents: defaultdict[str, list[str]] = defaultdict(list)
    for source, targets in graph.items():
        for target in targets:
            dependents[target].append(source)

    ready = [position[table_id] for table_id, count in pending.items() if not count]
    ready.sort()

    ordered: list[TableSchema] = []
    while ready:
        table = tables[heappop(ready)]
        ordered.append(table)
        for source in dependents[table["id"]]:
            pending[source] -= 1
            if not pending[source]:
                heappush(ready, position[source])

    if len(ordered) < len(graph):
        placed = {table["id"] for table in ordered}
        cyclic = [table for table in tables if table["id"] not in placed]
        logger.warning(
            "Foreign key cycle between tables: %s",
            ", ".join(table["name"] for table in cyclic),
        )
        ordered.extend(cyclic)

    return ordered
