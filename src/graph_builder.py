#!/usr/bin/env python3
"""
Spending graph builder.

Turns the cleaned category lists and flat amount records into a four-layer
DAG: root -> object class -> budget function -> agency. Every edge is weighted
by the total of the records matching its path label.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

# Handle both package and direct execution imports
try:
    from . import config
    from .spending_api import AmountRecord
    from .utils import sum_matching
except ImportError:
    import config
    from spending_api import AmountRecord
    from utils import sum_matching


ROOT_LAYER = 0
LAYER_KEYS = ("object_class", "budget_function", "agency")

# Callable taking constraints as keyword arguments, returning the matching total
Aggregator = Callable[..., float]


@dataclass(frozen=True)
class GraphNode:
    name: str
    layer: int


@dataclass(frozen=True)
class GraphEdge:
    source: int
    target: int
    names: tuple
    value: float


@dataclass
class SpendingGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(edge.value for edge in self.edges if edge.source == 0)

    def to_dict(self) -> Dict:
        """JSON-friendly form, with node names on each link."""
        return {
            "nodes": [{"id": i, "name": n.name, "level": n.layer} for i, n in enumerate(self.nodes)],
            "links": [
                {
                    "source": self.nodes[e.source].name,
                    "target": self.nodes[e.target].name,
                    "names": list(e.names),
                    "value": e.value,
                }
                for e in self.edges
            ],
        }


class AmountIndex:
    """
    Pre-aggregated totals for every path prefix, built once with pandas.

    Call it with the same keyword constraints as ``sum_matching``; unknown
    paths total 0.
    """

    def __init__(self, amounts: Sequence[AmountRecord]):
        df = pd.DataFrame(
            [vars(a) for a in amounts],
            columns=["object_class", "budget_function", "agency", "amount"],
        )
        df["amount"] = df["amount"].astype(float)
        self._totals: Dict[tuple, float] = {}
        for depth in range(1, len(LAYER_KEYS) + 1):
            keys = list(LAYER_KEYS[:depth])
            grouped = df.groupby(keys, sort=False)["amount"].sum()
            for path, total in grouped.items():
                if not isinstance(path, tuple):
                    path = (path,)
                self._totals[path] = float(total)

    def __call__(self, **constraints: str) -> float:
        depth = len(constraints)
        path = tuple(constraints[key] for key in LAYER_KEYS[:depth])
        return self._totals.get(path, 0.0)


def build_graph(
    categories: Mapping[str, Sequence[str]],
    amounts: Sequence[AmountRecord],
    fiscal_year: str = config.FISCAL_YEAR,
    aggregator: Optional[Aggregator] = None,
) -> SpendingGraph:
    """
    Build the full graph from scratch.

    Without an ``aggregator`` each edge total is a fresh scan over all
    records. Root edges are always created; deeper edges only when their
    total is strictly positive.
    """
    if aggregator is None:
        def aggregator(**constraints):
            return sum_matching(amounts, **constraints)

    graph = SpendingGraph()
    graph.nodes.append(GraphNode(f"USA FY {fiscal_year} Spending", ROOT_LAYER))

    def add_nodes(names: Sequence[str], layer: int) -> Dict[str, int]:
        ids = {}
        for name in names:
            ids[name] = len(graph.nodes)
            graph.nodes.append(GraphNode(name, layer))
        return ids

    object_class_ids = add_nodes(categories["object_class"], 1)
    budget_function_ids = add_nodes(categories["budget_function"], 2)
    agency_ids = add_nodes(categories["agency"], 3)

    for object_class in categories["object_class"]:
        graph.edges.append(GraphEdge(
            source=0,
            target=object_class_ids[object_class],
            names=(object_class,),
            value=aggregator(object_class=object_class),
        ))
        for budget_function in categories["budget_function"]:
            total = aggregator(object_class=object_class, budget_function=budget_function)
            if total > 0:
                graph.edges.append(GraphEdge(
                    source=object_class_ids[object_class],
                    target=budget_function_ids[budget_function],
                    names=(object_class, budget_function),
                    value=total,
                ))
            for agency in categories["agency"]:
                total = aggregator(
                    object_class=object_class,
                    budget_function=budget_function,
                    agency=agency,
                )
                if total > 0:
                    graph.edges.append(GraphEdge(
                        source=budget_function_ids[budget_function],
                        target=agency_ids[agency],
                        names=(object_class, budget_function, agency),
                        value=total,
                    ))

    return graph
