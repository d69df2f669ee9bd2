#!/usr/bin/env python3
"""
Sankey layout for the spending graph.

``compute_layout`` assigns each node a column from its layer, a value from its
links, and a compact top-down vertical packing. ``justify_vertically`` then
re-spaces every layer so its nodes are spread evenly over the full canvas
height, carrying each node's shift over to the ends of its links.

Both return immutable ``SankeyLayout`` values; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import numpy as np

# Handle both package and direct execution imports
try:
    from . import config
    from .graph_builder import SpendingGraph
except ImportError:
    import config
    from graph_builder import SpendingGraph


N_LAYERS = 4


@dataclass(frozen=True)
class NodePosition:
    name: str
    layer: int
    value: float
    x0: float
    x1: float
    y0: float
    y1: float
    source_links: Tuple[int, ...] = ()   # outgoing link indices
    target_links: Tuple[int, ...] = ()   # incoming link indices

    @property
    def height(self) -> float:
        return self.y1 - self.y0


@dataclass(frozen=True)
class LinkPosition:
    source: int
    target: int
    names: tuple
    value: float
    width: float
    y0: float   # centre line at the source node
    y1: float   # centre line at the target node


@dataclass(frozen=True)
class SankeyLayout:
    nodes: Tuple[NodePosition, ...]
    links: Tuple[LinkPosition, ...]
    width: float
    height: float

    def layer(self, index: int) -> List[NodePosition]:
        return [node for node in self.nodes if node.layer == index]


def compute_layout(
    graph: SpendingGraph,
    width: float = config.CANVAS["width"],
    height: float = config.CANVAS["height"],
    padding: float = config.CANVAS["padding"],
    node_width: float = config.CANVAS["node_width"],
    node_padding: float = config.CANVAS["node_padding"],
) -> SankeyLayout:
    """
    Lay the graph out inside ``[padding, size - padding]`` on both axes.

    Node order within a layer and link order along a node follow the graph's
    own order. A node with no links gets zero height.
    """
    n_nodes = len(graph.nodes)
    outgoing: List[List[int]] = [[] for _ in range(n_nodes)]
    incoming: List[List[int]] = [[] for _ in range(n_nodes)]
    for i, edge in enumerate(graph.edges):
        outgoing[edge.source].append(i)
        incoming[edge.target].append(i)

    # Negative totals draw as zero-width flows
    flows = [max(edge.value, 0.0) for edge in graph.edges]
    values = [
        max(
            sum(flows[i] for i in outgoing[n]),
            sum(flows[i] for i in incoming[n]),
        )
        for n in range(n_nodes)
    ]

    x_start, x_end = padding, width - padding
    y_start, y_end = padding, height - padding
    n_columns = max((node.layer for node in graph.nodes), default=0) + 1
    kx = (x_end - x_start - node_width) / (n_columns - 1) if n_columns > 1 else 0.0

    columns: Dict[int, List[int]] = {}
    for n, node in enumerate(graph.nodes):
        columns.setdefault(node.layer, []).append(n)

    ky = _vertical_scale(columns, values, y_end - y_start, node_padding)

    y0s = [0.0] * n_nodes
    y1s = [0.0] * n_nodes
    for members in columns.values():
        y = y_start
        for n in members:
            y0s[n] = y
            y1s[n] = y + values[n] * ky
            y = y1s[n] + node_padding

    widths = [flow * ky for flow in flows]
    link_y0 = [0.0] * len(graph.edges)
    link_y1 = [0.0] * len(graph.edges)
    for n in range(n_nodes):
        y = y0s[n]
        for i in outgoing[n]:
            link_y0[i] = y + widths[i] / 2
            y += widths[i]
        y = y0s[n]
        for i in incoming[n]:
            link_y1[i] = y + widths[i] / 2
            y += widths[i]

    nodes = tuple(
        NodePosition(
            name=node.name,
            layer=node.layer,
            value=values[n],
            x0=x_start + node.layer * kx,
            x1=x_start + node.layer * kx + node_width,
            y0=y0s[n],
            y1=y1s[n],
            source_links=tuple(outgoing[n]),
            target_links=tuple(incoming[n]),
        )
        for n, node in enumerate(graph.nodes)
    )
    links = tuple(
        LinkPosition(
            source=edge.source,
            target=edge.target,
            names=edge.names,
            value=edge.value,
            width=widths[i],
            y0=link_y0[i],
            y1=link_y1[i],
        )
        for i, edge in enumerate(graph.edges)
    )
    return SankeyLayout(nodes=nodes, links=links, width=width, height=height)


def _vertical_scale(columns: Dict[int, List[int]], values: List[float],
                    extent: float, node_padding: float) -> float:
    """Largest value-to-pixel ratio that lets every column fit."""
    scales = []
    for members in columns.values():
        total = sum(values[n] for n in members)
        if total > 0:
            scales.append((extent - (len(members) - 1) * node_padding) / total)
    return max(min(scales), 0.0) if scales else 0.0


def justify_vertically(layout: SankeyLayout, height: Optional[float] = None) -> SankeyLayout:
    """
    Spread each layer's nodes evenly over the canvas height.

    Within a layer the free space ``height - sum(node heights)`` is split into
    ``count + 1`` equal gaps: one above the first node, one between each pair,
    one below the last. Node order is unchanged. Each node's shift is applied
    to the source end of its outgoing links and the target end of its incoming
    links. Layers with no nodes are skipped.
    """
    if height is None:
        height = layout.height

    offsets = np.zeros(len(layout.nodes))
    for layer in range(N_LAYERS):
        members = [n for n, node in enumerate(layout.nodes) if node.layer == layer]
        if not members:
            continue

        heights = np.array([layout.nodes[n].height for n in members])
        spacing = (height - heights.sum()) / (len(members) + 1)
        # Each node starts after its predecessors plus one gap per node so far
        starts = spacing * np.arange(1, len(members) + 1) + np.concatenate(([0.0], np.cumsum(heights)[:-1]))
        for n, start in zip(members, starts):
            offsets[n] = start - layout.nodes[n].y0

    nodes = tuple(
        replace(node, y0=node.y0 + float(offsets[n]), y1=node.y1 + float(offsets[n]))
        for n, node in enumerate(layout.nodes)
    )
    links = tuple(
        replace(link, y0=link.y0 + float(offsets[link.source]), y1=link.y1 + float(offsets[link.target]))
        for link in layout.links
    )
    return replace(layout, nodes=nodes, links=links)
