#!/usr/bin/env python3
"""
Federal spending flow diagram.

Downloads one fiscal year of USAspending data by object class, budget function
and agency, builds the four-layer flow graph, and renders it as an SVG Sankey
diagram. Graph JSON and a flat amounts CSV are exported alongside.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pandas as pd

# Handle both package and direct execution imports
try:
    from . import config
    from .data_cleaner import NameTable, consolidate_agencies, strip_ids
    from .graph_builder import AmountIndex, SpendingGraph, build_graph
    from .renderer import render_svg
    from .sankey_layout import compute_layout, justify_vertically
    from .spending_api import (AmountRecord, CategoryTable, SpendingAPIError, SpendingClient,
                               load_amounts, load_categories)
    from .utils import count_by_layer, format_usd, write_json
except ImportError:
    import config
    from data_cleaner import NameTable, consolidate_agencies, strip_ids
    from graph_builder import AmountIndex, SpendingGraph, build_graph
    from renderer import render_svg
    from sankey_layout import compute_layout, justify_vertically
    from spending_api import (AmountRecord, CategoryTable, SpendingAPIError, SpendingClient,
                              load_amounts, load_categories)
    from utils import count_by_layer, format_usd, write_json


async def download(client: SpendingClient, show_progress: bool = True) -> Tuple[CategoryTable, List[AmountRecord]]:
    """Fetch the category lists, then the per-pair agency amounts."""
    categories = await load_categories(client, show_progress=show_progress)
    for category_type, items in categories.items():
        print(f"  {category_type:<16} {len(items):,} categories")

    amounts = await load_amounts(client, categories, show_progress=show_progress)
    print(f"  {'amount records':<16} {len(amounts):,}")
    return categories, amounts


def prepare_graph(
    categories: CategoryTable,
    amounts: Sequence[AmountRecord],
    fiscal_year: str,
    n_agencies: int = config.AGENCY_CUTOFF,
    indexed: bool = False,
) -> Tuple[NameTable, List[AmountRecord], SpendingGraph]:
    """Clean the downloaded data and build the graph from it."""
    names, consolidated = consolidate_agencies(strip_ids(categories), amounts, n_agencies)
    aggregator = AmountIndex(consolidated) if indexed else None
    graph = build_graph(names, consolidated, fiscal_year, aggregator=aggregator)
    return names, consolidated, graph


def export_data(graph: SpendingGraph, amounts: Sequence[AmountRecord], fiscal_year: str,
                output_dir: Optional[Path] = None) -> List[Path]:
    """Export the graph as JSON and the amount records as CSV."""
    output_dir = output_dir or config.EXPORTS_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    data = graph.to_dict()
    data["summary"] = {
        "fiscal_year": fiscal_year,
        "total": graph.total,
        "nodes": len(graph.nodes),
        "links": len(graph.edges),
    }
    json_path = write_json(data, output_dir / f"spending_graph_fy{fiscal_year}.json")
    print(f"  Exported: {json_path}")

    csv_path = output_dir / f"spending_amounts_fy{fiscal_year}.csv"
    df = pd.DataFrame(
        [vars(a) for a in amounts],
        columns=["object_class", "budget_function", "agency", "amount"],
    )
    df.to_csv(csv_path, index=False)
    print(f"  Exported: {csv_path}")
    return [json_path, csv_path]


async def run(args: argparse.Namespace) -> Path:
    print("\nDownloading categories and amounts...")
    async with SpendingClient(endpoint=args.endpoint, fiscal_year=args.year) as client:
        categories, amounts = await download(client, show_progress=not args.no_progress)

    print("\nBuilding graph...")
    names, consolidated, graph = prepare_graph(
        categories, amounts, args.year, n_agencies=args.agencies, indexed=args.indexed,
    )
    layers = count_by_layer(node.layer for node in graph.nodes)
    print(f"  Nodes: {len(graph.nodes)} (per layer: {dict(sorted(layers.items()))})")
    print(f"  Links: {len(graph.edges)}")
    print(f"  Total: {format_usd(graph.total)}")

    print("\nRendering...")
    layout = justify_vertically(compute_layout(graph))
    output = render_svg(layout, names["object_class"], args.output)
    print(f"  Generated: {output}")

    if not args.no_export:
        print("\nExporting...")
        export_data(graph, consolidated, args.year)
    return output


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render a Sankey diagram of federal spending for one fiscal year")
    parser.add_argument('--year', type=str, default=config.FISCAL_YEAR, help='Fiscal year to query')
    parser.add_argument('--output', type=Path, default=config.OUTPUT_SVG, help='SVG output path')
    parser.add_argument('--agencies', type=int, default=config.AGENCY_CUTOFF,
                        help='Number of agencies shown before the rest are merged into "Other"')
    parser.add_argument('--endpoint', type=str, default=config.API_ENDPOINT, help='Spending API endpoint')
    parser.add_argument('--indexed', action='store_true',
                        help='Aggregate through a prebuilt index instead of rescanning records per edge')
    parser.add_argument('--no-export', action='store_true', help='Skip JSON/CSV exports')
    parser.add_argument('--no-progress', action='store_true', help='Hide progress bars')
    args = parser.parse_args(argv)

    print("=" * 60)
    print(f"USA FY {args.year} SPENDING FLOW")
    print("=" * 60)

    try:
        asyncio.run(run(args))
    except SpendingAPIError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
