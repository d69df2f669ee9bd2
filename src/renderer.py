#!/usr/bin/env python3
"""
Render a justified Sankey layout to SVG with matplotlib.

The figure is sized so one data unit is one point, which lets link widths be
used directly as stroke widths.
"""

import xml.etree.ElementTree as ET
from io import BytesIO
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MPath

# Handle both package and direct execution imports
try:
    from . import config
    from .sankey_layout import LinkPosition, SankeyLayout
    from .utils import format_usd, hex_to_rgba
except ImportError:
    import config
    from sankey_layout import LinkPosition, SankeyLayout
    from utils import format_usd, hex_to_rgba


POINTS_PER_INCH = 72
LABEL_OFFSET = 6
STUB_OVERHANG = 1

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", "http://www.w3.org/1999/xlink")


def link_color(link: LinkPosition, object_classes: Sequence[str], palette: Sequence[str] = config.PALETTE) -> str:
    """Colour of the object class a link's path starts with."""
    return palette[object_classes.index(link.names[0]) % len(palette)]


def ribbon_path(x0: float, y0: float, x1: float, y1: float) -> MPath:
    """Horizontal cubic curve from (x0, y0) to (x1, y1)."""
    xm = (x0 + x1) / 2
    vertices = [(x0, y0), (xm, y0), (xm, y1), (x1, y1)]
    codes = [MPath.MOVETO, MPath.CURVE4, MPath.CURVE4, MPath.CURVE4]
    return MPath(vertices, codes)


def _stub(ax, x: float, y: float, width: float, color: str, node_width: float):
    ax.add_line(Line2D(
        [x - STUB_OVERHANG, x + node_width + STUB_OVERHANG], [y, y],
        color=color, linewidth=width, solid_capstyle='butt',
    ))


def render_svg(layout: SankeyLayout, object_classes: Sequence[str], output_path: Path,
               node_width: float = config.CANVAS["node_width"]) -> Path:
    """Draw ribbons, connector stubs and labels, then save as SVG."""
    width, height = layout.width, layout.height
    fig = plt.figure(figsize=(width / POINTS_PER_INCH, height / POINTS_PER_INCH), dpi=POINTS_PER_INCH)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)   # y grows downward, as in the layout
    ax.axis('off')

    # Flow ribbons
    for i, link in enumerate(layout.links):
        source = layout.nodes[link.source]
        target = layout.nodes[link.target]
        patch = PathPatch(
            ribbon_path(source.x1, link.y0, target.x0, link.y1),
            facecolor='none',
            edgecolor=hex_to_rgba(link_color(link, object_classes), config.RIBBON_ALPHA),
            linewidth=link.width,
            capstyle='butt',
        )
        patch.set_gid(f"link-{i}")
        ax.add_patch(patch)

    # Stubs where each link enters its target, and where the root's links leave it
    for link in layout.links:
        target = layout.nodes[link.target]
        _stub(ax, target.x0, link.y1, link.width, link_color(link, object_classes), node_width)
    root = layout.nodes[0]
    for i in root.source_links:
        link = layout.links[i]
        _stub(ax, root.x0, link.y0, link.width, link_color(link, object_classes), node_width)

    # Labels: right of nodes in the left half, left of nodes in the right half
    for n, node in enumerate(layout.nodes):
        left_half = node.x0 < width / 2
        label = ax.text(
            node.x1 + LABEL_OFFSET if left_half else node.x0 - LABEL_OFFSET,
            (node.y0 + node.y1) / 2,
            f"{node.name} {format_usd(node.value)}",
            ha='left' if left_half else 'right',
            va='center',
            fontsize=10,
            fontweight='bold',
            fontfamily='sans-serif',
            parse_math=False,
        )
        label.set_gid(f"label-{n}")

    buffer = BytesIO()
    # Keep labels as <text> elements rather than glyph outlines
    with plt.rc_context({'svg.fonttype': 'none'}):
        fig.savefig(buffer, format='svg')
    plt.close(fig)

    tree, ids = ET.XMLID(buffer.getvalue())
    _decorate(ids, layout)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    ET.ElementTree(tree).write(output_path, encoding='utf-8', xml_declaration=True)
    return output_path


def _decorate(ids, layout: SankeyLayout):
    """Add ribbon tooltips and blending, and dim the value part of each label."""
    for i, link in enumerate(layout.links):
        group = ids[f"link-{i}"]
        group.set('style', 'mix-blend-mode: multiply')
        title = ET.SubElement(group, f"{{{SVG_NS}}}title")
        title.text = f"{' → '.join(link.names)}\n{format_usd(link.value)}"

    for n, node in enumerate(layout.nodes):
        text = ids[f"label-{n}"].find(f".//{{{SVG_NS}}}text")
        if text is None:
            continue
        text.text = node.name
        value = ET.SubElement(text, f"{{{SVG_NS}}}tspan", {'fill-opacity': '0.85'})
        value.text = f" {format_usd(node.value)}"
