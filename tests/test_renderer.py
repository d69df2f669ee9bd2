"""
Tests for SVG rendering — src/renderer.py
"""
import xml.etree.ElementTree as ET

import matplotlib

matplotlib.use("Agg")

import pytest
from matplotlib.path import Path as MPath

from graph_builder import build_graph
from renderer import link_color, render_svg, ribbon_path
from sankey_layout import LinkPosition, compute_layout, justify_vertically

SVG = "{http://www.w3.org/2000/svg}"


class TestLinkColor:
    def test_color_follows_first_path_name(self):
        link = LinkPosition(1, 3, ("Grants", "Health"), 1.0, 1.0, 0.0, 0.0)
        assert link_color(link, ["Personnel", "Grants"], ["#111111", "#222222"]) == "#222222"

    def test_palette_cycles(self):
        names = [f"OC {i}" for i in range(8)]
        link = LinkPosition(0, 7, ("OC 7",), 1.0, 1.0, 0.0, 0.0)
        assert link_color(link, names, ["#000001", "#000002", "#000003"]) == "#000002"


class TestRibbonPath:
    def test_horizontal_tangents(self):
        path = ribbon_path(10, 20, 110, 80)
        assert path.vertices.tolist() == [[10, 20], [60, 20], [60, 80], [110, 80]]
        assert list(path.codes) == [MPath.MOVETO, MPath.CURVE4, MPath.CURVE4, MPath.CURVE4]


class TestRenderSvg:
    @pytest.fixture
    def svg_root(self, tmp_path, name_categories, amounts):
        layout = justify_vertically(compute_layout(build_graph(name_categories, amounts, "2019"),
                                                   width=800, height=400))
        output = render_svg(layout, name_categories["object_class"], tmp_path / "out" / "graph.svg")
        assert output.exists()
        return ET.parse(output).getroot()

    def test_writes_svg_document(self, svg_root):
        assert svg_root.tag == f"{SVG}svg"

    def test_labels_carry_currency_values(self, svg_root):
        labels = ["".join(t.itertext()) for t in svg_root.iter(f"{SVG}text")]
        assert "USA FY 2019 Spending $800.00" in labels
        assert "Personnel $300.00" in labels
        assert "Other $0.00" in labels

    def test_label_values_are_dimmed(self, svg_root):
        values = [t for t in svg_root.iter(f"{SVG}tspan") if t.get("fill-opacity") == "0.85"]
        assert " $300.00" in [t.text for t in values]

    def test_ribbons_have_path_tooltips(self, svg_root):
        titles = [t.text for t in svg_root.iter(f"{SVG}title")]
        assert "Personnel → Defense → DoD\n$200.00" in titles
        assert "Grants\n$500.00" in titles

    def test_ribbons_blend(self, svg_root):
        ribbon = svg_root.find(f".//{SVG}g[@id='link-0']")
        assert "mix-blend-mode: multiply" in ribbon.get("style")
