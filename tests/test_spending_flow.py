"""
End-to-end pipeline tests — src/spending_flow.py

The CLI runs against the fake API from conftest.py via a patched client.
"""
import functools
import json
import xml.etree.ElementTree as ET

import httpx
import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

import config
import spending_flow
from spending_api import SpendingClient


@pytest.fixture
def patched_client(monkeypatch, fake_transport):
    monkeypatch.setattr(spending_flow, "SpendingClient",
                        functools.partial(SpendingClient, transport=fake_transport))


@pytest.fixture
def exports_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "EXPORTS_DIR", tmp_path / "exports")
    return tmp_path / "exports"


class TestPrepareGraph:
    def test_consolidates_before_building(self, id_categories, amounts):
        names, consolidated, graph = spending_flow.prepare_graph(id_categories, amounts, "2019", n_agencies=1)
        assert names["agency"] == ["DoD", "Other"]
        assert {a.agency for a in consolidated} == {"DoD", "Other"}
        other = [n.name for n in graph.nodes].index("Other")
        into_other = sum(e.value for e in graph.edges if e.target == other)
        assert into_other == 450.0

    def test_indexed_matches_scan(self, id_categories, amounts):
        _, _, scanned = spending_flow.prepare_graph(id_categories, amounts, "2019")
        _, _, indexed = spending_flow.prepare_graph(id_categories, amounts, "2019", indexed=True)
        assert indexed == scanned


class TestExportData:
    def test_writes_json_and_csv(self, tmp_path, name_categories, amounts):
        graph = spending_flow.build_graph(name_categories, amounts, "2019")
        json_path, csv_path = spending_flow.export_data(graph, amounts, "2019", tmp_path)

        data = json.loads(json_path.read_text())
        assert data["summary"] == {"fiscal_year": "2019", "total": 800.0,
                                   "nodes": len(graph.nodes), "links": len(graph.edges)}
        df = pd.read_csv(csv_path)
        assert list(df.columns) == ["object_class", "budget_function", "agency", "amount"]
        assert df["amount"].sum() == 800.0


class TestMain:
    def test_full_run(self, tmp_path, patched_client, exports_dir, capsys):
        output = tmp_path / "graph.svg"
        code = spending_flow.main(["--output", str(output), "--no-progress", "--agencies", "2"])

        assert code == 0
        assert output.exists()
        labels = ["".join(t.itertext()) for t in ET.parse(output).getroot().iter("{http://www.w3.org/2000/svg}text")]
        assert "Other $150.00" in labels
        assert (exports_dir / "spending_graph_fy2019.json").exists()
        assert (exports_dir / "spending_amounts_fy2019.csv").exists()

        out = capsys.readouterr().out
        assert "USA FY 2019 SPENDING FLOW" in out
        assert "Total: $800.00" in out

    def test_no_export(self, tmp_path, patched_client, exports_dir):
        code = spending_flow.main(["--output", str(tmp_path / "g.svg"), "--no-progress", "--no-export"])
        assert code == 0
        assert not exports_dir.exists()

    def test_api_failure_exits_nonzero(self, tmp_path, monkeypatch, capsys):
        failing = httpx.MockTransport(lambda request: httpx.Response(502))
        monkeypatch.setattr(spending_flow, "SpendingClient",
                            functools.partial(SpendingClient, transport=failing))

        output = tmp_path / "graph.svg"
        code = spending_flow.main(["--output", str(output), "--no-progress"])

        assert code == 1
        assert not output.exists()
        assert "Error:" in capsys.readouterr().err
