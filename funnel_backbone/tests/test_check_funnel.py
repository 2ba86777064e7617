"""Tests for the funnel-check command line script."""

import json

from funnel_backbone.analysis.check_funnel import main
from funnel_backbone.models.changes import Connection
from funnel_backbone.store import FunnelStore


def _export(tmp_path, store: FunnelStore):
    path = tmp_path / store.export_filename()
    path.write_text(store.export_funnel(), encoding="utf-8")
    return path


class TestCheckFunnel:
    """Test the CLI report and exit codes."""

    def test_clean_funnel(self, tmp_path, capsys):
        store = FunnelStore()
        sales = store.add_node("sales", {"x": 0, "y": 0})
        thankyou = store.add_node("thankyou", {"x": 0, "y": 200})
        store.connect(Connection(source=sales.id, target=thankyou.id))

        assert main([str(_export(tmp_path, store))]) == 0
        out = capsys.readouterr().out
        assert "FUNNEL REPORT" in out
        assert "All systems operational" in out
        assert "Sales Page [sales]" in out

    def test_warnings_do_not_fail(self, tmp_path, capsys):
        store = FunnelStore()
        store.add_node("order", {"x": 0, "y": 0})

        assert main([str(_export(tmp_path, store))]) == 0
        out = capsys.readouterr().out
        assert "Missing Sales Page" in out
        assert '"Order Page" is not connected' in out

    def test_errors_fail(self, tmp_path, capsys):
        """A thank-you page with an outgoing edge is an error."""
        document = {
            "nodes": [
                {"id": "t", "type": "funnelNode", "position": {"x": 0, "y": 0},
                 "data": {"label": "Thank You", "nodeType": "thankyou", "buttonLabel": "Continue"}},
                {"id": "s", "type": "funnelNode", "position": {"x": 0, "y": 0},
                 "data": {"label": "Sales Page", "nodeType": "sales", "buttonLabel": "Buy Now"}},
            ],
            "edges": [{"id": "e", "source": "t", "target": "s"}],
        }
        path = tmp_path / "broken.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        assert main([str(path), "--json"]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["error_count"] == 1
        assert report["is_valid"] is False
        assert report["node_count"] == 2
        errors = [i for i in report["issues"] if i["type"] == "error"]
        assert errors == [{
            "type": "error",
            "message": '"Thank You" cannot have outgoing connections',
            "nodeId": "t",
        }]

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_file(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text('{"nodes": []}', encoding="utf-8")
        assert main([str(path)]) == 1
        assert "invalid funnel file" in capsys.readouterr().err

    def test_non_utf8_file(self, tmp_path, capsys):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"nodes": [], "edges": [], "name": "\xff"}')
        assert main([str(path)]) == 1
        assert "invalid funnel file" in capsys.readouterr().err

    def test_directory_instead_of_file(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 1
        assert "cannot read funnel file" in capsys.readouterr().err
