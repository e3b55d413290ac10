"""Tests for the parse_report command line script."""

import json

from scripts.parse_report import build_export, main


class TestBuildExport:
    """Tests for build_export."""

    def test_export_shape(self, breakdown_report):
        export = build_export(breakdown_report)

        assert export["total"] == 745.0
        assert [s["name"] for s in export["services"]] == ["Deep Cleaning & Wash", "Fringe Repair"]
        assert set(export["services"][0]) == {"id", "name", "description", "quantity", "unitPrice", "priority"}


class TestMain:
    """Tests for main."""

    def test_prints_json(self, tmp_path, capsys, multi_rug_report):
        report_file = tmp_path / "report.txt"
        report_file.write_text(multi_rug_report, encoding="utf-8")

        exit_code = main([str(report_file)])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["total"] == 2610.5
        assert [s["quantity"] for s in output["services"]] == [2, 2, 1]

    def test_writes_out_file(self, tmp_path, breakdown_report):
        report_file = tmp_path / "report.txt"
        report_file.write_text(breakdown_report, encoding="utf-8")
        out_file = tmp_path / "estimate.json"

        exit_code = main([str(report_file), "--out", str(out_file), "--indent", "0"])

        assert exit_code == 0
        assert json.loads(out_file.read_text(encoding="utf-8"))["total"] == 745.0

    def test_missing_report(self, tmp_path, capsys):
        exit_code = main([str(tmp_path / "missing.txt")])

        assert exit_code == 2
        assert "Report not found" in capsys.readouterr().err
