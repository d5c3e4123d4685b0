"""
Tests for CLI commands.
"""

import json
from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from assessment_export.cli import app
from assessment_export.exceptions import RenderingError
from assessment_export.report.html import DEFAULT_HTML_FILENAME

runner = CliRunner()


def write_json(path, document):
    path.write_text(json.dumps(document))
    return path


class TestInit:
    """Tests for init command."""

    def test_init_writes_config(self, tmp_path):
        """Test that init writes the default configuration."""
        result = runner.invoke(app, ["init", str(tmp_path / "project")])

        assert result.exit_code == 0
        config_file = tmp_path / "project" / "assessment-export.yaml"
        assert config_file.exists()
        assert yaml.safe_load(config_file.read_text())["pdf"]["margin_mm"] == 10


class TestSummary:
    """Tests for summary command."""

    def test_summary_of_assessment(self, tmp_path, assessment):
        """Test that the latest snapshot is summarized."""
        path = write_json(tmp_path / "assessment.json", assessment)

        result = runner.invoke(app, ["summary", str(path)])

        assert result.exit_code == 0
        assert "hosts" in result.stdout
        assert "40" in result.stdout

    def test_summary_of_bare_inventory(self, tmp_path, canonical_inventory):
        """Test that a bare inventory is summarized too."""
        path = write_json(tmp_path / "inventory.json", canonical_inventory)

        result = runner.invoke(app, ["summary", str(path)])

        assert result.exit_code == 0
        assert "40" in result.stdout

    def test_summary_without_data(self, tmp_path):
        """Test that an assessment without snapshots fails."""
        path = write_json(tmp_path / "empty.json", {"snapshots": []})

        result = runner.invoke(app, ["summary", str(path)])

        assert result.exit_code == 1
        assert "No inventory data available" in result.stdout

    def test_summary_with_malformed_snapshots(self, tmp_path):
        """Test that non-mapping snapshot entries are reported as missing data."""
        path = write_json(tmp_path / "broken.json", {"snapshots": [None]})

        result = runner.invoke(app, ["summary", str(path)])

        assert result.exit_code == 1
        assert "No inventory data available" in result.stdout
        assert "Unexpected error" not in result.stdout

    def test_summary_missing_file(self, tmp_path):
        """Test that a missing file is reported."""
        result = runner.invoke(app, ["summary", str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "Cannot load inventory" in result.stdout


class TestExportHtml:
    """Tests for export-html command."""

    def test_export_html(self, tmp_path, assessment):
        """Test exporting an assessment to the output directory."""
        path = write_json(tmp_path / "assessment.json", assessment)
        out = tmp_path / "reports"

        result = runner.invoke(app, ["export-html", str(path), "--out", str(out)])

        assert result.exit_code == 0
        assert (out / DEFAULT_HTML_FILENAME).exists()

    def test_export_html_with_title_and_filename(self, tmp_path, snapshot):
        """Test title and filename options."""
        path = write_json(tmp_path / "snapshot.json", snapshot)
        out = tmp_path / "reports"

        result = runner.invoke(
            app,
            [
                "export-html",
                str(path),
                "--title",
                "Lab report",
                "--filename",
                "lab.html",
                "--out",
                str(out),
            ],
        )

        assert result.exit_code == 0
        assert "<title>Lab report</title>" in (out / "lab.html").read_text(encoding="utf-8")

    def test_export_html_uses_config_output_dir(self, tmp_path, snapshot):
        """Test that output_dir from --config is honored."""
        config_file = tmp_path / "assessment-export.yaml"
        config_file.write_text(yaml.dump({"output_dir": "from-config"}))
        path = write_json(tmp_path / "snapshot.json", snapshot)

        result = runner.invoke(
            app, ["--config", str(config_file), "export-html", str(path)]
        )

        assert result.exit_code == 0
        assert (tmp_path / "from-config" / DEFAULT_HTML_FILENAME).exists()

    def test_export_html_invalid_inventory(self, tmp_path):
        """Test that an unrecognized document exits with an error."""
        path = write_json(tmp_path / "bad.json", {"hosts": 3})

        result = runner.invoke(app, ["export-html", str(path), "--out", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid inventory data structure" in result.stdout
        assert not (tmp_path / DEFAULT_HTML_FILENAME).exists()

    def test_invalid_config(self, tmp_path, snapshot):
        """Test that a broken config file is reported."""
        config_file = tmp_path / "assessment-export.yaml"
        config_file.write_text(yaml.dump({"pdf": {"margin_mm": "wide"}}))
        path = write_json(tmp_path / "snapshot.json", snapshot)

        result = runner.invoke(
            app, ["--config", str(config_file), "export-html", str(path)]
        )

        assert result.exit_code == 1
        assert "Invalid configuration file" in result.stdout


class TestExportPdf:
    """Tests for export-pdf command."""

    def test_export_pdf_passes_options(self, tmp_path):
        """Test that command options reach the PDF export."""
        calls = []

        async def fake_export(export_config, downloader, page, selector, options):
            calls.append((downloader.directory, page, selector, options))

        with patch("assessment_export.cli._export_pdf", fake_export):
            result = runner.invoke(
                app,
                [
                    "export-pdf",
                    "dashboard.html",
                    "--title",
                    "Lab",
                    "--selector",
                    "#report",
                    "--out",
                    str(tmp_path),
                ],
            )

        assert result.exit_code == 0
        directory, page, selector, options = calls[0]
        assert directory == tmp_path
        assert page == "dashboard.html"
        assert selector == "#report"
        assert options.document_title == "Lab"
        assert options.filename is None

    def test_export_pdf_failure(self, tmp_path):
        """Test that a failed export exits with status 1."""

        async def failing_export(*args):
            raise RenderingError("Canvas 2D context unavailable")

        with patch("assessment_export.cli._export_pdf", failing_export):
            result = runner.invoke(app, ["export-pdf", "dashboard.html", "--out", str(tmp_path)])

        assert result.exit_code == 1
        assert "Canvas 2D context unavailable" in result.stdout
