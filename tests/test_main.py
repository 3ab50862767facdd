"""Tests for the command line interface in main.py."""
import pytest
from unittest.mock import MagicMock, patch
from typer.testing import CliRunner

from catalog_client import PrerequisiteMissing
from main import app, main
from report_exporter import export_report
from workflow import ImageSelection, WorkflowResult, WorkflowState

runner = CliRunner()


@pytest.fixture
def mock_client():
    with patch("main.CatalogClient") as client_cls:
        client_cls.return_value.check_prerequisites.return_value = {"name": "Test Subscription"}
        yield client_cls


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("IMAGE_BROWSER_REGION", "IMAGE_BROWSER_PAGE_SIZE", "IMAGE_BROWSER_OUTPUT_DIR"):
        monkeypatch.delenv(var, raising=False)


def done_result():
    selection = ImageSelection(
        region="westeurope", publisher="Canonical", offer="ubuntu", sku="server", version="1.2.10",
        versions=["1.2.10"],
    )
    return WorkflowResult(
        state=WorkflowState.DONE, selection=selection, report_path="azure-vm-image-canonical.md"
    )


class TestBrowseCommand:

    def test_missing_prerequisite_exits_one(self, mock_client):
        mock_client.return_value.check_prerequisites.side_effect = PrerequisiteMissing("Not logged in")
        with patch("main.ImageBrowser") as browser_cls:
            result = runner.invoke(app, ["browse"])
        assert result.exit_code == 1
        assert "Not logged in" in result.output
        browser_cls.assert_not_called()

    def test_success_prints_summary(self, mock_client):
        with patch("main.ImageBrowser") as browser_cls:
            browser_cls.return_value.run.return_value = done_result()
            result = runner.invoke(app, ["browse", "-r", "eastus", "-p", "5", "-m", "-s", "windows"])

        assert result.exit_code == 0
        assert "Canonical:ubuntu:server:latest" in result.output
        kwargs = browser_cls.call_args.kwargs
        assert kwargs["region"] == "eastus"
        assert kwargs["page_size"] == 5
        assert kwargs["microsoft_only"] is True
        assert kwargs["publisher_search"] == "windows"
        assert kwargs["report_writer"] is export_report

    def test_defaults_from_settings(self, mock_client, monkeypatch):
        monkeypatch.setenv("IMAGE_BROWSER_REGION", "northeurope")
        with patch("main.ImageBrowser") as browser_cls:
            browser_cls.return_value.run.return_value = done_result()
            result = runner.invoke(app, ["browse"])

        assert result.exit_code == 0
        kwargs = browser_cls.call_args.kwargs
        assert kwargs["region"] == "northeurope"
        assert kwargs["page_size"] == 20
        assert kwargs["microsoft_only"] is False
        assert kwargs["publisher_search"] == ""

    @pytest.mark.parametrize("exit_code", [0, 1])
    def test_aborted_workflow_propagates_exit_code(self, mock_client, exit_code):
        aborted = WorkflowResult(state=WorkflowState.ABORTED, exit_code=exit_code)
        with patch("main.ImageBrowser") as browser_cls:
            browser_cls.return_value.run.return_value = aborted
            result = runner.invoke(app, ["browse"])
        assert result.exit_code == exit_code

    def test_invalid_page_size_rejected(self, mock_client):
        result = runner.invoke(app, ["browse", "--page-size", "0"])
        assert result.exit_code != 0


class TestVersionCommand:

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestMainEntryPoint:
    """Tests for argument routing in main()."""

    @pytest.mark.parametrize("argv, expected", [
        (["vm-image-browser"], ["browse"]),
        (["vm-image-browser", "-r", "eastus"], ["browse", "-r", "eastus"]),
        (["vm-image-browser", "--microsoft-only", "-p", "5"], ["browse", "--microsoft-only", "-p", "5"]),
    ])
    def test_options_without_command_run_browse(self, monkeypatch, argv, expected):
        monkeypatch.setattr("sys.argv", argv)
        with patch("main.app") as mock_app:
            main()
        mock_app.assert_called_once_with(args=expected)

    @pytest.mark.parametrize("argv", [
        ["vm-image-browser", "version"],
        ["vm-image-browser", "browse", "-r", "eastus"],
        ["vm-image-browser", "--help"],
    ])
    def test_commands_and_help_passed_through(self, monkeypatch, argv):
        monkeypatch.setattr("sys.argv", argv)
        with patch("main.app") as mock_app:
            main()
        mock_app.assert_called_once_with()
