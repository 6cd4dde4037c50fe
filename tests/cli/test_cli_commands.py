"""Tests for the CLI command tree."""

from __future__ import annotations

from click.testing import CliRunner

from flowforge.__version__ import __version__
from flowforge.frontends.cli.main import cli, dashboard
from flowforge.frontends.cli.run import run, run_list, run_start, run_watch
from flowforge.frontends.cli.workflow import (
    workflow,
    workflow_delete,
    workflow_export,
    workflow_import,
    workflow_list,
)


def param_names(command) -> list[str]:
    return [p.name for p in command.params]


class TestCommandTree:
    """Tests for flowforge command groups."""

    def test_groups_registered(self):
        """workflow and run hang off the root group."""
        assert cli.commands["workflow"] is workflow
        assert cli.commands["run"] is run
        assert "dashboard" in cli.commands

    def test_root_options(self):
        """The root group takes server URLs and a log level."""
        assert {"api_base", "ws_url", "log_level"} <= set(param_names(cli))

    def test_workflow_commands(self):
        """Every workflow subcommand is defined."""
        assert set(workflow.commands) == {
            "list", "show", "create", "edit", "delete", "export", "import"
        }

    def test_run_commands(self):
        assert set(run.commands) == {"start", "watch", "list", "stats"}

    def test_json_options(self):
        """Listing commands can output JSON."""
        for command in (workflow_list, run_list, dashboard):
            assert "json_output" in param_names(command)

    def test_delete_has_yes_option(self):
        assert "yes" in param_names(workflow_delete)

    def test_export_has_output_option(self):
        assert "output" in param_names(workflow_export)

    def test_import_reads_stdin_by_default(self):
        source = next(p for p in workflow_import.params if p.name == "source")
        assert source.default == "-"

    def test_run_start_has_watch(self):
        assert "watch" in param_names(run_start)

    def test_run_watch_has_refresh(self):
        refresh = next(p for p in run_watch.params if p.name == "refresh")
        assert refresh.default == 1.0


class TestInvocation:
    """Tests that need no server."""

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_groups(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "workflow" in result.output
        assert "dashboard" in result.output

    def test_bad_log_level(self):
        result = CliRunner().invoke(cli, ["--log-level", "LOUD", "run", "list"])
        assert result.exit_code == 2
