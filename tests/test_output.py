"""Tests for output formatting utilities."""

import json

import yaml

from pdcli.core.output import OutputFormat, OutputFormatter


class TestOutputFormatter:
    """Tests for OutputFormatter class."""

    def test_quiet_mode_suppresses_output(self, capsys):
        formatter = OutputFormatter(quiet=True, color=False)
        formatter.print("test message")
        formatter.print_info("info message")
        formatter.print_warning("warning message")
        formatter.print_success("success message")
        captured = capsys.readouterr()
        assert "test message" not in captured.out
        assert "info message" not in captured.out

    def test_error_always_prints(self, capsys):
        formatter = OutputFormatter(quiet=True, color=False)
        formatter.print_error("error message")
        captured = capsys.readouterr()
        assert "error message" in captured.err

    def test_json_output(self, capsys):
        formatter = OutputFormatter(format=OutputFormat.JSON, color=False)
        data = {"name": "test", "value": 123}
        formatter.print_data(data)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == data

    def test_json_output_list(self, capsys):
        formatter = OutputFormatter(format=OutputFormat.JSON, color=False)
        data = ["teams", "sso"]
        formatter.print_data(data)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == data

    def test_yaml_is_default(self, capsys):
        formatter = OutputFormatter(color=False)
        data = {"name": "test", "value": 123}
        formatter.print_data(data)
        captured = capsys.readouterr()
        assert yaml.safe_load(captured.out) == data


class TestOutputFormat:
    """Tests for OutputFormat enum."""

    def test_values(self):
        assert OutputFormat.JSON.value == "json"
        assert OutputFormat.YAML.value == "yaml"

    def test_string_comparison(self):
        assert OutputFormat.JSON == "json"
