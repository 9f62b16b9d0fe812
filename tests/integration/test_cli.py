"""
Integration tests for the command line interface.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from fuzz_hunter import main
from fuzz_hunter.core.http_client import create_http_client


@pytest.fixture
def mock_target(monkeypatch):
    """Route every request of the CLI through a mock transport."""

    def handler(request):
        if request.url.path == "/admin":
            return httpx.Response(200, text="admin panel\n")
        return httpx.Response(404, text="not found\n")

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        main,
        "create_http_client",
        lambda config, **kwargs: create_http_client(config, transport=transport),
    )
    return transport


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """End-to-end runs of ``fuzz-hunter``."""

    def test_csv_output(self, runner, mock_target, make_wordlist, tmp_path):
        wordlist = make_wordlist(["admin", "missing"])
        output = tmp_path / "results" / "out.csv"

        result = runner.invoke(main.cli, [
            "-u", "http://target.local",
            "-w", str(wordlist),
            "-o", str(output),
            "-of", "csv",
            "--no-progress",
        ])

        assert result.exit_code == 0, result.output
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Content-Length;Words;Lines;Header;Status-Code;Payload"
        assert len(lines) == 2
        assert lines[1].startswith("12;2;1;")
        assert lines[1].endswith(";200;admin")

    def test_json_output_with_404(self, runner, mock_target, make_wordlist, tmp_path):
        wordlist = make_wordlist(["admin", "missing"])
        output = tmp_path / "out.json"

        result = runner.invoke(main.cli, [
            "-u", "target.local",
            "-w", str(wordlist),
            "-o", str(output),
            "-of", "json",
            "--404",
            "--no-progress",
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert sorted(item["status_code"] for item in data) == [200, 404]

    def test_output_requires_format(self, runner, make_wordlist, tmp_path):
        result = runner.invoke(main.cli, [
            "-u", "target.local",
            "-w", str(make_wordlist(["a"])),
            "-o", str(tmp_path / "out.csv"),
        ])

        assert result.exit_code == 2
        assert "output format" in result.output

    def test_format_requires_output(self, runner, make_wordlist):
        result = runner.invoke(main.cli, [
            "-u", "target.local",
            "-w", str(make_wordlist(["a"])),
            "-of", "csv",
        ])

        assert result.exit_code == 2

    def test_missing_wordlist(self, runner, tmp_path):
        result = runner.invoke(main.cli, ["-u", "target.local", "-w", str(tmp_path / "nope.txt")])

        assert result.exit_code == 2
        assert "Wordlist not found" in result.output

    def test_invalid_extension(self, runner, make_wordlist):
        result = runner.invoke(main.cli, [
            "-u", "target.local",
            "-w", str(make_wordlist(["a"])),
            "-x", "php",
        ])

        assert result.exit_code == 2
        assert "Invalid extension" in result.output

    def test_concurrency_out_of_range(self, runner, make_wordlist):
        result = runner.invoke(main.cli, [
            "-u", "target.local",
            "-w", str(make_wordlist(["a"])),
            "-t", "0",
        ])

        assert result.exit_code == 2
