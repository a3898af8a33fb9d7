"""Tests for artifactory_resource.reporter."""

from __future__ import annotations

import io

import pytest

from artifactory_resource.reporter import Reporter, normalize_level


class TestNormalizeLevel:
    @pytest.mark.parametrize(
        ("given", "expected"),
        [
            ("debug", "DEBUG"),
            ("WARN", "WARN"),
            ("warning", "WARN"),
            (" error ", "ERROR"),
            ("", "INFO"),
            (None, "INFO"),
            ("verbose", "INFO"),
        ],
    )
    def test_levels(self, given: str | None, expected: str) -> None:
        assert normalize_level(given) == expected


class TestReporter:
    def test_threshold(self) -> None:
        stream = io.StringIO()
        reporter = Reporter("WARN", stream=stream)

        reporter.debug("debug line")
        reporter.info("info line")
        reporter.step("step line")
        reporter.warning("warn line")
        reporter.error("error line")

        output = stream.getvalue()
        assert "debug line" not in output
        assert "info line" not in output
        assert "step line" not in output
        assert "WARN: warn line" in output
        assert "ERROR: error line" in output

    def test_step_header(self) -> None:
        stream = io.StringIO()
        Reporter(stream=stream).step("Uploading")
        assert "Uploading" in stream.getvalue()
        assert "─" * 60 in stream.getvalue()

    def test_fatal_always_printed(self) -> None:
        stream = io.StringIO()
        reporter = Reporter("ERROR", stream=stream)

        with pytest.raises(SystemExit) as exc_info:
            reporter.fatal("bad config")

        assert exc_info.value.code == 1
        assert stream.getvalue() == "ERROR: bad config\n"

    def test_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter().info("hello")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "hello\n"
