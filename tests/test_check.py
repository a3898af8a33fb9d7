"""Tests for artifactory_resource.check."""

from __future__ import annotations

import io
import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from artifactory_resource.check import main, run_check, search_spec
from artifactory_resource.client import SearchSpec
from artifactory_resource.errors import ArtifactoryError
from artifactory_resource.models import CheckRequest, ResourceVersion, Source
from artifactory_resource.reporter import Reporter


def _request(version: str = "", previous: str | None = None) -> CheckRequest:
    return CheckRequest.model_validate(
        {
            "source": {
                "url": "https://art.example.com/artifactory",
                "pattern": "libs-release/app/*.zip",
                "props": "env=prod",
                "version": version,
            },
            "version": {"version": previous} if previous is not None else None,
        }
    )


class TestSearchSpec:
    def test_built_from_source(self) -> None:
        assert search_spec(_request()) == SearchSpec(
            pattern="libs-release/app/*.zip", props="env=prod", recursive=True
        )

    def test_upload_only_options_do_not_change_search(self) -> None:
        """flat and regexp only matter to out."""
        request = _request()
        request.source.flat = True
        request.source.regexp = True
        assert search_spec(request) == search_spec(_request())


class TestRunCheck:
    """Tests for run_check()."""

    def test_versioned(
        self, client: MagicMock, reporter: Reporter, candidates: list[str]
    ) -> None:
        client.search.return_value = candidates

        result = run_check(
            _request(">=1.0.0 <2.0.0", "libs-release/app/app-1.0.0.zip"),
            client,
            reporter,
        )

        assert result == [
            ResourceVersion(version="libs-release/app/app-1.0.0.zip"),
            ResourceVersion(version="libs-release/app/app-1.5.0.zip"),
            ResourceVersion(version="libs-release/app/app-1.10.0.zip"),
        ]

    def test_unversioned(
        self, client: MagicMock, reporter: Reporter, candidates: list[str]
    ) -> None:
        client.search.return_value = candidates
        result = run_check(_request(), client, reporter)
        assert [v.version for v in result] == candidates

    def test_no_results(self, client: MagicMock, reporter: Reporter) -> None:
        client.search.return_value = []
        assert run_check(_request(">=1.0.0", "a-1.0.0.zip"), client, reporter) == []

    def test_search_failure_is_fatal(
        self, client: MagicMock, reporter: Reporter, log_stream: io.StringIO
    ) -> None:
        client.search.side_effect = ArtifactoryError("Artifactory API error 500: boom")

        with pytest.raises(SystemExit) as exc_info:
            run_check(_request(">=1.0.0"), client, reporter)

        assert exc_info.value.code == 1
        assert "Error when trying to find latest file" in log_stream.getvalue()

    def test_invalid_range_is_fatal(
        self,
        client: MagicMock,
        reporter: Reporter,
        log_stream: io.StringIO,
        candidates: list[str],
    ) -> None:
        client.search.return_value = candidates

        with pytest.raises(SystemExit):
            run_check(_request(">=one"), client, reporter)

        assert "Error when retrieving versions" in log_stream.getvalue()


class TestMain:
    """Tests for main(), the /opt/resource/check entry point."""

    @patch("artifactory_resource.check.ArtifactoryClient")
    def test_prints_versions_as_json(
        self,
        mock_client_cls: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = _request(">=1.0.0").model_dump_json()
        monkeypatch.setattr(sys, "stdin", io.StringIO(payload))
        mock_client_cls.from_source.return_value.search.return_value = [
            "libs/app-1.1.0.zip",
            "libs/app-1.0.0.zip",
        ]

        main()

        out = capsys.readouterr()
        assert json.loads(out.out) == [
            {"version": "libs/app-1.0.0.zip"},
            {"version": "libs/app-1.1.0.zip"},
        ]
        # Logs stay off stdout
        assert "Searching files matching" in out.err
        source = mock_client_cls.from_source.call_args.args[0]
        assert isinstance(source, Source)

    def test_invalid_payload(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(sys, "stdin", io.StringIO('{"source": []}'))

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Error when parsing source from concourse" in capsys.readouterr().err

    def test_missing_url(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(
            sys, "stdin", io.StringIO('{"source": {"pattern": "libs/*"}}')
        )

        with pytest.raises(SystemExit):
            main()

        assert "You must set an url in source." in capsys.readouterr().err
