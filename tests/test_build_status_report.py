"""
Tests for the build status report command
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from build_status.build_status_report import (
    fetch_log_text,
    main,
    parse_arguments,
    run,
    select_records,
    summarize_build,
)
from build_status.domain.builds import (
    Data,
    Issue,
    Links,
    Log,
    Release,
    ReleaseStatus,
    Result,
    Status,
    TimelineRecord,
)
from build_status.exceptions import NetworkError, NotFoundError
from build_status.secure_config import BuildStatusConfig, ConfigurationError


def make_record(record_id: str, name: str, issues=(), log_url: str = "") -> TimelineRecord:
    return TimelineRecord(
        id=record_id,
        parent_id="",
        type="Task",
        name=name,
        status=Status.COMPLETED,
        result=Result.FAILED if issues else Result.SUCCEEDED,
        warning_count=0,
        error_count=len(issues),
        log=Log(id=int(record_id), type="Container", url=log_url) if log_url else None,
        issues=tuple(issues),
    )


@pytest.fixture
def timeline():
    return (
        make_record(
            "1",
            "Build",
            issues=[Issue("error", "Code", "; expected", Data("error", "src/a.cs", "12", "5", "CS1002"))],
            log_url="https://example/logs/1",
        ),
        make_record("2", "Validate Vsix Localization", log_url="https://example/logs/2"),
        make_record("3", "Publish"),
    )


@pytest.fixture
def config():
    return BuildStatusConfig(
        organization_url="https://devdiv.visualstudio.com",
        pat="test-pat-token-1234567890",
        project_id="0bdbc590-a062-4c3f-b0f6-9383f67865ee",
        project_name="DevDiv",
        build_definition_id=5868,
    )


class TestSelectRecords:
    """Tests for select_records()"""

    def test_defaults_to_records_with_issues(self, sample_build, timeline):
        build = sample_build.with_timeline(timeline)

        assert [record.id for record in select_records(build)] == ["1"]

    def test_selects_by_name_case_insensitive(self, sample_build, timeline):
        build = sample_build.with_timeline(timeline)

        records = select_records(build, ["validate vsix localization", "PUBLISH"])

        assert [record.id for record in records] == ["2", "3"]


class TestSummarizeBuild:
    """Tests for report document assembly"""

    def test_summary_shape(self, sample_build, timeline, sample_links):
        build = sample_build.with_timeline(timeline)
        release = Release(id=64073, status=ReleaseStatus.ACTIVE, links=sample_links, name="Release-42", build=build)

        report = summarize_build(build, timeline[:1], {"1": "log text"}, release)

        assert report["build"]["id"] == 1626454
        assert report["build"]["result"] == "succeeded"
        assert report["definition"]["id"] == 5868
        assert report["record_count"] == 3
        assert report["release"]["status"] == "active"
        record = report["records"][0]
        assert record["log"] == "log text"
        assert record["log_url"] == "https://example/logs/1"
        assert record["issues"][0]["location"] == "src/a.cs(12,5)"
        assert record["issues"][0]["code"] == "CS1002"

    def test_summary_without_release_or_logs(self, sample_build, timeline):
        report = summarize_build(sample_build.with_timeline(timeline), timeline[2:])

        assert report["release"] is None
        assert "log" not in report["records"][0]
        assert report["records"][0]["log_url"] is None


class TestFetchLogText:
    """Tests for fetch_log_text()"""

    @pytest.mark.asyncio
    async def test_returns_log_content(self, timeline):
        client = Mock()
        client.get_log_content = AsyncMock(return_value="##[error]CS1002")

        assert await fetch_log_text(client, timeline[0]) == "##[error]CS1002"

    @pytest.mark.asyncio
    async def test_record_without_log(self, timeline):
        client = Mock()
        client.get_log_content = AsyncMock()

        assert await fetch_log_text(client, timeline[2]) == ""
        client.get_log_content.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [NetworkError("HTTP 404", url="https://example/logs/1", status_code=404), NotFoundError("Log", 1)],
    )
    async def test_failed_download_yields_empty_string(self, timeline, error):
        client = Mock()
        client.get_log_content = AsyncMock(side_effect=error)

        assert await fetch_log_text(client, timeline[0]) == ""


class TestMain:
    """Tests for main()"""

    @pytest.fixture
    def mock_client(self, sample_definition, sample_build, timeline, sample_links):
        client = Mock()
        client.get_build_definition = AsyncMock(return_value=sample_definition)
        client.get_latest_build = AsyncMock(return_value=sample_build)
        client.get_latest_build_for_branch = AsyncMock(return_value=sample_build)
        client.populate_timeline = AsyncMock(return_value=sample_build.with_timeline(timeline))
        client.get_log_content = AsyncMock(side_effect=lambda log: f"log {log.id}")
        client.get_release = AsyncMock(
            return_value=Release(
                id=64073, status=ReleaseStatus.ACTIVE, links=sample_links, name="Release-42", build=sample_build
            )
        )
        return client

    @pytest.mark.asyncio
    async def test_latest_build_on_any_branch(self, config, mock_client):
        with patch("build_status.build_status_report.validate_config_on_startup", return_value=config):
            with patch("build_status.build_status_report.get_build_rest_client", return_value=mock_client):
                report = await main()

        mock_client.get_build_definition.assert_awaited_once()
        assert mock_client.get_build_definition.call_args[0][1] == 5868
        mock_client.get_latest_build.assert_awaited_once()
        mock_client.get_latest_build_for_branch.assert_not_called()
        assert [record["id"] for record in report["records"]] == ["1"]
        assert report["release"] is None

    @pytest.mark.asyncio
    async def test_branch_logs_and_release(self, config, mock_client):
        with patch("build_status.build_status_report.validate_config_on_startup", return_value=config):
            with patch("build_status.build_status_report.get_build_rest_client", return_value=mock_client):
                report = await main(
                    definition_id=42,
                    branch="refs/heads/main",
                    record_names=["Build", "Publish"],
                    include_logs=True,
                    include_release=True,
                )

        assert mock_client.get_build_definition.call_args[0][1] == 42
        mock_client.get_latest_build_for_branch.assert_awaited_once()
        assert mock_client.get_latest_build_for_branch.call_args[0][1] == "refs/heads/main"
        assert [record.get("log") for record in report["records"]] == ["log 1", None]
        assert report["release"]["id"] == 64073

    @pytest.mark.asyncio
    async def test_missing_release_is_not_fatal(self, config, mock_client):
        mock_client.get_release = AsyncMock(side_effect=NotFoundError("Release for build", 1626454))

        with patch("build_status.build_status_report.validate_config_on_startup", return_value=config):
            with patch("build_status.build_status_report.get_build_rest_client", return_value=mock_client):
                report = await main(include_release=True)

        assert report["release"] is None

    @pytest.mark.asyncio
    async def test_missing_definition_id(self, config):
        config.build_definition_id = None

        with patch("build_status.build_status_report.validate_config_on_startup", return_value=config):
            with pytest.raises(ConfigurationError, match="definition-id"):
                await main()

    @pytest.mark.asyncio
    async def test_explicit_zero_definition_id_is_kept(self, config, mock_client):
        with patch("build_status.build_status_report.validate_config_on_startup", return_value=config):
            with patch("build_status.build_status_report.get_build_rest_client", return_value=mock_client):
                await main(definition_id=0)

        assert mock_client.get_build_definition.call_args[0][1] == 0


class TestCommandLine:
    """Tests for parse_arguments() and run()"""

    def test_parse_arguments_defaults(self):
        args = parse_arguments([])

        assert args.definition_id is None
        assert args.branch is None
        assert args.records is None
        assert args.include_logs is False
        assert args.output_file == ".tmp/build_status/latest_build.json"

    def test_parse_repeated_records(self):
        args = parse_arguments(["--record", "Build", "--record", "Publish", "--definition-id", "5868"])

        assert args.records == ["Build", "Publish"]
        assert args.definition_id == 5868

    def test_run_writes_report(self, tmp_path):
        output_file = tmp_path / "report.json"

        with patch("build_status.build_status_report.setup_logging"):
            with patch("build_status.build_status_report.main", new_callable=AsyncMock, return_value={"ok": True}):
                exit_code = run(["--output-file", str(output_file)])

        assert exit_code == 0
        assert json.loads(output_file.read_text(encoding="utf-8")) == {"ok": True}

    def test_run_returns_error_on_resolution_failure(self, tmp_path):
        output_file = tmp_path / "report.json"
        error = NetworkError("HTTP 401", url="https://example", status_code=401)

        with patch("build_status.build_status_report.setup_logging"):
            with patch("build_status.build_status_report.main", new_callable=AsyncMock, side_effect=error):
                exit_code = run(["--output-file", str(output_file)])

        assert exit_code == 1
        assert not output_file.exists()

    def test_run_returns_error_on_configuration_failure(self):
        with patch("build_status.build_status_report.setup_logging"):
            with patch(
                "build_status.build_status_report.main",
                new_callable=AsyncMock,
                side_effect=ConfigurationError("ADO_PAT is required"),
            ):
                assert run([]) == 1

    def test_run_reports_unreachable_server(self, tmp_path):
        error = NetworkError("Connection refused", url="https://example")

        with patch("build_status.build_status_report.setup_logging"):
            with patch("build_status.build_status_report.main", new_callable=AsyncMock, side_effect=error):
                with patch("build_status.build_status_report.logger") as mock_logger:
                    exit_code = run(["--output-file", str(tmp_path / "report.json")])

        assert exit_code == 1
        assert "server unreachable" in mock_logger.error.call_args[0][0]

    def test_run_reports_http_status(self, tmp_path):
        error = NetworkError("HTTP 503", url="https://example", status_code=503)

        with patch("build_status.build_status_report.setup_logging"):
            with patch("build_status.build_status_report.main", new_callable=AsyncMock, side_effect=error):
                with patch("build_status.build_status_report.logger") as mock_logger:
                    exit_code = run(["--output-file", str(tmp_path / "report.json")])

        assert exit_code == 1
        message = mock_logger.error.call_args[0][0]
        assert "HTTP 503" in message
        assert "unreachable" not in message

    def test_run_returns_error_when_output_cannot_be_written(self, tmp_path):
        with patch("build_status.build_status_report.setup_logging"):
            with patch("build_status.build_status_report.main", new_callable=AsyncMock, return_value={"ok": True}):
                with patch(
                    "build_status.build_status_report.atomic_json_save",
                    side_effect=PermissionError("read-only file system"),
                ):
                    exit_code = run(["--output-file", str(tmp_path / "report.json")])

        assert exit_code == 1
