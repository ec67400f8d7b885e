"""Tests for the download and configuration services"""

import httpx
import pytest
import yaml

from vpm_tool.api.exceptions import ConfigError, NetworkError, OperationCancelledError
from vpm_tool.models.config import DownloadConfig, ToolConfig
from vpm_tool.services.config_service import ConfigService
from vpm_tool.services.download_service import DownloadService
from vpm_tool.utils.async_utils import CancellationToken

URL = "https://files.example.com/archive.zip"


@pytest.fixture
def service(server):
    return DownloadService(DownloadConfig(retry_count=2, retry_delay=0, chunk_size=4), transport=server.transport)


class TestDownloadService:
    """Streaming downloads with retry"""

    async def test_download_file_reports_progress(self, service, server, tmp_path):
        server.add(URL, b"0123456789")
        progress = []

        path = await service.download_file(URL, tmp_path / "out" / "archive.zip", on_progress=progress.append)

        assert path.read_bytes() == b"0123456789"
        assert not (tmp_path / "out" / "archive.zip.part").exists()
        assert progress[-1] == 1.0
        assert progress == sorted(progress)

    async def test_client_errors_are_not_retried(self, service, server, tmp_path):
        server.add(URL, 403)

        with pytest.raises(NetworkError) as exc_info:
            await service.download_file(URL, tmp_path / "archive.zip")

        assert exc_info.value.url == URL
        assert server.count(URL) == 1
        assert not (tmp_path / "archive.zip").exists()

    async def test_server_errors_retry_until_exhausted(self, service, server):
        server.add(URL, 502)

        with pytest.raises(NetworkError):
            await service.fetch_bytes(URL)

        assert server.count(URL) == 3

    async def test_transport_errors_are_retried(self, tmp_path):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=b"ok")

        service = DownloadService(DownloadConfig(retry_count=1, retry_delay=0), transport=httpx.MockTransport(handler))

        assert await service.fetch_bytes(URL) == b"ok"
        assert len(attempts) == 2

    async def test_cancelled_download(self, service, server, tmp_path):
        server.add(URL, b"data")
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await service.download_file(URL, tmp_path / "archive.zip", cancel_token=token)

    def test_retry_delay_backoff(self):
        config = DownloadConfig(retry_delay=1.0, backoff_multiplier=2.0, max_retry_delay=5.0)

        assert [config.get_retry_delay(attempt) for attempt in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]


class TestConfigService:
    """YAML configuration"""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert ConfigService(tmp_path).config == ToolConfig()

    def test_environment_variables_are_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VPM_TEST_PACKAGES", "Custom")
        (tmp_path / ".vpm-tool.yaml").write_text("packages_dir: ${VPM_TEST_PACKAGES}/Packages\n", encoding="utf-8")

        assert ConfigService(tmp_path).config.packages_dir == "Custom/Packages"

    def test_nested_sections(self, tmp_path):
        (tmp_path / ".vpm-tool.yaml").write_text(
            "download:\n  retry_count: 7\n"
            "constraints:\n  protected: [com.example.keep]\n  mutually_exclusive: [[a, b]]\n",
            encoding="utf-8")

        config = ConfigService(tmp_path).config

        assert config.download.retry_count == 7
        assert config.constraints.protected == ["com.example.keep"]
        assert config.constraints.mutually_exclusive == [("a", "b")]

    @pytest.mark.parametrize("content", ["packages_dir: [unclosed", "- a list\n", "unknown_key: 1\n",
                                         "download:\n  bogus: 1\n"])
    def test_invalid_files(self, tmp_path, content):
        (tmp_path / ".vpm-tool.yaml").write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError):
            ConfigService(tmp_path).load_config()

    def test_explicit_path_and_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VPM_TOOL_CONFIG", str(tmp_path / "from-env.yaml"))

        assert ConfigService(tmp_path).config_path == tmp_path / "from-env.yaml"
        assert ConfigService(tmp_path, tmp_path / "explicit.yaml").config_path == tmp_path / "explicit.yaml"

    def test_save_keeps_backup(self, tmp_path):
        service = ConfigService(tmp_path)
        service.save_config(ToolConfig(include_unstable=True))
        service.save_config(ToolConfig(include_unstable=False))

        assert yaml.safe_load((tmp_path / ".vpm-tool.yaml").read_text(encoding="utf-8"))["include_unstable"] is False
        assert yaml.safe_load((tmp_path / ".vpm-tool.yaml.bak").read_text(encoding="utf-8"))["include_unstable"] is True
        assert ConfigService(tmp_path).config.include_unstable is False
