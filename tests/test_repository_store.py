"""Tests for the repository store"""

import json
from pathlib import Path

import pytest

from vpm_tool.api.exceptions import CorruptionError, NetworkError, OperationCancelledError
from vpm_tool.core.repository_store import RepositoryStore, derive_repository_name
from vpm_tool.models.config import DownloadConfig
from vpm_tool.models.result import OperationStatus
from vpm_tool.services.download_service import DownloadService
from vpm_tool.utils.async_utils import CancellationToken

from .helpers import REPO_URL, repository_descriptor, version_entry

OTHER_URL = "https://packages.other.org/vpm.json"


@pytest.fixture
def repos_dir(tmp_path) -> Path:
    return tmp_path / "repositories"


@pytest.fixture
def store(repos_dir, server) -> RepositoryStore:
    service = DownloadService(DownloadConfig(retry_count=1, retry_delay=0), transport=server.transport)
    return RepositoryStore(repos_dir, service)


def write_descriptor(directory: Path, filename: str, data) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


class TestDeriveName:
    """Names derived from URL hosts"""

    def test_second_level_domain(self):
        assert derive_repository_name("https://vpm.example.com/index.json") == "Example Repo"

    def test_invalid_url_gets_timestamped_name(self):
        assert derive_repository_name("not a url").startswith("Repository_")


class TestLoading:
    """Loading cached descriptors"""

    def test_load_all_in_file_order(self, store, repos_dir):
        write_descriptor(repos_dir, "b.json", repository_descriptor({}, name="B", url=OTHER_URL))
        write_descriptor(repos_dir, "a.json", repository_descriptor({}, name="A"))

        repositories = store.load_all()

        assert [r.name for r in repositories] == ["A", "B"]
        assert repositories[0].local_path == repos_dir / "a.json"

    def test_corrupt_file_is_deleted(self, store, repos_dir):
        corrupt = write_descriptor(repos_dir, "corrupt.json", "{broken")
        (repos_dir / "corrupt.json.meta").write_text("meta", encoding="utf-8")
        write_descriptor(repos_dir, "good.json", repository_descriptor({}))

        repositories = store.load_all()

        assert len(repositories) == 1
        assert not corrupt.exists()
        assert not (repos_dir / "corrupt.json.meta").exists()

    def test_load_file_raises_corruption_error(self, store, repos_dir):
        path = write_descriptor(repos_dir, "empty.json", "")

        with pytest.raises(CorruptionError) as exc_info:
            store.load_file(path)

        assert exc_info.value.path == str(path)
        assert path.exists()

    def test_listeners_receive_snapshot(self, store, repos_dir):
        write_descriptor(repos_dir, "a.json", repository_descriptor({}))
        seen = []
        store.add_listener(seen.append)

        store.load_all()

        assert len(seen) == 1 and len(seen[0]) == 1


class TestAddFromUrl:
    """Adding repositories from the network"""

    async def test_add_persists_descriptor(self, store, server, repos_dir):
        server.add(REPO_URL, repository_descriptor({
            "com.example.tool": {"1.0.0": version_entry("com.example.tool", "1.0.0")}
        }))

        repository = await store.add_from_url(REPO_URL)

        assert repository.package_count == 1
        assert repository.local_path == repos_dir / "Example Repo.json"
        saved = json.loads(repository.local_path.read_text(encoding="utf-8"))
        assert saved["packages"]["com.example.tool"]["versions"]["1.0.0"]["version"] == "1.0.0"
        assert store.repositories == [repository]

    async def test_missing_name_and_url_are_filled(self, store, server):
        server.add(OTHER_URL, {"packages": {}})

        repository = await store.add_from_url(OTHER_URL)

        assert repository.name == "Other Repo"
        assert repository.url == OTHER_URL

    async def test_duplicate_by_url_is_rejected(self, store, server):
        server.add(REPO_URL, repository_descriptor({}))
        first = await store.add_from_url(REPO_URL)

        server.add(REPO_URL, repository_descriptor({}, name="Renamed", repo_id="other.id"))
        second = await store.add_from_url(REPO_URL)

        assert first is not None
        assert second is None
        assert len(store.repositories) == 1

    async def test_duplicate_by_name_and_id(self, store, server):
        server.add(REPO_URL, repository_descriptor({}))
        server.add(OTHER_URL, repository_descriptor({}, url=OTHER_URL))

        await store.add_from_url(REPO_URL)

        assert await store.add_from_url(OTHER_URL) is None

    async def test_same_name_different_source_gets_own_file(self, store, server, repos_dir):
        server.add(REPO_URL, repository_descriptor({}))
        server.add(OTHER_URL, repository_descriptor({}, url=OTHER_URL, repo_id="org.other.repo"))

        first = await store.add_from_url(REPO_URL)
        second = await store.add_from_url(OTHER_URL)

        assert first.local_path == repos_dir / "Example Repo.json"
        assert second.local_path == repos_dir / "Example Repo_org.other.repo.json"
        assert first.local_path.exists()

        reloaded = store.load_all()
        assert sorted(repository.url for repository in reloaded) == sorted([REPO_URL, OTHER_URL])

    async def test_http_error_raises_network_error(self, store, server):
        server.add(REPO_URL, 404)

        with pytest.raises(NetworkError):
            await store.add_from_url(REPO_URL)
        assert server.count(REPO_URL) == 1

    async def test_server_error_is_retried(self, store, server):
        server.add(REPO_URL, [503, json.dumps(repository_descriptor({})).encode("utf-8")])

        repository = await store.add_from_url(REPO_URL)

        assert repository is not None
        assert server.count(REPO_URL) == 2


class TestRefresh:
    """Refreshing URL-backed repositories"""

    async def test_failure_keeps_cached_copy(self, store, server, repos_dir):
        write_descriptor(repos_dir, "a.json", repository_descriptor({}, name="A"))
        write_descriptor(repos_dir, "b.json", repository_descriptor({}, name="B", url=OTHER_URL, repo_id="b"))
        store.load_all()
        server.add(REPO_URL, repository_descriptor({
            "com.example.tool": {"1.0.0": version_entry("com.example.tool", "1.0.0")}
        }, name="A"))
        server.add(OTHER_URL, 500)

        result = await store.refresh_all()

        assert result.status == OperationStatus.PARTIAL
        assert result.refreshed == ["A"]
        assert result.kept == ["B"]
        names = {r.name: r for r in store.repositories}
        assert names["A"].package_count == 1
        assert (repos_dir / "b.json").exists()

    async def test_repository_without_url_is_skipped(self, store, repos_dir):
        write_descriptor(repos_dir, "local.json", {"name": "Local", "packages": {}})
        store.load_all()

        result = await store.refresh_all()

        assert result.is_success
        assert result.skipped == ["Local"]
        assert len(store.repositories) == 1

    async def test_renamed_file_replaces_old_one(self, store, server, repos_dir):
        old = write_descriptor(repos_dir, "old name.json", repository_descriptor({}, name="Old"))
        store.load_all()
        server.add(REPO_URL, repository_descriptor({}, name="New"))

        await store.refresh_all()

        assert not old.exists()
        assert (repos_dir / "New.json").exists()

    async def test_cancellation_propagates(self, store, repos_dir):
        write_descriptor(repos_dir, "a.json", repository_descriptor({}))
        store.load_all()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await store.refresh_all(cancel_token=token)


class TestRemoveAndFind:
    """Removing and looking up repositories"""

    def test_remove_deletes_file_and_meta(self, store, repos_dir):
        path = write_descriptor(repos_dir, "a.json", repository_descriptor({}))
        (repos_dir / "a.json.meta").write_text("meta", encoding="utf-8")
        store.load_all()

        assert store.remove(store.find("example repo"))

        assert not path.exists()
        assert not (repos_dir / "a.json.meta").exists()
        assert store.repositories == []

    def test_find_by_id_or_url(self, store, repos_dir):
        write_descriptor(repos_dir, "a.json", repository_descriptor({}))
        store.load_all()

        assert store.find("COM.EXAMPLE.REPO") is not None
        assert store.find(REPO_URL) is not None
        assert store.find("missing") is None


class TestDefaultsAndExternal:
    """Bundled defaults and VCC/ALCOM imports"""

    def test_copy_defaults_once(self, store, tmp_path, repos_dir):
        defaults = tmp_path / "defaults"
        write_descriptor(defaults, "default.json", repository_descriptor({}))

        assert store.copy_defaults(defaults) == 1
        assert store.have_defaults_been_imported()

        (repos_dir / "default.json").unlink()
        assert store.copy_defaults(defaults) == 0
        assert store.copy_defaults(defaults, force=True) == 1

    def test_candidates_on_linux(self, tmp_path):
        candidates = RepositoryStore.external_repository_candidates(
            environ={"XDG_DATA_HOME": str(tmp_path / "data")}, home=tmp_path / "home", platform="linux"
        )

        assert candidates[0] == tmp_path / "data" / "VRChatCreatorCompanion" / "Repos"
        assert tmp_path / "home" / ".local" / "share" / "ALCOM" / "Repos" in candidates
        assert tmp_path / "home" / "ALCOM" / "Repositories" in candidates

    def test_candidates_on_windows(self, tmp_path):
        candidates = RepositoryStore.external_repository_candidates(
            environ={"LOCALAPPDATA": str(tmp_path / "local")}, home=tmp_path, platform="win32"
        )

        assert candidates[0] == tmp_path / "local" / "VRChatCreatorCompanion" / "Repos"

    def test_find_external_directory(self, tmp_path):
        external = tmp_path / "home" / ".local" / "share" / "ALCOM" / "Repos"
        external.mkdir(parents=True)

        found = RepositoryStore.find_external_repositories_dir(environ={}, home=tmp_path / "home", platform="linux")

        assert found == external

    async def test_import_external(self, store, server, tmp_path):
        external = tmp_path / "vcc"
        write_descriptor(external, "vcc-format.json", {"repo": {"name": "Example", "url": REPO_URL}})
        write_descriptor(external, "map-format.json", {"repositories": {"other": {"url": OTHER_URL}}})
        write_descriptor(external, "no-url.json", {"name": "Nothing"})
        server.add(REPO_URL, repository_descriptor({}))
        server.add(OTHER_URL, repository_descriptor({}, name="Other", url=OTHER_URL, repo_id="other"))

        imported = await store.import_external(external)

        assert imported == 2
        assert {r.name for r in store.repositories} == {"Example Repo", "Other"}

    async def test_import_skips_known_repositories(self, store, server, tmp_path):
        server.add(REPO_URL, repository_descriptor({}))
        await store.add_from_url(REPO_URL)
        external = tmp_path / "vcc"
        write_descriptor(external, "known.json", {"repo": {"url": REPO_URL}})

        assert await store.import_external(external) == 0
        assert server.count(REPO_URL) == 1
