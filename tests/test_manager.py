"""Tests for the PackageManager facade"""

import pytest

from vpm_tool import PackageManager
from vpm_tool.api.exceptions import PackageNotFoundError

from .helpers import REPO_URL, package_archive, repository_descriptor, sha256, version_entry

TOOL = "com.example.tool"


def published(server, *versions, package_id=TOOL):
    entries = {}
    for version in versions:
        archive = package_archive(package_id, version)
        entry = version_entry(package_id, version, zipSHA256=sha256(archive))
        server.add(entry["url"], archive)
        entries[version] = entry
    return repository_descriptor({package_id: entries})


class TestRepositories:
    """Repository management through the manager"""

    def test_add_refresh_and_remove(self, manager_factory, server):
        manager = manager_factory()
        server.add(REPO_URL, published(server, "1.0.0"))

        repository = manager.add_repository(REPO_URL)

        assert repository.name == "Example Repo"
        assert manager.resolve(TOOL).version == "1.0.0"

        server.add(REPO_URL, published(server, "1.0.0", "1.1.0"))
        assert manager.refresh() == 1
        assert manager.resolve(TOOL).version == "1.1.0"

        assert manager.remove_repository("Example Repo")
        assert manager.resolve(TOOL) is None
        assert manager.repositories == []

    def test_remove_unknown_repository(self, manager_factory):
        assert not manager_factory().remove_repository("nothing")

    def test_import_external(self, manager_factory, server, tmp_path):
        external = tmp_path / "alcom"
        external.mkdir()
        (external / "repo.json").write_text(f'{{"repo": {{"url": "{REPO_URL}"}}}}', encoding="utf-8")
        server.add(REPO_URL, published(server, "1.0.0"))
        manager = manager_factory()

        assert manager.import_external(external) == 1
        assert manager.resolve(TOOL) is not None

    def test_defaults_are_copied_on_load(self, project_root, tool_config, server, tmp_path):
        defaults = tmp_path / "defaults"
        defaults.mkdir()
        (defaults / "example.json").write_text(
            '{"name": "Bundled", "url": "https://bundled.example.com/index.json"}', encoding="utf-8")
        manager = PackageManager(project_root, config=tool_config, transport=server.transport)

        repositories = manager.load_repositories(defaults_dir=defaults)

        assert [r.name for r in repositories] == ["Bundled"]


class TestQueriesAndInstall:
    """Resolution, install, outdated and history"""

    def test_install_package_by_id_and_version(self, manager_factory, server):
        manager = manager_factory(published(server, "1.0.0", "1.1.0"))

        result = manager.install_package(TOOL, version="1.0.0")

        assert result.is_success, result.error
        assert manager.installed_packages() == {TOOL: "1.0.0"}

    def test_unknown_package_raises(self, manager_factory):
        manager = manager_factory()

        with pytest.raises(PackageNotFoundError):
            manager.install_package("com.example.missing")
        with pytest.raises(PackageNotFoundError):
            manager.get_entry(TOOL, "9.9.9")

    def test_outdated(self, manager_factory, server):
        manager = manager_factory(published(server, "1.0.0", "1.1.0", "2.0.0-beta"))
        manager.install_package(TOOL, version="1.0.0")

        outdated = manager.outdated()

        assert [(o.package_id, o.installed, o.latest.version) for o in outdated] == [(TOOL, "1.0.0", "1.1.0")]
        assert manager.outdated(include_unstable=True)[0].latest.version == "2.0.0-beta"

    def test_install_then_remove_records_history(self, manager_factory, server):
        manager = manager_factory(published(server, "1.0.0"))

        manager.install(manager.resolve(TOOL))
        manager.remove(TOOL)

        assert [(h.action, h.package, h.success) for h in manager.history()] == [
            ("remove", TOOL, True),
            ("install", TOOL, True),
        ]
        assert len(manager.history(limit=1)) == 1

    def test_reconcile_manifest(self, manager_factory, server):
        manager = manager_factory(published(server, "1.0.0"))
        manager.install_package(TOOL)
        descriptor = manager.path_resolver.get_package_dir(TOOL) / "package.json"
        descriptor.write_text(f'{{"name": "{TOOL}", "version": "1.0.5"}}', encoding="utf-8")

        assert manager.reconcile_manifest() == 1
        assert manager.installed_packages() == {TOOL: "1.0.5"}

    def test_search(self, manager_factory, server):
        manager = manager_factory(published(server, "1.0.0"))

        assert [entry.package_id for entry in manager.search("example")] == [TOOL]
        assert manager.search("nothing-matches") == []


class TestConfiguration:
    """Configuration file and environment overrides"""

    def test_config_file_is_loaded(self, project_root):
        (project_root / ".vpm-tool.yaml").write_text(
            "packages_dir: Assets/Packages\ninclude_unstable: true\n", encoding="utf-8")

        manager = PackageManager(project_root)

        assert manager.config.include_unstable is True
        assert manager.path_resolver.get_packages_dir() == project_root.resolve() / "Assets" / "Packages"

    def test_packages_dir_environment_override(self, project_root, monkeypatch, tmp_path):
        monkeypatch.setenv("VPM_TOOL_PACKAGES_DIR", str(tmp_path / "elsewhere"))

        manager = PackageManager(project_root)

        assert manager.path_resolver.get_manifest_path() == tmp_path / "elsewhere" / "vpm-manifest.json"

    def test_separate_managers_do_not_share_state(self, tmp_path, tool_config, server):
        first_root = tmp_path / "first"
        second_root = tmp_path / "second"
        first_root.mkdir()
        second_root.mkdir()
        first = PackageManager(first_root, config=tool_config, transport=server.transport)
        second = PackageManager(second_root, config=tool_config, transport=server.transport)

        first.manifest_store.add_or_update(TOOL, "1.0.0")

        assert second.installed_packages() == {}
