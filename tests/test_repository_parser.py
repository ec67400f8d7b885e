"""Tests for repository descriptor decoding"""

import json

import pytest

from vpm_tool.api.exceptions import RepositoryParseError
from vpm_tool.core.repository_parser import RepositoryParser, parse_repository

from .helpers import REPO_URL, repository_descriptor, version_entry


class TestDescriptorShapes:
    """Each accepted wire shape decodes to the same model"""

    def test_direct_fields(self):
        descriptor = repository_descriptor({
            "com.example.tool": {"1.0.0": version_entry("com.example.tool", "1.0.0")}
        })
        repository = parse_repository(json.dumps(descriptor))

        assert repository.name == "Example Repo"
        assert repository.url == REPO_URL
        assert repository.id == "com.example.repo"
        version = repository.packages["com.example.tool"].versions["1.0.0"]
        assert version.package_id == "com.example.tool"
        assert version.download_url.endswith("com.example.tool-1.0.0.zip")

    def test_repo_wrapper_with_top_level_packages(self):
        data = {
            "repo": {"name": "Wrapped", "url": REPO_URL},
            "packages": {"com.example.tool": {"versions": {"1.0.0": {"version": "1.0.0"}}}},
        }
        repository = parse_repository(data)

        assert repository.name == "Wrapped"
        assert "com.example.tool" in repository.packages

    def test_repositories_map_takes_first_entry_with_url(self):
        data = {
            "repositories": {
                "broken": {"name": "No url"},
                "com.example.repo": {"name": "Example", "url": REPO_URL},
            }
        }
        repository = parse_repository(data)

        assert repository.id == "com.example.repo"
        assert repository.url == REPO_URL
        assert repository.packages == {}

    def test_keys_are_case_insensitive(self):
        data = {
            "Name": "Upper",
            "URL": REPO_URL,
            "Packages": {"com.example.tool": {"Versions": {"1.0.0": {"Version": "1.0.0", "ZipSHA256": "ab"}}}},
        }
        repository = parse_repository(data)

        assert repository.name == "Upper"
        assert repository.packages["com.example.tool"].versions["1.0.0"].content_hash == "ab"

    def test_utf8_bom_is_accepted(self):
        content = "\ufeff" + json.dumps({"url": REPO_URL})
        assert parse_repository(content.encode("utf-8")).url == REPO_URL


class TestVersionEntries:
    """Fields of a single version"""

    def test_author_object_and_string(self):
        data = {"packages": {
            "a": {"versions": {"1.0.0": {"author": {"name": "Alice", "url": "https://alice.example"}}}},
            "b": {"versions": {"1.0.0": {"author": "Bob"}}},
        }}
        repository = parse_repository(data)

        a = repository.packages["a"].versions["1.0.0"]
        b = repository.packages["b"].versions["1.0.0"]
        assert (a.author_name, a.author_url) == ("Alice", "https://alice.example")
        assert b.author_name == "Bob"

    def test_version_falls_back_to_key(self):
        repository = parse_repository({"packages": {"a": {"versions": {"2.1.0": {}}}}})
        assert repository.packages["a"].versions["2.1.0"].version == "2.1.0"

    def test_malformed_entries_are_skipped(self):
        repository = parse_repository({"packages": {
            "good": {"versions": {"1.0.0": {}, "bad": "not an object"}},
            "broken": ["nope"],
        }})
        assert list(repository.packages) == ["good"]
        assert list(repository.packages["good"].versions) == ["1.0.0"]


class TestParseErrors:
    """Rejected descriptors"""

    @pytest.mark.parametrize("content", ["", "   ", b""])
    def test_empty(self, content):
        with pytest.raises(RepositoryParseError):
            parse_repository(content)

    def test_invalid_json(self):
        with pytest.raises(RepositoryParseError) as exc_info:
            parse_repository("{not json", source="broken.json")
        assert exc_info.value.source == "broken.json"

    def test_root_must_be_object(self):
        with pytest.raises(RepositoryParseError):
            parse_repository("[1, 2, 3]")

    def test_no_url_and_no_packages(self):
        with pytest.raises(RepositoryParseError):
            parse_repository({"name": "Nameless"})

    def test_custom_strategy_list(self):
        parser = RepositoryParser(strategies=[])
        with pytest.raises(RepositoryParseError):
            parser.parse({"url": REPO_URL})
