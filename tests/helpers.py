"""Test helpers: in-memory package archives, descriptors and a fake HTTP server"""

import hashlib
import io
import json
import zipfile
from typing import Dict, Optional, Union

import httpx


REPO_URL = "https://vpm.example.com/index.json"


def make_zip(files: Dict[str, Union[str, bytes]]) -> bytes:
    """Build a zip archive in memory from relative path -> content"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def package_archive(package_id: str, version: str, files: Optional[Dict[str, str]] = None,
                    dependencies: Optional[Dict[str, str]] = None) -> bytes:
    """Package archive with a package.json descriptor at its root"""
    descriptor = {"name": package_id, "version": version, "displayName": package_id}
    if dependencies:
        descriptor["vpmDependencies"] = dependencies
    content = {"package.json": json.dumps(descriptor)}
    content.update(files or {})
    return make_zip(content)


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def version_entry(package_id: str, version: str, url: Optional[str] = None, **extra) -> dict:
    entry = {
        "name": package_id,
        "version": version,
        "displayName": extra.pop("displayName", package_id),
        "url": url or f"https://files.example.com/{package_id}-{version}.zip",
    }
    entry.update(extra)
    return entry


def repository_descriptor(packages: Dict[str, Dict[str, dict]], name: str = "Example Repo",
                          url: str = REPO_URL, repo_id: str = "com.example.repo") -> dict:
    """Direct-fields descriptor from package id -> {version -> entry}"""
    return {
        "name": name,
        "author": "Example",
        "url": url,
        "id": repo_id,
        "packages": {
            package_id: {"versions": versions}
            for package_id, versions in packages.items()
        },
    }


class FakeServer:
    """URL -> response map served through httpx.MockTransport"""

    def __init__(self):
        self.routes: Dict[str, Union[bytes, int, list]] = {}
        self.requests = []

    def add(self, url: str, body: Union[bytes, str, dict, int, list]) -> None:
        if isinstance(body, dict):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = body

    def count(self, url: str) -> int:
        return sum(1 for request in self.requests if str(request.url) == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        body = self.routes.get(url)
        if body is None:
            return httpx.Response(404)
        # A list is consumed one response per request
        if isinstance(body, list):
            body = body.pop(0) if len(body) > 1 else body[0]
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


