"""Tests for ReleaseLocator and BinaryInstaller against a local aiohttp server."""

import contextlib
import stat
from pathlib import Path

import pytest
from unittest.mock import patch
from aiohttp import test_utils, web

from opencode_mem.binary.base import Failure, ReleaseInfo, Success
from opencode_mem.binary.installer import BinaryInstaller
from opencode_mem.binary.release import ReleaseLocator, parse_release
from opencode_mem.platforms import PlatformKey

LINUX_X64 = PlatformKey(os="linux", arch="x64")


# ── Helpers ───────────────────────────────────────────────────


@contextlib.asynccontextmanager
async def serve(routes: dict):
    """Run a throwaway aiohttp server with GET handlers for ``routes``."""
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def release_payload(tag: str = "v1.2.3", base_url: str = "https://example.invalid") -> dict:
    names = [
        "claude-mem-darwin-arm64",
        "claude-mem-darwin-x64",
        "claude-mem-linux-arm64",
        "claude-mem-linux-x64",
    ]
    return {
        "tag_name": tag,
        "assets": [
            {"name": name, "browser_download_url": f"{base_url}/download/{name}"}
            for name in names
        ],
    }


# ── parse_release ────────────────────────────────────────────


class TestParseRelease:
    def test_picks_platform_asset(self):
        info = parse_release(release_payload(), "claude-mem-linux-x64")
        assert info == ReleaseInfo(
            version="1.2.3",
            download_url="https://example.invalid/download/claude-mem-linux-x64",
        )

    def test_tag_without_v(self):
        info = parse_release(release_payload(tag="2.0.0"), "claude-mem-darwin-arm64")
        assert info.version == "2.0.0"

    def test_missing_asset(self):
        payload = release_payload()
        payload["assets"] = [a for a in payload["assets"] if a["name"] != "claude-mem-linux-x64"]
        assert parse_release(payload, "claude-mem-linux-x64") is None

    def test_missing_tag(self):
        payload = release_payload()
        del payload["tag_name"]
        assert parse_release(payload, "claude-mem-linux-x64") is None

    def test_no_assets(self):
        assert parse_release({"tag_name": "v1.0.0"}, "claude-mem-linux-x64") is None

    def test_asset_entries_not_objects(self):
        payload = {"tag_name": "v1.2.3", "assets": ["claude-mem-linux-x64", None, 7]}
        assert parse_release(payload, "claude-mem-linux-x64") is None

    @pytest.mark.parametrize("assets", [{"name": "claude-mem-linux-x64"}, "claude-mem-linux-x64", 3])
    def test_assets_not_a_list(self, assets):
        assert parse_release({"tag_name": "v1.2.3", "assets": assets}, "claude-mem-linux-x64") is None


# ── ReleaseLocator ───────────────────────────────────────────


class TestReleaseLocator:
    @pytest.mark.asyncio
    async def test_locate(self):
        seen_agents: list[str] = []

        async def latest(request):
            seen_agents.append(request.headers.get("User-Agent", ""))
            return web.json_response(release_payload())

        async with serve({"/releases/latest": latest}) as server:
            locator = ReleaseLocator(url=str(server.make_url("/releases/latest")), user_agent="ua-test")
            info = await locator.locate(LINUX_X64)

        assert info is not None
        assert info.version == "1.2.3"
        assert info.download_url.endswith("/claude-mem-linux-x64")
        assert seen_agents == ["ua-test"]

    @pytest.mark.asyncio
    async def test_http_error(self):
        async def latest(request):
            return web.json_response({"message": "rate limited"}, status=403)

        async with serve({"/releases/latest": latest}) as server:
            locator = ReleaseLocator(url=str(server.make_url("/releases/latest")))
            assert await locator.locate(LINUX_X64) is None

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async def latest(request):
            return web.Response(text="<html>oops</html>", content_type="text/html")

        async with serve({"/releases/latest": latest}) as server:
            locator = ReleaseLocator(url=str(server.make_url("/releases/latest")))
            assert await locator.locate(LINUX_X64) is None

    @pytest.mark.asyncio
    async def test_missing_platform_asset(self):
        async def latest(request):
            payload = release_payload()
            payload["assets"] = payload["assets"][:1]
            return web.json_response(payload)

        async with serve({"/releases/latest": latest}) as server:
            locator = ReleaseLocator(url=str(server.make_url("/releases/latest")))
            assert await locator.locate(LINUX_X64) is None

    @pytest.mark.asyncio
    async def test_malformed_assets(self):
        async def latest(request):
            return web.json_response({"tag_name": "v1.2.3", "assets": ["claude-mem-linux-x64"]})

        async with serve({"/releases/latest": latest}) as server:
            locator = ReleaseLocator(url=str(server.make_url("/releases/latest")))
            assert await locator.locate(LINUX_X64) is None

    @pytest.mark.asyncio
    async def test_network_error(self):
        # Port 9 (discard) on localhost is closed in practice
        locator = ReleaseLocator(url="http://127.0.0.1:9/releases/latest", timeout=5)
        assert await locator.locate(LINUX_X64) is None


# ── BinaryInstaller ──────────────────────────────────────────


BINARY_BYTES = b"#!/bin/sh\necho claude-mem v1.2.3\n"


class TestBinaryInstaller:
    @pytest.mark.asyncio
    async def test_install(self, tmp_path: Path):
        async def download(request):
            return web.Response(body=BINARY_BYTES)

        target = tmp_path / "bin" / "claude-mem"
        async with serve({"/download/claude-mem-linux-x64": download}) as server:
            installer = BinaryInstaller(target)
            result = await installer.install(str(server.make_url("/download/claude-mem-linux-x64")))

        assert result == Success(str(target))
        assert target.read_bytes() == BINARY_BYTES
        assert target.stat().st_mode & stat.S_IXUSR

    @pytest.mark.asyncio
    async def test_http_failure_leaves_existing_binary(self, tmp_path: Path):
        async def download(request):
            return web.Response(status=404, text="Not Found")

        target = tmp_path / "claude-mem"
        target.write_bytes(b"old binary")

        async with serve({"/download/x": download}) as server:
            result = await BinaryInstaller(target).install(str(server.make_url("/download/x")))

        assert result == Failure("HTTP 404")
        assert target.read_bytes() == b"old binary"

    @pytest.mark.asyncio
    async def test_network_failure(self, tmp_path: Path):
        installer = BinaryInstaller(tmp_path / "claude-mem", timeout=5)
        result = await installer.install("http://127.0.0.1:9/download/x")
        assert isinstance(result, Failure)
        assert result.error.startswith("Download failed")
        assert not (tmp_path / "claude-mem").exists()

    @pytest.mark.asyncio
    async def test_bin_directory_not_creatable(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        installer = BinaryInstaller(blocker / "bin" / "claude-mem")

        result = await installer.install("http://127.0.0.1:9/unused")

        assert isinstance(result, Failure)
        assert result.error.startswith("Failed to create bin directory")

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path: Path):
        async def download(request):
            return web.Response(body=BINARY_BYTES)

        target = tmp_path / "claude-mem"
        target.mkdir()

        async with serve({"/download/x": download}) as server:
            result = await BinaryInstaller(target).install(str(server.make_url("/download/x")))

        assert isinstance(result, Failure)
        assert result.error.startswith("Failed to write binary")

    @pytest.mark.asyncio
    async def test_chmod_failure(self, tmp_path: Path):
        async def download(request):
            return web.Response(body=BINARY_BYTES)

        target = tmp_path / "claude-mem"
        async with serve({"/download/x": download}) as server:
            with patch(
                "opencode_mem.binary.installer.os.chmod",
                side_effect=PermissionError("denied"),
            ):
                result = await BinaryInstaller(target).install(str(server.make_url("/download/x")))

        assert isinstance(result, Failure)
        assert result.error.startswith("Failed to make binary executable")
        assert "denied" in result.error
