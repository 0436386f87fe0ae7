import asyncio
import io
import json
import zipfile
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from modpackloader.console import Console
from modpackloader.services.prompter import Prompter


class ScriptedPrompter(Prompter):
    """按顺序返回预设回答的 Prompter"""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.questions: List[tuple] = []
        self.notifications: List[str] = []

    async def ask(self, question, options=(), invalid=False):
        self.questions.append((question, list(options), invalid))
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {question}")
        return self.answers.pop(0)

    async def notify(self, message, fg=None):
        self.notifications.append(message)


def make_console(rows: int = 8) -> Console:
    return Console(rows=rows, stream=io.StringIO(), width=120)


def payload(name: str, size: int = 4096) -> bytes:
    seed = name.encode("utf-8")
    return (seed * (size // len(seed) + 1))[:size]


def file_app(files: Dict[str, bytes], delay: float = 0.0) -> web.Application:
    """简单的文件服务器，记录请求与最大并发数"""
    app = web.Application()
    app["hits"] = []
    app["active"] = 0
    app["peak"] = 0

    async def serve(request):
        name = request.match_info["name"]
        request.app["hits"].append(name)
        if name not in files:
            raise web.HTTPNotFound()
        request.app["active"] += 1
        request.app["peak"] = max(request.app["peak"], request.app["active"])
        try:
            if delay:
                await asyncio.sleep(delay)
            return web.Response(body=files[name])
        finally:
            request.app["active"] -= 1

    async def serve_chunked(request):
        name = request.match_info["name"]
        request.app["hits"].append(name)
        response = web.StreamResponse()
        response.enable_chunked_encoding()
        await response.prepare(request)
        await response.write(files[name])
        await response.write_eof()
        return response

    async def serve_slow(request):
        name = request.match_info["name"]
        request.app["hits"].append(name)
        response = web.StreamResponse()
        response.content_length = len(files[name]) * 10
        await response.prepare(request)
        await response.write(files[name])
        for _ in range(300):
            transport = request.transport
            if transport is None or transport.is_closing():
                break
            await asyncio.sleep(0.1)
        return response

    app.router.add_get("/files/{name}", serve)
    app.router.add_get("/chunked/{name}", serve_chunked)
    app.router.add_get("/slow/{name}", serve_slow)
    return app


@pytest_asyncio.fixture
async def start_server():
    servers = []

    async def start(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield start

    for server in servers:
        await server.close()


def catalog_app(
    mods: Dict[int, dict],
    files: Dict[tuple, dict],
    listings: Optional[Dict[int, list]] = None,
) -> web.Application:
    """模拟 CurseForge API"""
    listings = listings or {}
    app = web.Application()
    app["requests"] = []

    async def get_mod(request):
        request.app["requests"].append((request.path, dict(request.query)))
        mod_id = int(request.match_info["mod"])
        if mod_id not in mods:
            return web.json_response({"error": "not found"}, status=404)
        return web.json_response({"data": mods[mod_id]})

    async def get_file(request):
        request.app["requests"].append((request.path, dict(request.query)))
        key = (int(request.match_info["mod"]), int(request.match_info["file"]))
        if key not in files:
            return web.json_response({"error": "not found"}, status=404)
        return web.json_response({"data": files[key]})

    async def list_files(request):
        request.app["requests"].append((request.path, dict(request.query)))
        mod_id = int(request.match_info["mod"])
        if mod_id not in listings:
            return web.json_response({"error": "boom"}, status=500)
        return web.json_response({"data": listings[mod_id]})

    app.router.add_get("/v1/mods/{mod}", get_mod)
    app.router.add_get("/v1/mods/{mod}/files/{file}", get_file)
    app.router.add_get("/v1/mods/{mod}/files", list_files)
    return app


def write_mrpack(path, files: list, overrides: Optional[Dict[str, bytes]] = None, **meta):
    index = {
        "game": "minecraft",
        "formatVersion": 1,
        "versionId": meta.get("versionId", "1.0.0"),
        "name": meta.get("name", "Test Pack"),
        "files": files,
        "dependencies": meta.get("dependencies", {"minecraft": "1.20.1"}),
    }
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("modrinth.index.json", json.dumps(index))
        for name, data in (overrides or {}).items():
            archive.writestr(name, data)
    return str(path)


def write_curseforge_pack(path, files: list, overrides: Optional[Dict[str, bytes]] = None, **meta):
    manifest = {
        "minecraft": {
            "version": meta.get("mc_version", "1.20.1"),
            "modLoaders": [{"id": "fabric-0.15.0", "primary": True}],
        },
        "manifestType": "minecraftModpack",
        "manifestVersion": 1,
        "name": meta.get("name", "CF Pack"),
        "version": meta.get("version", "2.0"),
        "author": "tester",
        "files": files,
        "overrides": meta.get("overrides", "overrides"),
    }
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("manifest.json", json.dumps(manifest))
        for name, data in (overrides or {}).items():
            archive.writestr(name, data)
    return str(path)


@pytest.fixture
def prompter():
    return ScriptedPrompter()
