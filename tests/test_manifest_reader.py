import zipfile

import pytest

from conftest import catalog_app, write_curseforge_pack, write_mrpack
from modpackloader.exceptions import ConfigError, ManifestError
from modpackloader.models import Category, LoaderConfig, ModpackFormat
from modpackloader.services.catalog import CurseForgeClient
from modpackloader.services.manifest_reader import (
    CurseForgeManifestReader,
    ModrinthManifestReader,
    detect_format,
    open_archive,
    open_manifest,
)


async def collect(reader):
    return [asset async for asset in reader.assets()]


def mr_file(path, env=None, downloads=("https://cdn.modrinth.com/x.jar",)):
    entry = {
        "path": path,
        "downloads": list(downloads),
        "hashes": {"sha1": "abc"},
        "fileSize": 10,
    }
    if env is not None:
        entry["env"] = env
    return entry


def test_detect_format():
    assert detect_format("pack.mrpack") is ModpackFormat.MODRINTH
    assert detect_format("PACK.MRPACK") is ModpackFormat.MODRINTH
    assert detect_format("pack.zip") is ModpackFormat.CURSEFORGE


def test_open_archive_missing_file(tmp_path):
    with pytest.raises(ManifestError):
        open_archive(str(tmp_path / "nope.zip"))


def test_open_archive_not_a_zip(tmp_path):
    bogus = tmp_path / "bogus.zip"
    bogus.write_text("not a zip")
    with pytest.raises(ManifestError):
        open_archive(str(bogus))


def test_missing_manifest_entry(tmp_path):
    path = tmp_path / "empty.mrpack"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("readme.txt", "hi")

    with open_archive(str(path)) as archive:
        with pytest.raises(ManifestError, match="Could not find modpack manifest!"):
            ModrinthManifestReader(archive, LoaderConfig())


def test_unparseable_manifest(tmp_path):
    path = tmp_path / "broken.mrpack"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("modrinth.index.json", "{not json")

    with open_archive(str(path)) as archive:
        with pytest.raises(ManifestError, match="Could not parse"):
            ModrinthManifestReader(archive, LoaderConfig())


@pytest.mark.asyncio
async def test_modrinth_reader_parses_assets(tmp_path):
    path = write_mrpack(
        tmp_path / "pack.mrpack",
        [
            mr_file("mods/sodium.jar"),
            mr_file("mods/iris.jar", env={"client": "required", "server": "unsupported"}),
            mr_file("resourcepacks/faithful.zip", env={"client": "required", "server": "required"}),
            mr_file("config/extra/tweak.cfg", env={"client": "optional", "server": "optional"}),
        ],
        name="Fancy Pack",
        versionId="3.1",
        dependencies={"minecraft": "1.20.1", "fabric-loader": "0.15.3"},
    )

    with open_archive(path) as archive:
        reader = ModrinthManifestReader(archive, LoaderConfig(include_client=True))
        assets = await collect(reader)

    info = reader.info
    assert info.name == "Fancy Pack"
    assert info.version == "3.1"
    assert info.format is ModpackFormat.MODRINTH
    assert info.override_prefixes == ["overrides", "client-overrides"]
    assert info.version_lines == ["minecraft: 1.20.1", "fabric-loader: 0.15.3"]
    assert info.asset_count == 4

    sodium, iris, faithful, tweak = assets
    assert sodium.required
    assert sodium.category is Category.MOD
    assert sodium.label == "mod sodium.jar"
    assert sodium.candidate_urls == ("https://cdn.modrinth.com/x.jar",)

    assert not iris.required
    assert iris.requires_side("client")
    assert not iris.requires_side("server")

    assert faithful.required
    assert faithful.tag == "resourcepack"

    assert not tweak.required
    assert tweak.tag == "config"
    assert tweak.directory == "config/extra"
    assert tweak.file_name == "tweak.cfg"


@pytest.mark.asyncio
async def test_modrinth_reader_skips_invalid_paths(tmp_path):
    path = write_mrpack(
        tmp_path / "pack.mrpack",
        [
            mr_file("sodium.jar"),
            mr_file("../escape/evil.jar"),
            mr_file("/abs/evil.jar"),
            mr_file("mods/ok.jar"),
        ],
    )

    with open_archive(path) as archive:
        reader = ModrinthManifestReader(archive, LoaderConfig())
        assets = await collect(reader)

    assert [asset.relative_path for asset in assets] == ["mods/ok.jar"]
    assert len(reader.errors) == 3


def test_modrinth_server_overrides_prefix(tmp_path):
    path = write_mrpack(tmp_path / "pack.mrpack", [])
    with open_archive(path) as archive:
        reader = ModrinthManifestReader(archive, LoaderConfig(include_server=True))
    assert reader.info.override_prefixes == ["overrides", "server-overrides"]


@pytest.mark.asyncio
async def test_curseforge_reader_resolves_through_catalog(tmp_path, start_server):
    api = catalog_app(
        mods={
            100: {
                "id": 100,
                "name": "Sodium",
                "classId": 6,
                "links": {"websiteUrl": "https://www.curseforge.com/minecraft/mc-mods/sodium/"},
            },
            200: {
                "id": 200,
                "name": "Faithful",
                "classId": 12,
                "links": {"websiteUrl": "https://www.curseforge.com/minecraft/texture-packs/faithful"},
            },
            300: {"id": 300, "name": "Weird", "classId": 999},
        },
        files={
            (100, 555): {
                "id": 555,
                "modId": 100,
                "fileName": "sodium-fabric.jar",
                "downloadUrl": "https://edge.forgecdn.net/files/sodium-fabric.jar",
                "gameVersions": ["1.20.1", "Fabric"],
                "hashes": [{"algo": 1, "value": "aa"}, {"algo": 2, "value": "bb"}],
            },
            (200, 666): {
                "id": 666,
                "modId": 200,
                "fileName": "faithful.zip",
                "downloadUrl": None,
            },
        },
    )
    server = await start_server(api)
    path = write_curseforge_pack(
        tmp_path / "cf.zip",
        [
            {"projectID": 100, "fileID": 555, "required": True},
            {"projectID": 200, "fileID": 666, "required": False},
            {"projectID": 300, "fileID": 1, "required": True},
            {"projectID": 404, "fileID": 1, "required": True},
        ],
        name="CF Pack",
        version="2.0",
        mc_version="1.20.1",
    )

    async with CurseForgeClient("key", base_url=str(server.make_url("/v1"))) as catalog:
        with open_archive(path) as archive:
            reader = open_manifest(archive, path, LoaderConfig(), catalog)
            assert isinstance(reader, CurseForgeManifestReader)
            assets = await collect(reader)

    assert reader.info.version_lines == [
        "Mod Loader: fabric-0.15.0 *",
        "Minecraft Version: 1.20.1",
    ]
    assert reader.info.override_prefixes == ["overrides"]

    sodium, faithful = assets
    assert sodium.id == "100:555"
    assert sodium.relative_path == "mods/sodium-fabric.jar"
    assert sodium.candidate_urls == ("https://edge.forgecdn.net/files/sodium-fabric.jar",)
    assert sodium.hashes == {"sha1": "aa", "md5": "bb"}
    assert sodium.catalog.game_versions == ("1.20.1", "Fabric")
    assert sodium.manual_url == "https://www.curseforge.com/minecraft/mc-mods/sodium/files/555"

    assert faithful.category is Category.RESOURCE_PACK
    assert faithful.relative_path == "resourcepacks/faithful.zip"
    assert faithful.candidate_urls == ()
    assert not faithful.required

    assert reader.errors == ["300:1", "404:1"]


def test_curseforge_without_catalog_is_a_config_error(tmp_path):
    path = write_curseforge_pack(tmp_path / "cf.zip", [])
    with open_archive(path) as archive:
        with pytest.raises(ConfigError):
            open_manifest(archive, path, LoaderConfig())
