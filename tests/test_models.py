import pytest

from modpackloader.exceptions import (
    CatalogError,
    LoaderError,
    ManifestError,
    UnknownCategoryError,
)
from modpackloader.models import (
    AssetDescriptor,
    AssetOutcome,
    AssetStatus,
    CatalogRef,
    Category,
    DownloadStats,
    ModFile,
    ModLoaderType,
    ModVariant,
)
from modpackloader.models.catalog import parse_compatibility


@pytest.mark.parametrize(
    "class_id, directory, tag",
    [
        (6, "mods", "mod"),
        (12, "resourcepacks", "resourcepack"),
        (4471, "modpacks", "modpack"),
        (6945, "datapacks", "datapack"),
        (17, "saves", "world"),
        (6552, "shaderpacks", "shaderpack"),
    ],
)
def test_category_table(class_id, directory, tag):
    category = Category.from_class_id(class_id)
    assert (category.directory, category.tag) == (directory, tag)
    assert Category.from_directory(directory) is category


def test_unknown_category_is_catalog_error():
    with pytest.raises(UnknownCategoryError) as info:
        Category.from_class_id(4546)
    assert isinstance(info.value, CatalogError)
    assert info.value.context == {"class_id": 4546}


def test_parse_compatibility_takes_last_match():
    loader, version = parse_compatibility(["1.19.2", "Forge", "1.20.1", "fabric", "Client"])
    assert loader is ModLoaderType.FABRIC
    assert version == "1.20.1"


def test_parse_compatibility_without_tags():
    assert parse_compatibility(["Client", "Server"]) == (None, None)


def test_variant_requires_download_url():
    hidden = ModFile.from_curseforge({"id": 1, "fileName": "a.jar", "downloadUrl": None})
    assert ModVariant.from_file(hidden) is None

    shown = ModFile.from_curseforge(
        {
            "id": 2,
            "fileName": "b.jar",
            "downloadUrl": "https://edge.forgecdn.net/b.jar",
            "gameVersions": ["NeoForge", "1.21.1"],
        }
    )
    variant = ModVariant.from_file(shown)
    assert variant.file_id == 2
    assert variant.loader is ModLoaderType.NEOFORGE


def test_manual_url_prefers_catalog_page():
    asset = AssetDescriptor(
        id="1:2",
        tag="mod",
        name="Thing",
        file_name="thing.jar",
        required=True,
        relative_path="mods/thing.jar",
        catalog=CatalogRef(1, 2, "https://www.curseforge.com/minecraft/mc-mods/thing"),
    )
    assert asset.manual_url == "https://www.curseforge.com/minecraft/mc-mods/thing/files/2"
    assert asset.directory == "mods"


def test_stats_record():
    asset = AssetDescriptor("a", "mod", "a", "a.jar", True, "mods/a.jar")
    stats = DownloadStats()
    stats.record(AssetOutcome(asset, AssetStatus.DOWNLOADED, bytes_downloaded=10))
    stats.record(AssetOutcome(asset, AssetStatus.SKIPPED))
    stats.record(AssetOutcome(asset, AssetStatus.DECLINED))
    stats.record(AssetOutcome(asset, AssetStatus.UNRESOLVED))
    stats.record(AssetOutcome(asset, AssetStatus.ABANDONED))

    assert (stats.completed, stats.skipped, stats.declined, stats.failed) == (1, 1, 1, 2)
    assert stats.bytes_downloaded == 10


def test_error_serialization():
    error = ManifestError("Could not find modpack manifest!", context={"entry": "manifest.json"})
    assert isinstance(error, LoaderError)
    assert str(error) == "[E110] Could not find modpack manifest!"
    assert error.to_dict()["type"] == "ManifestError"
