from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from modkit.content.asset_registry import DefaultAssetRegistry
from modkit.content.media import AudioClip, Texture
from modkit.content.parser import ContentParseReport, ModContentParser
from modkit.content.type_registry import DefaultTypeRegistry, FieldSpec
from modkit.core.errors import DuplicateAssetKeyWarning, FieldBindingWarning, UnknownContentTypeWarning
from modkit.mods.manifest import ModManifest
from modkit.mods.package import LoadedPackage


class Rarity(Enum):
    COMMON = 1
    RARE = 2


@dataclass
class Stats:
    attack: int = 0
    speed: float = 0.0


@dataclass
class Weapon:
    name: str = ""
    damage: int = 0
    weight: float = 0.0
    stackable: bool = False
    rarity: Rarity = Rarity.COMMON
    stats: Stats | None = None
    tags: list[str] = field(default_factory=list)
    icon: Texture | None = None
    sound: AudioClip | None = None


@dataclass
class Loot:
    items: list[Weapon] = field(default_factory=list)
    rarities: list[Rarity] = field(default_factory=list)
    bonus: Any = None


class Plain:
    def __init__(self) -> None:
        self.hp = 1


class Box:
    def __init__(self) -> None:
        self.label = ""

    def setLabel(self, value: str) -> None:
        self.label = value.upper()


@pytest.fixture()
def root(tmp_path) -> Path:
    packageRoot = tmp_path / "p"
    (packageRoot / "content").mkdir(parents=True)
    return packageRoot


@pytest.fixture()
def package(root) -> LoadedPackage:
    return LoadedPackage(manifest=ModManifest(id="p", rootPath=root))


@pytest.fixture()
def assets() -> DefaultAssetRegistry:
    return DefaultAssetRegistry()


@pytest.fixture()
def parser(assets) -> ModContentParser:
    types = DefaultTypeRegistry()
    types.registerTypes({"Weapon": Weapon, "Stats": Stats, "Loot": Loot, "Plain": Plain})
    types.register("Box", Box, fields=[FieldSpec("label", setter=lambda box, value: box.setLabel(value))])
    return ModContentParser(types, assets)


def test_parseFile_binds_primitive_enum_and_list_fields(parser, package, root, write_content, assets):
    path = write_content(root / "content" / "sword.json", {
        "$type": "Weapon",
        "name": "Sword",
        "damage": 5,
        "weight": 2,
        "stackable": True,
        "rarity": "RARE",
        "tags": ["sharp", "steel"],
        "notAField": 123,
    })

    key = parser.parseFile(path, package)

    assert key == "p:sword"
    weapon = assets.get(key)
    assert weapon == Weapon(name="Sword", damage=5, weight=2.0, stackable=True, rarity=Rarity.RARE, tags=["sharp", "steel"])
    assert isinstance(weapon.weight, float)
    assert assets.ownerOf(key) == "p"
    assert package.assetKeys == ["p:sword"]


def test_nested_records_tagged_and_untagged(parser, package, root, write_content, assets):
    write_content(root / "content" / "tagged.json", {"$type": "Weapon", "stats": {"$type": "Stats", "attack": 3, "speed": 1.5}})
    write_content(root / "content" / "untagged.json", {"$type": "Weapon", "stats": {"attack": 4}})

    report = parser.parseDirectory(root / "content", package)

    assert report.warnings == []
    assert assets.get("p:tagged").stats == Stats(attack=3, speed=1.5)
    assert assets.get("p:untagged").stats == Stats(attack=4)


def test_list_elements_bind_recursively_and_bad_elements_are_dropped(parser, package, root, write_content, assets):
    path = write_content(root / "content" / "chest.json", {
        "$type": "Loot",
        "items": [
            {"$type": "Weapon", "name": "a", "rarity": "RARE"},
            {"name": "b"},
            {"$type": "Nope"},
            5,
        ],
        "rarities": ["COMMON", "MYTHIC", "RARE"],
        "bonus": {"$type": "Stats", "attack": 9},
    })
    report = ContentParseReport()

    parser.parseFile(path, package, report=report)

    loot = assets.get("p:chest")
    assert [item.name for item in loot.items] == ["a", "b"]
    assert loot.items[0].rarity is Rarity.RARE
    assert loot.rarities == [Rarity.COMMON, Rarity.RARE]
    assert loot.bonus == Stats(attack=9)
    assert [warning.fieldName for warning in report.warnings] == ["items[2]", "items[3]", "rarities[1]"]
    assert all(isinstance(warning, FieldBindingWarning) for warning in report.warnings)


def test_bad_fields_keep_defaults_and_the_rest_binds(parser, package, root, write_content, assets):
    path = write_content(root / "content" / "odd.json", {
        "$type": "Weapon",
        "name": "Odd",
        "rarity": "LEGENDARY",
        "damage": True,
        "weight": "heavy",
        "stats": 7,
    })
    report = ContentParseReport()

    parser.parseFile(path, package, report=report)

    weapon = assets.get("p:odd")
    assert weapon == Weapon(name="Odd")
    assert sorted(warning.fieldName for warning in report.warnings) == ["damage", "rarity", "stats", "weight"]
    assert {warning.typeName for warning in report.warnings} == {"Weapon"}


def test_unknown_type_skips_only_that_file(parser, package, root, write_content, assets):
    write_content(root / "content" / "a.json", {"$type": "Ghost", "name": "boo"})
    write_content(root / "content" / "b.json", {"$type": "Weapon", "name": "real"})
    write_content(root / "content" / "c.json", {"name": "untyped"})

    report = parser.parseDirectory(root / "content", package)

    assert report.assetKeys == ["p:b"]
    assert assets.allKeys() == ["p:b"]
    assert [type(warning) for warning in report.warnings] == [UnknownContentTypeWarning, UnknownContentTypeWarning]
    assert [warning.typeName for warning in report.warnings] == ["Ghost", None]


def test_unreadable_file_is_recorded_and_scan_continues(parser, package, root, write_content, assets):
    broken = root / "content" / "a.json"
    broken.write_text("{ not json", encoding="utf-8")
    listFile = write_content(root / "content" / "b.json", [1, 2])
    write_content(root / "content" / "sub" / "c.json", {"$type": "Weapon"})

    report = parser.parseDirectory(root / "content", package)

    assert set(report.failedFiles) == {broken, listFile}
    assert report.assetKeys == ["p:c"]
    assert not report.isClean


def test_content_files_may_use_json5(parser, package, root, assets):
    path = root / "content" / "commented.json"
    path.write_text('{\n  // a comment\n  "$type": "Weapon",\n  "name": "Five",\n}\n', encoding="utf-8")

    assert parser.parseFile(path, package) == "p:commented"
    assert assets.get("p:commented").name == "Five"


def test_package_root_scan_skips_manifest(parser, package, root, write_content):
    write_content(root / "manifest.json", {"Id": "p"})
    write_content(root / "item.json", {"$type": "Weapon"})

    report = parser.parseDirectory(root, package)

    assert report.warnings == []
    assert report.assetKeys == ["p:item"]


def test_image_reference_is_decoded_relative_to_package_root(parser, package, root, write_content, assets):
    (root / "icons").mkdir()
    Image.new("RGB", (2, 3), (255, 0, 0)).save(root / "icons" / "sword.png")
    write_content(root / "content" / "sword.json", {"$type": "Weapon", "icon": "icons/sword.png"})
    write_content(root / "content" / "blank.json", {"$type": "Weapon", "icon": "icons/missing.png"})

    report = parser.parseDirectory(root / "content", package)

    icon = assets.get("p:sword").icon
    assert isinstance(icon, Texture)
    assert icon.size == (2, 3)
    assert icon.mode == "RGBA"
    assert len(icon.pixels) == 2 * 3 * 4
    assert icon.pixels[:4] == bytes([255, 0, 0, 255])
    assert assets.get("p:blank").icon is None
    assert [warning.fieldName for warning in report.warnings] == ["icon"]


def test_audio_reference_is_left_unset(parser, package, root, write_content, assets, caplog):
    write_content(root / "content" / "horn.json", {"$type": "Weapon", "name": "Horn", "sound": "sfx/horn.wav"})

    with caplog.at_level(logging.WARNING):
        report = parser.parseDirectory(root / "content", package)

    weapon = assets.get("p:horn")
    assert weapon.name == "Horn"
    assert weapon.sound is None
    assert report.warnings == []
    assert "requires async loading" in caplog.text


def test_explicit_schema_setter(parser, package, root, write_content, assets):
    write_content(root / "content" / "crate.json", {"$type": "Box", "label": "fragile", "other": 1})

    parser.parseDirectory(root / "content", package)

    assert assets.get("p:crate").label == "FRAGILE"


def test_type_without_schema_binds_existing_attributes(parser, package, root, write_content, assets):
    write_content(root / "content" / "thing.json", {"$type": "Plain", "hp": 5, "mp": 3})

    parser.parseDirectory(root / "content", package)

    thing = assets.get("p:thing")
    assert thing.hp == 5
    assert not hasattr(thing, "mp")


def test_bindRecord_round_trips_primitive_enum_and_list_fields(parser):
    record = {"name": "x", "damage": 3, "weight": 1.5, "stackable": True, "rarity": "RARE", "tags": ["a"]}
    weapon = Weapon()

    report = parser.bindRecord(weapon, record, typeName="Weapon")

    assert report.isClean
    assert {
        "name": weapon.name,
        "damage": weapon.damage,
        "weight": weapon.weight,
        "stackable": weapon.stackable,
        "rarity": weapon.rarity.name,
        "tags": weapon.tags,
    } == record


def test_missing_content_directory_is_a_warning_not_an_error(parser, package, root):
    report = parser.parseDirectory(root / "does-not-exist", package)

    assert report.assetKeys == []
    assert report.failedFiles == {}


def test_same_file_stem_in_two_folders_warns(parser, package, root, write_content, assets):
    write_content(root / "content" / "a" / "x.json", {"$type": "Weapon", "name": "first"})
    second = write_content(root / "content" / "b" / "x.json", {"$type": "Weapon", "name": "second"})

    report = parser.parseDirectory(root / "content", package)

    assert assets.get("p:x").name == "second"
    assert package.assetKeys == ["p:x"]
    assert [type(warning) for warning in report.warnings] == [DuplicateAssetKeyWarning]
    assert report.warnings[0].path == second
    assert report.warnings[0].key == "p:x"


def test_report_merge_combines_every_part(tmp_path):
    total = ContentParseReport(assetKeys=["p:a"])
    missingType = UnknownContentTypeWarning(None, modId="p")
    total.merge(ContentParseReport(
        assetKeys=["p:b"],
        warnings=[missingType],
        failedFiles={tmp_path / "c.json": "bad json"},
    ))

    assert total.assetKeys == ["p:a", "p:b"]
    assert total.warnings == [missingType]
    assert total.failedFiles == {tmp_path / "c.json": "bad json"}
    assert not total.isClean
