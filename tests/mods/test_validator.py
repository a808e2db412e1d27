from modkit.mods.validator import validateModDirectory, validateModsFolder


def test_valid_package_has_no_findings(make_package, write_content):
    packageDir = make_package("p", "author.p", GameVersion=">=1.0.0")
    write_content(packageDir / "content" / "item.json", {"$type": "Item"})

    result = validateModDirectory(packageDir)

    assert result.isValid
    assert result.modId == "author.p"
    assert result.errors == []
    assert result.warnings == []


def test_missing_manifest(mods_root):
    (mods_root / "empty").mkdir()

    result = validateModDirectory(mods_root / "empty")

    assert not result.isValid
    assert result.errors == ["Missing manifest.json"]


def test_unparsable_manifest(mods_root):
    packageDir = mods_root / "bad"
    packageDir.mkdir()
    (packageDir / "manifest.json").write_text("{ nope", encoding="utf-8")

    result = validateModDirectory(packageDir)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to parse manifest.json")


def test_schema_violation(make_package):
    packageDir = make_package("p", "p", Dependencies="not-a-list")

    result = validateModDirectory(packageDir)

    assert not result.isValid
    assert result.errors[0].startswith("Invalid manifest")


def test_missing_required_fields(mods_root, write_manifest):
    write_manifest(mods_root / "p", {"Id": "p", "Name": ""})

    result = validateModDirectory(mods_root / "p")

    assert result.errors == [
        "Manifest missing required field: Name",
        "Manifest missing required field: Version",
    ]
    assert result.modId == "p"


def test_authoring_warnings(make_package, write_content):
    packageDir = make_package("p", "p", Version="1.0", GameVersion="banana", ContentPaths=["content", "missing"])
    write_content(packageDir / "content" / "untyped.json", {"name": "no type"})

    result = validateModDirectory(packageDir)

    assert result.isValid
    assert result.warnings == [
        "Version '1.0' does not follow semantic versioning (x.y.z)",
        "GameVersion 'banana' is not a valid version range",
        "Content path does not exist: missing",
        "Content file missing $type field: content/untyped.json",
    ]


def test_invalid_content_json_is_an_error(make_package):
    packageDir = make_package("p", "p")
    (packageDir / "content" / "broken.json").write_text("{ nope", encoding="utf-8")

    result = validateModDirectory(packageDir)

    assert not result.isValid
    assert result.errors[0].startswith("Invalid JSON in content/broken.json")


def test_validateModsFolder(mods_root, make_package, tmp_path):
    make_package("b", "b")
    (mods_root / "a").mkdir()

    results = validateModsFolder(mods_root)

    assert [result.modPath.name for result in results] == ["a", "b"]
    assert [result.isValid for result in results] == [False, True]
    assert validateModsFolder(tmp_path / "missing") == []


def test_id_with_asset_separator_is_an_error(make_package):
    packageDir = make_package("p", "base:extra")

    result = validateModDirectory(packageDir)

    assert result.errors == ["Id 'base:extra' must not contain ':'"]
    assert result.modId == "base:extra"
