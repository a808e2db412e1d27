# modkit/content/parser.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import json5

from modkit.content.asset_registry import AssetRegistry
from modkit.content.media import MediaLoader
from modkit.content.type_registry import FieldKind, FieldSpec, TypeRegistry, describeFields
from modkit.core.errors import (
    ContentParseError,
    DuplicateAssetKeyWarning,
    FieldBindingWarning,
    ModSystemWarning,
    UnknownContentTypeWarning,
)
from modkit.mods.constants import CONTENT_FILE_PATTERN, MANIFEST_FILE_NAME, TYPE_TAG, assetKey

if TYPE_CHECKING:
    from modkit.mods.package import LoadedPackage

logger = logging.getLogger(__name__)

__all__ = ["ContentParseReport", "ModContentParser"]



@dataclass
class ContentParseReport:
    """Outcome of one parse call. Nothing in here is fatal to the package."""
    assetKeys: list[str] = field(default_factory=list)
    warnings: list[ModSystemWarning] = field(default_factory=list)
    # Content file -> reason it was skipped
    failedFiles: dict[Path, str] = field(default_factory=dict)

    def merge(self, other: ContentParseReport) -> None:
        self.assetKeys.extend(other.assetKeys)
        self.warnings.extend(other.warnings)
        self.failedFiles.update(other.failedFiles)

    @property
    def isClean(self) -> bool:
        return not self.warnings and not self.failedFiles



class _BindingFailure(Exception):
    """A single field value could not be converted. Caught by the binder."""



# Marker for values that must leave the field untouched (deferred audio)
_UNSET: Any = object()



@dataclass
class _BindContext:
    modId: str
    rootPath: Path
    path: Path
    report: ContentParseReport



class ModContentParser:
    """
    Turns content files of a package into typed instances and registers them
    in the asset registry under "<packageId>:<fileStem>".

    Binding is driven by the field schema of the record's type: the explicit
    schema registered with the type registry, else the one derived from the
    type's dataclass annotations. Problems with a single field or a single
    file are reported as warnings and never abort the package.
    """
    def __init__(
        self,
        typeRegistry: TypeRegistry,
        assetRegistry: AssetRegistry,
        mediaLoader: MediaLoader | None = None,
    ) -> None:
        self.typeRegistry = typeRegistry
        self.assetRegistry = assetRegistry
        self.mediaLoader = mediaLoader if mediaLoader is not None else MediaLoader()

    # ----- Files -----

    def parseDirectory(self, path: Path | str, package: LoadedPackage) -> ContentParseReport:
        """Parses every *.json file under path, recursively, in sorted order."""
        directory = Path(path)
        report = ContentParseReport()
        if not directory.is_dir():
            logger.warning("Content path '%s' of mod '%s' does not exist", directory, package.manifest.id)
            return report

        manifestPath = (package.manifest.rootPath or directory) / MANIFEST_FILE_NAME
        files = sorted(entry for entry in directory.rglob(CONTENT_FILE_PATTERN) if entry.is_file())
        for filePath in files:
            if filePath == manifestPath:
                continue
            try:
                self.parseFile(filePath, package, report=report)
            except ContentParseError as err:
                logger.error("Skipping content file: %s", err)
                report.failedFiles[filePath] = str(err)
            except Exception as err:
                logger.exception("Failed to parse content file '%s'", filePath)
                report.failedFiles[filePath] = f"{type(err).__name__}: {err}"

        logger.info(
            "Parsed content of '%s' from '%s': %d asset(s), %d warning(s), %d failed file(s)",
            package.manifest.id,
            directory,
            len(report.assetKeys),
            len(report.warnings),
            len(report.failedFiles),
        )
        return report

    def parseFile(
        self,
        path: Path | str,
        package: LoadedPackage,
        *,
        report: ContentParseReport | None = None,
    ) -> str | None:
        """
        Parses one content record, binds it and registers the instance.

        Returns the asset key, or None when the record has no known type.

        Raises:
            ContentParseError: the file cannot be read as a JSON object
        """
        path = Path(path)
        report = report if report is not None else ContentParseReport()
        modId = package.manifest.id

        try:
            raw = json5.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, UnicodeDecodeError) as err:
            raise ContentParseError(f"Failed to parse content file '{path}': {err}", path=path, modId=modId) from err
        if not isinstance(raw, dict):
            raise ContentParseError(
                f"Content file '{path}' must contain an object, got {type(raw).__name__}",
                path=path,
                modId=modId,
            )

        typeName = raw.get(TYPE_TAG)
        if typeName is None:
            self._warn(report, UnknownContentTypeWarning(None, modId=modId, path=path))
            return None
        instance = self.createInstance(typeName) if isinstance(typeName, str) else None
        if instance is None:
            self._warn(report, UnknownContentTypeWarning(str(typeName), modId=modId, path=path))
            return None

        ctx = _BindContext(
            modId=modId,
            rootPath=package.manifest.rootPath or path.parent,
            path=path,
            report=report,
        )
        self._bind(instance, raw, typeName, ctx)

        key = assetKey(modId, path.stem)
        if key in package.assetKeys:
            self._warn(report, DuplicateAssetKeyWarning(key, modId=modId, path=path))
        else:
            package.assetKeys.append(key)
        self.assetRegistry.register(key, instance, owner=modId)
        report.assetKeys.append(key)
        logger.debug("Registered asset '%s' (%s) from '%s'", key, typeName, path)
        return key

    # ----- Records -----

    def createInstance(self, typeName: str) -> Any | None:
        """Fresh instance for a type tag, or None if the tag is unknown."""
        return self.typeRegistry.create(typeName)

    def bindRecord(
        self,
        instance: Any,
        record: dict[str, Any],
        *,
        typeName: str | None = None,
        modId: str = "",
        rootPath: Path | str = ".",
        path: Path | str | None = None,
        report: ContentParseReport | None = None,
    ) -> ContentParseReport:
        """
        Assigns the values of a record to the fields of instance.

        Usable outside of file parsing (e.g. for records built in memory).
        Returns the report the binding warnings were written to.
        """
        report = report if report is not None else ContentParseReport()
        ctx = _BindContext(
            modId=modId,
            rootPath=Path(rootPath),
            path=Path(path) if path is not None else Path(rootPath),
            report=report,
        )
        self._bind(instance, record, typeName, ctx)
        return report

    def _schemaFor(self, typeName: str | None, instance: Any) -> dict[str, FieldSpec] | None:
        fields: tuple[FieldSpec, ...] = ()
        if typeName is not None:
            fields = tuple(self.typeRegistry.fieldsFor(typeName))
        if not fields:
            fields = describeFields(type(instance))
        if not fields:
            return None
        return {spec.name: spec for spec in fields}

    def _bind(self, instance: Any, record: dict[str, Any], typeName: str | None, ctx: _BindContext) -> None:
        schema = self._schemaFor(typeName, instance)
        for name, value in record.items():
            if name == TYPE_TAG:
                continue
            if schema is not None:
                spec = schema.get(name)
            else:
                # No schema known for this type; bind attributes that already exist
                spec = FieldSpec(name) if hasattr(instance, name) else None
            if spec is None:
                continue

            try:
                converted = self._convert(spec, value, ctx)
                if converted is _UNSET:
                    continue
                spec.assign(instance, converted)
            except _BindingFailure as err:
                self._warnField(ctx, name, str(err), typeName)
            except (AttributeError, TypeError, ValueError) as err:
                self._warnField(ctx, name, f"{type(err).__name__}: {err}", typeName)

    # ----- Conversion -----

    def _convert(self, spec: FieldSpec, value: Any, ctx: _BindContext) -> Any:
        kind = spec.kind
        if kind is FieldKind.ENUM:
            return self._convertEnum(spec, value)
        if kind is FieldKind.OBJECT:
            return self._convertObject(spec, value, ctx)
        if kind is FieldKind.LIST:
            return self._convertList(spec, value, ctx)
        if kind is FieldKind.IMAGE:
            return self._convertImage(value, ctx)
        if kind is FieldKind.AUDIO:
            return self._convertAudio(value, ctx)
        return self._convertValue(spec, value, ctx)

    def _convertValue(self, spec: FieldSpec, value: Any, ctx: _BindContext) -> Any:
        if isinstance(value, dict) and TYPE_TAG in value:
            return self._createNested(value, ctx)

        expected = spec.valueType
        if expected is None:
            return value
        if expected is float:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        elif expected is int:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        elif isinstance(value, expected):
            return value
        raise _BindingFailure(f"expected {expected.__name__}, got {type(value).__name__}")

    def _convertEnum(self, spec: FieldSpec, value: Any) -> Any:
        enumType = spec.valueType
        if enumType is None:
            raise _BindingFailure("no enum type declared")
        if isinstance(value, enumType):
            return value
        if not isinstance(value, str):
            raise _BindingFailure(f"expected {enumType.__name__} member name, got {type(value).__name__}")
        try:
            return enumType[value]
        except KeyError:
            raise _BindingFailure(f"'{value}' is not a member of {enumType.__name__}") from None

    def _convertObject(self, spec: FieldSpec, value: Any, ctx: _BindContext) -> Any:
        if not isinstance(value, dict):
            raise _BindingFailure(f"expected an object, got {type(value).__name__}")
        if TYPE_TAG in value:
            return self._createNested(value, ctx)
        if spec.valueType is None:
            return value
        try:
            nested = spec.valueType()
        except TypeError as err:
            raise _BindingFailure(f"cannot construct {spec.valueType.__name__}: {err}") from err
        self._bind(nested, value, None, ctx)
        return nested

    def _convertList(self, spec: FieldSpec, value: Any, ctx: _BindContext) -> list[Any]:
        if not isinstance(value, list):
            raise _BindingFailure(f"expected a list, got {type(value).__name__}")
        elementSpec = spec.element if spec.element is not None else FieldSpec(spec.name)
        items: list[Any] = []
        for index, element in enumerate(value):
            try:
                converted = self._convert(elementSpec, element, ctx)
            except _BindingFailure as err:
                self._warnField(ctx, f"{spec.name}[{index}]", f"{err}; element dropped", None)
                continue
            if converted is not _UNSET:
                items.append(converted)
        return items

    def _createNested(self, value: dict[str, Any], ctx: _BindContext) -> Any:
        typeName = value.get(TYPE_TAG)
        nested = self.createInstance(typeName) if isinstance(typeName, str) else None
        if nested is None:
            raise _BindingFailure(f"unknown nested type '{typeName}'")
        self._bind(nested, value, typeName, ctx)
        return nested

    def _convertImage(self, value: Any, ctx: _BindContext) -> Any:
        if not isinstance(value, str) or not value:
            raise _BindingFailure("image reference must be a non-empty relative path")
        texture = self.mediaLoader.loadImage(ctx.rootPath / value)
        if texture is None:
            raise _BindingFailure(f"image '{value}' could not be loaded")
        return texture

    def _convertAudio(self, value: Any, ctx: _BindContext) -> Any:
        if not isinstance(value, str) or not value:
            raise _BindingFailure("audio reference must be a non-empty relative path")
        clip = self.mediaLoader.loadAudio(ctx.rootPath / value)
        return clip if clip is not None else _UNSET

    # ----- Diagnostics -----

    def _warnField(self, ctx: _BindContext, fieldName: str, reason: str, typeName: str | None) -> None:
        self._warn(
            ctx.report,
            FieldBindingWarning(fieldName, reason, typeName=typeName, modId=ctx.modId, path=ctx.path),
        )

    @staticmethod
    def _warn(report: ContentParseReport, warning: ModSystemWarning) -> None:
        logger.warning("%s", warning.message)
        report.warnings.append(warning)
