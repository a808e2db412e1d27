# modkit/content/type_registry.py
from __future__ import annotations
import dataclasses
import functools
import logging
import types
import typing
from collections.abc import Callable, Iterable, Mapping, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union, runtime_checkable

from modkit.content.media import AudioClip, Texture

logger = logging.getLogger(__name__)

__all__ = [
    "FieldKind",
    "FieldSpec",
    "TypeEntry",
    "TypeRegistry",
    "DefaultTypeRegistry",
    "describeFields",
    "specFromAnnotation",
]



class FieldKind(str, Enum):
    """How a declarative value is turned into a field value."""
    VALUE = "value"     # primitives, strings, bools, plain JSON containers
    ENUM = "enum"       # string parsed against enum member names
    OBJECT = "object"   # nested record, recursive create+bind
    LIST = "list"       # fresh list, every element bound with `element`
    IMAGE = "image"     # path relative to the package root, decoded to a Texture
    AUDIO = "audio"     # path relative to the package root, decoding deferred



@dataclass(frozen=True)
class FieldSpec:
    """
    Declares one bindable field of a content type.

    - valueType: expected Python type. VALUE fields with a valueType are
      kind-checked; ENUM fields use it as the enum class; OBJECT fields use
      it to build untagged nested records.
    - element: spec applied to each element of a LIST field.
    - setter: custom assignment; defaults to setattr(instance, name, value).
    """
    name: str
    kind: FieldKind = FieldKind.VALUE
    valueType: type | None = None
    element: FieldSpec | None = None
    setter: Callable[[Any, Any], None] | None = None

    def assign(self, instance: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(instance, value)
        else:
            setattr(instance, self.name, value)



@dataclass(frozen=True)
class TypeEntry:
    typeName: str
    cls: type
    factory: Callable[[], Any]
    fields: tuple[FieldSpec, ...]

    def field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None



@runtime_checkable
class TypeRegistry(Protocol):
    """
    Capability surface supplied by the host: maps a content type tag to a
    constructible type and its field schema.
    """

    def create(self, typeName: str) -> Any | None:
        """Returns a fresh instance, or None when the tag is unknown."""
        ...

    def register(
        self,
        typeName: str,
        cls: type,
        *,
        factory: Callable[[], Any] | None = None,
        fields: Iterable[FieldSpec] | None = None,
    ) -> None:
        ...

    def has(self, typeName: str) -> bool:
        ...

    def resolveType(self, typeName: str) -> type | None:
        ...

    def fieldsFor(self, typeName: str) -> tuple[FieldSpec, ...]:
        ...

    def registeredTypeNames(self) -> list[str]:
        ...



# ------------------------------------------------------------------ #
# Schema derivation
# ------------------------------------------------------------------ #

_PRIMITIVES = (bool, int, float, str)
_SEQUENCE_ORIGINS = (list, Sequence, MutableSequence)


def _unwrapOptional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation



def specFromAnnotation(name: str, annotation: Any) -> FieldSpec:
    """Maps a type annotation to the FieldSpec the binder needs."""
    annotation = _unwrapOptional(annotation)
    origin = typing.get_origin(annotation)

    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(annotation)
        element = specFromAnnotation(name, args[0]) if args else FieldSpec(name)
        return FieldSpec(name, FieldKind.LIST, element=element)

    if not isinstance(annotation, type):
        return FieldSpec(name)

    if issubclass(annotation, Enum):
        return FieldSpec(name, FieldKind.ENUM, valueType=annotation)
    if issubclass(annotation, Texture):
        return FieldSpec(name, FieldKind.IMAGE, valueType=annotation)
    if issubclass(annotation, AudioClip):
        return FieldSpec(name, FieldKind.AUDIO, valueType=annotation)
    if annotation in _PRIMITIVES:
        return FieldSpec(name, valueType=annotation)
    if annotation is list:
        return FieldSpec(name, FieldKind.LIST, element=FieldSpec(name))
    if dataclasses.is_dataclass(annotation):
        return FieldSpec(name, FieldKind.OBJECT, valueType=annotation)
    return FieldSpec(name)



@functools.lru_cache(maxsize=None)
def describeFields(cls: type) -> tuple[FieldSpec, ...]:
    """
    Derives a field schema from a dataclass' annotations.
    Non-dataclass types have no derivable schema and return ().
    """
    if not dataclasses.is_dataclass(cls):
        return ()
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as err:
        logger.warning("Cannot resolve annotations of %s (%s); fields bind without kind checks", cls.__name__, err)
        hints = {}
    return tuple(
        specFromAnnotation(dcField.name, hints.get(dcField.name, Any))
        for dcField in dataclasses.fields(cls)
    )



# ------------------------------------------------------------------ #
# Default implementation
# ------------------------------------------------------------------ #

class DefaultTypeRegistry:
    """
    Tag -> (type, factory, schema) mapping.

    Registering the same tag twice replaces the earlier entry.
    """
    def __init__(self) -> None:
        self._entries: dict[str, TypeEntry] = {}

    # ----- Registration -----

    def register(
        self,
        typeName: str,
        cls: type,
        *,
        factory: Callable[[], Any] | None = None,
        fields: Iterable[FieldSpec] | None = None,
    ) -> None:
        if not typeName or not isinstance(typeName, str):
            raise ValueError("Type name must be a non-empty string")
        if not isinstance(cls, type):
            raise TypeError(f"Type '{typeName}' must be registered with a class, got {cls!r}")

        schema = tuple(fields) if fields is not None else describeFields(cls)
        if typeName in self._entries:
            logger.debug("Replacing registered content type '%s'", typeName)
        self._entries[typeName] = TypeEntry(
            typeName=typeName,
            cls=cls,
            factory=factory if factory is not None else cls,
            fields=schema,
        )

    def registerFactory(
        self,
        typeName: str,
        cls: type,
        factory: Callable[[], Any],
        *,
        fields: Iterable[FieldSpec] | None = None,
    ) -> None:
        self.register(typeName, cls, factory=factory, fields=fields)

    def registerTypes(self, typeMap: Mapping[str, type] | Iterable[tuple[str, type]]) -> None:
        items = typeMap.items() if isinstance(typeMap, Mapping) else typeMap
        for typeName, cls in items:
            self.register(typeName, cls)

    # ----- Lookup -----

    def has(self, typeName: str) -> bool:
        return typeName in self._entries

    def resolveType(self, typeName: str) -> type | None:
        entry = self._entries.get(typeName)
        return entry.cls if entry is not None else None

    def entry(self, typeName: str) -> TypeEntry | None:
        return self._entries.get(typeName)

    def registeredTypeNames(self) -> list[str]:
        return list(self._entries)

    def fieldsFor(self, typeName: str) -> tuple[FieldSpec, ...]:
        entry = self._entries.get(typeName)
        return entry.fields if entry is not None else ()

    # ----- Instantiation -----

    def create(self, typeName: str) -> Any | None:
        entry = self._entries.get(typeName)
        if entry is None:
            return None
        return entry.factory()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, typeName: object) -> bool:
        return typeName in self._entries
