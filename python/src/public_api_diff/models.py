"""Core data models for public API diffing: declarations, dumps and changes."""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from public_api_diff.errors import InvalidProjectSourceError


class DeclarationKind(str, Enum):
    """Kinds of declarations that make up a normalized API tree."""

    MODULE = "module"
    CLASS = "class"
    STRUCT = "struct"
    ENUM = "enum"
    PROTOCOL = "protocol"
    EXTENSION = "extension"
    FUNCTION = "function"
    INITIALIZER = "initializer"
    PROPERTY = "property"
    SUBSCRIPT = "subscript"
    TYPEALIAS = "typealias"
    ASSOCIATED_TYPE = "associatedType"
    ENUM_CASE = "enumCase"


class AccessLevel(IntEnum):
    """Access levels with total ordering (lower value = less visible)."""

    PRIVATE = 0
    FILEPRIVATE = 1
    INTERNAL = 2
    PACKAGE = 3
    PUBLIC = 4
    OPEN = 5

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.value <= other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.value < other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.value >= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.value > other.value

    @property
    def keyword(self) -> str:
        return self.name.lower()

    @property
    def is_public(self) -> bool:
        return self >= AccessLevel.PUBLIC

    @classmethod
    def parse(cls, value: str) -> AccessLevel:
        """Parse a Swift access keyword (case-insensitive)."""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown access level: {value!r}") from None


class ChangeType(str, Enum):
    """Kind of API difference."""

    ADDITION = "addition"
    REMOVAL = "removal"
    MODIFICATION = "modification"


class Signature(BaseModel):
    """Canonical callable/value shape of a declaration."""

    parameters: list[str] = []
    return_type: str | None = None
    is_throwing: bool = False
    is_async: bool = False
    generic_signature: str = ""

    @property
    def effects(self) -> str:
        parts = []
        if self.is_async:
            parts.append("async")
        if self.is_throwing:
            parts.append("throws")
        return " ".join(parts)

    @property
    def canonical(self) -> str:
        text = f"{self.generic_signature}({', '.join(self.parameters)})"
        if self.effects:
            text += f" {self.effects}"
        if self.return_type is not None:
            text += f" -> {self.return_type}"
        return text


class Attributes(BaseModel):
    """Non-structural declaration metadata."""

    access_level: AccessLevel = AccessLevel.PUBLIC
    availability: list[str] = []
    is_deprecated: bool = False
    is_static: bool = False
    is_mutating: bool = False
    is_final: bool = False


_CALLABLE_KINDS = frozenset(
    {DeclarationKind.FUNCTION, DeclarationKind.INITIALIZER, DeclarationKind.SUBSCRIPT}
)

_TYPE_KEYWORDS = {
    DeclarationKind.CLASS: "class",
    DeclarationKind.STRUCT: "struct",
    DeclarationKind.ENUM: "enum",
    DeclarationKind.PROTOCOL: "protocol",
    DeclarationKind.EXTENSION: "extension",
}


def _labeled_parameters(name: str, parameters: list[str]) -> tuple[str, str]:
    """Split ``bar(_:y:)`` into ``bar`` and ``_: Int, y: String``."""
    if "(" not in name:
        return name, ", ".join(parameters)
    base, rest = name.split("(", 1)
    labels = rest.rstrip(")").split(":")[:-1]
    if len(labels) != len(parameters):
        return base, ", ".join(parameters)
    return base, ", ".join(f"{label}: {type_}" for label, type_ in zip(labels, parameters))


class Declaration(BaseModel):
    """A node of the normalized API tree."""

    kind: DeclarationKind
    name: str
    qualified_path: list[str] = []
    signature: Signature = Signature()
    attributes: Attributes = Attributes()
    children: list[Declaration] = []

    @property
    def parent_name(self) -> str:
        return ".".join(self.qualified_path[:-1])

    @property
    def path_name(self) -> str:
        return ".".join(self.qualified_path)

    @property
    def disambiguator(self) -> str:
        """Signature part of the identity; only callables can be overloaded."""
        if self.kind in _CALLABLE_KINDS:
            return self.signature.canonical
        return ""

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.kind.value, self.name, self.disambiguator)

    def render(self) -> str:
        """Render a one-line Swift-like declaration."""
        attrs = self.attributes
        sig = self.signature
        modifiers = [attrs.access_level.keyword]
        if attrs.is_final:
            modifiers.append("final")
        if attrs.is_static:
            modifiers.append("static")
        if attrs.is_mutating:
            modifiers.append("mutating")
        prefix = " ".join(modifiers) + " "
        effects = f" {sig.effects}" if sig.effects else ""
        returns = f" -> {sig.return_type}" if sig.return_type is not None else ""

        kind = self.kind
        if kind is DeclarationKind.MODULE:
            return f"module {self.name}"
        if kind in _TYPE_KEYWORDS:
            return f"{prefix}{_TYPE_KEYWORDS[kind]} {self.name}{sig.generic_signature}"
        if kind is DeclarationKind.FUNCTION:
            base, params = _labeled_parameters(self.name, sig.parameters)
            return f"{prefix}func {base}{sig.generic_signature}({params}){effects}{returns}"
        if kind is DeclarationKind.INITIALIZER:
            _, params = _labeled_parameters(self.name, sig.parameters)
            return f"{prefix}init{sig.generic_signature}({params}){effects}"
        if kind is DeclarationKind.SUBSCRIPT:
            _, params = _labeled_parameters(self.name, sig.parameters)
            return f"{prefix}subscript{sig.generic_signature}({params}){returns}"
        if kind is DeclarationKind.PROPERTY:
            return f"{prefix}var {self.name}: {sig.return_type or '_'}"
        if kind is DeclarationKind.TYPEALIAS:
            return f"{prefix}typealias {self.name}{sig.generic_signature} = {sig.return_type or '_'}"
        if kind is DeclarationKind.ASSOCIATED_TYPE:
            return f"{prefix}associatedtype {self.name}"
        if kind is DeclarationKind.ENUM_CASE:
            values = f"({', '.join(sig.parameters)})" if sig.parameters else ""
            return f"{prefix}case {self.name}{values}"
        raise ValueError(f"Unhandled declaration kind: {kind!r}")


class SDKDump(BaseModel):
    """Normalized public surface of one compiled target."""

    target_name: str
    root: Declaration


class ABIGeneratorOutput(BaseModel):
    """Location of the raw dump produced for one target."""

    target_name: str
    abi_json_file_url: Path


class Change(BaseModel):
    """A single difference between two API surfaces."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    change_type: ChangeType
    parent_name: str = ""
    change_description: str
    kind: DeclarationKind | None = None

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.parent_name, self.change_description)

    def to_output(self) -> dict[str, str]:
        """Machine-readable form without the optional kind metadata."""
        return self.model_dump(mode="json", by_alias=True, exclude={"kind"})

    @classmethod
    def removed_target(cls) -> Change:
        return cls(change_type=ChangeType.REMOVAL, change_description="Target was removed")

    @classmethod
    def added_target(cls) -> Change:
        return cls(change_type=ChangeType.ADDITION, change_description="Target was added")

    @classmethod
    def target_error(cls, reason: str) -> Change:
        return cls(
            change_type=ChangeType.MODIFICATION,
            change_description=f"Target could not be analyzed: {reason}",
        )


ChangeMap = dict[str, list[Change]]

# change map key of library-level changes
LIBRARY_KEY = ""


class LocalSource(BaseModel):
    """A project checked out on the local file system."""

    kind: Literal["local"] = "local"
    path: Path

    @property
    def description(self) -> str:
        return str(self.path)


class RemoteSource(BaseModel):
    """A branch or tag of a remote git repository."""

    kind: Literal["remote"] = "remote"
    branch: str
    repository: str

    @property
    def description(self) -> str:
        return f"{self.repository} @ {self.branch}"


ProjectSource = Annotated[Union[LocalSource, RemoteSource], Field(discriminator="kind")]

REMOTE_SEPARATOR = "~"


def parse_project_source(value: str) -> LocalSource | RemoteSource:
    """Parse ``path`` or ``branch~repository`` into a project source.

    Raises:
        InvalidProjectSourceError: The remote form is incomplete or the local
            directory does not exist.
    """
    if REMOTE_SEPARATOR in value:
        branch, _, repository = value.partition(REMOTE_SEPARATOR)
        if not branch.strip() or not repository.strip():
            raise InvalidProjectSourceError(value, f"expected `branch{REMOTE_SEPARATOR}repository`")
        return RemoteSource(branch=branch.strip(), repository=repository.strip())

    path = Path(value).expanduser()
    if not path.is_dir():
        raise InvalidProjectSourceError(value, "local project directory does not exist")
    return LocalSource(path=path)


class PackageProduct(BaseModel):
    """A product entry of ``swift package describe``."""

    name: str
    type: dict[str, Any] | str = {}

    @property
    def is_library(self) -> bool:
        if isinstance(self.type, dict):
            return "library" in self.type
        return self.type == "library"


class PackageTarget(BaseModel):
    """A target entry of ``swift package describe``."""

    name: str
    type: str = ""


class PackageDescription(BaseModel):
    """Subset of ``swift package describe --type json``."""

    name: str
    products: list[PackageProduct] = []
    targets: list[PackageTarget] = []

    @property
    def library_names(self) -> list[str]:
        return sorted(product.name for product in self.products if product.is_library)


class PipelineReport(BaseModel):
    """Result of a pipeline run: rendered text plus the change model behind it."""

    text: str
    change_map: ChangeMap = {}
    all_targets: list[str] = []

    @property
    def has_changes(self) -> bool:
        return any(self.change_map.values())
