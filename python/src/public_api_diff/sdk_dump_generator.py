"""Normalizes raw Swift ABI digester output into an `SDKDump` tree."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from public_api_diff.errors import DumpParseError, NoDumpProducedError
from public_api_diff.logging import get_logger
from public_api_diff.models import AccessLevel, Attributes, Declaration, DeclarationKind, SDKDump, Signature

log = get_logger(__name__)

DECL_KINDS: dict[str, DeclarationKind] = {
    "Module": DeclarationKind.MODULE,
    "Class": DeclarationKind.CLASS,
    "Struct": DeclarationKind.STRUCT,
    "Enum": DeclarationKind.ENUM,
    "Protocol": DeclarationKind.PROTOCOL,
    "Extension": DeclarationKind.EXTENSION,
    "Func": DeclarationKind.FUNCTION,
    "Constructor": DeclarationKind.INITIALIZER,
    "Var": DeclarationKind.PROPERTY,
    "Subscript": DeclarationKind.SUBSCRIPT,
    "TypeAlias": DeclarationKind.TYPEALIAS,
    "AssociatedType": DeclarationKind.ASSOCIATED_TYPE,
    "EnumElement": DeclarationKind.ENUM_CASE,
}

_CALLABLE_NAMED = frozenset(
    {DeclarationKind.FUNCTION, DeclarationKind.INITIALIZER, DeclarationKind.SUBSCRIPT}
)


class SDKDumpGenerator:
    """Reads one ``abi.json`` file and builds the normalized declaration tree."""

    def generate(self, abi_json_file_url: Path, target_name: str) -> SDKDump:
        """Load and normalize the dump of ``target_name``.

        Raises:
            NoDumpProducedError: The file does not exist.
            DumpParseError: The file is unreadable or not a valid ABI tree.
        """
        if not abi_json_file_url.is_file():
            raise NoDumpProducedError(target_name, abi_json_file_url)
        try:
            raw = json.loads(abi_json_file_url.read_text(encoding="utf-8"))
        except OSError as exc:
            raise DumpParseError(abi_json_file_url, f"unable to read file: {exc}", cause=exc) from exc
        except json.JSONDecodeError as exc:
            raise DumpParseError(abi_json_file_url, f"invalid JSON: {exc}", cause=exc) from exc
        try:
            dump = normalize(raw, target_name, path=abi_json_file_url)
        except (TypeError, AttributeError, ValueError) as exc:
            # a node of an unexpected shape deeper in the tree
            raise DumpParseError(abi_json_file_url, f"unexpected structure: {exc}", cause=exc) from exc
        log.debug("dump_normalized", target=target_name, declarations=len(dump.root.children))
        return dump


def normalize(raw: Any, target_name: str, *, path: Path) -> SDKDump:
    """Build an `SDKDump` from the decoded JSON document of one dump."""
    if isinstance(raw, dict) and "ABIRoot" in raw:
        raw = raw["ABIRoot"]
    if not isinstance(raw, dict):
        raise DumpParseError(path, "root node must be a JSON object")

    children = _normalize_children(_raw_children(raw, [], path), [], AccessLevel.OPEN, path)
    root = Declaration(kind=DeclarationKind.MODULE, name=target_name, children=children)
    return SDKDump(target_name=target_name, root=root)


def _raw_children(node: dict[str, Any], scope: list[str], path: Path) -> list[dict[str, Any]]:
    raw_children = node.get("children", [])
    if not isinstance(raw_children, list):
        raise DumpParseError(path, f"`children` of {'.'.join(scope) or 'root'} must be an array")
    for child in raw_children:
        if not isinstance(child, dict):
            raise DumpParseError(path, f"non-object child below {'.'.join(scope) or 'root'}")
    return raw_children


def _normalize_children(
    raw_children: list[dict[str, Any]],
    parent_path: list[str],
    parent_access: AccessLevel,
    path: Path,
) -> list[Declaration]:
    declarations = []
    for child in raw_children:
        kind = _declaration_kind(child)
        if kind is None:
            continue
        declarations.append(_normalize_declaration(child, kind, parent_path, parent_access, path))
    return declarations


def _declaration_kind(node: dict[str, Any]) -> DeclarationKind | None:
    decl_kind = node.get("declKind")
    if decl_kind in DECL_KINDS:
        return DECL_KINDS[decl_kind]
    try:
        return DeclarationKind(node.get("kind"))
    except ValueError:
        # type references, imports, accessors and unknown node kinds
        return None


def _is_type_node(node: Any) -> bool:
    if not isinstance(node, dict) or "declKind" in node:
        return False
    kind = node.get("kind", "")
    return isinstance(kind, str) and kind.startswith("Type") and kind != "TypeDecl"


def _normalize_declaration(
    node: dict[str, Any],
    kind: DeclarationKind,
    parent_path: list[str],
    parent_access: AccessLevel,
    path: Path,
) -> Declaration:
    name = _declaration_name(node, kind)
    if not name:
        raise DumpParseError(path, f"{kind.value} below {'.'.join(parent_path) or 'root'} has no name")

    qualified_path = [*parent_path, name]
    raw_children = _raw_children(node, qualified_path, path)
    attributes = _attributes(node, parent_access, path)
    return Declaration(
        kind=kind,
        name=name,
        qualified_path=qualified_path,
        signature=_signature(node, kind, raw_children),
        attributes=attributes,
        children=_normalize_children(raw_children, qualified_path, attributes.access_level, path),
    )


def _declaration_name(node: dict[str, Any], kind: DeclarationKind) -> str:
    # argument labels are part of a callable's name
    if kind in _CALLABLE_NAMED:
        return str(node.get("printedName") or node.get("name") or "")
    return str(node.get("name") or node.get("printedName") or "")


def _signature(node: dict[str, Any], kind: DeclarationKind, raw_children: list[dict[str, Any]]) -> Signature:
    types = [str(child.get("printedName", "")) for child in raw_children if _is_type_node(child)]
    effects = {
        "is_throwing": bool(node.get("throwing", False)),
        "is_async": bool(node.get("isAsync", node.get("async", False))),
        "generic_signature": str(node.get("genericSig", "")),
    }

    if kind in (DeclarationKind.FUNCTION, DeclarationKind.SUBSCRIPT):
        return Signature(
            parameters=types[1:],
            return_type=types[0] if types else None,
            **effects,
        )
    if kind is DeclarationKind.INITIALIZER:
        # the first type node is the constructed type itself
        return Signature(parameters=types[1:], **effects)
    if kind in (DeclarationKind.PROPERTY, DeclarationKind.TYPEALIAS, DeclarationKind.ENUM_CASE):
        return Signature(return_type=types[0] if types else None, generic_signature=effects["generic_signature"])
    if kind in (
        DeclarationKind.MODULE,
        DeclarationKind.CLASS,
        DeclarationKind.STRUCT,
        DeclarationKind.ENUM,
        DeclarationKind.PROTOCOL,
        DeclarationKind.EXTENSION,
        DeclarationKind.ASSOCIATED_TYPE,
    ):
        return Signature(generic_signature=effects["generic_signature"])
    raise ValueError(f"Unhandled declaration kind: {kind!r}")


def _attributes(node: dict[str, Any], parent_access: AccessLevel, path: Path) -> Attributes:
    if "accessLevel" in node:
        try:
            access = AccessLevel.parse(str(node["accessLevel"]))
        except ValueError as exc:
            raise DumpParseError(path, str(exc), cause=exc) from exc
    elif node.get("isOpen"):
        access = AccessLevel.OPEN
    elif node.get("isInternal"):
        access = AccessLevel.INTERNAL
    else:
        access = AccessLevel.PUBLIC

    decl_attributes = node.get("declAttributes", [])
    if not isinstance(decl_attributes, list):
        decl_attributes = []

    return Attributes(
        access_level=min(access, parent_access),
        availability=sorted(
            f"{key[len('intro_'):]} {value}" for key, value in node.items() if key.startswith("intro_")
        ),
        is_deprecated=bool(node.get("deprecated", False)),
        is_static=bool(node.get("static", False)),
        is_mutating=node.get("funcSelfKind") == "Mutating" or bool(node.get("mutating", False)),
        is_final="Final" in decl_attributes or bool(node.get("final", False)),
    )
