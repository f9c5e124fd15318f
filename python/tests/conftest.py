"""Shared test fixtures for public_api_diff tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest

from public_api_diff.config import Settings
from public_api_diff.models import (
    AccessLevel,
    Attributes,
    Declaration,
    DeclarationKind,
    SDKDump,
    Signature,
)


def _repath(declaration: Declaration, parent_path: list[str]) -> Declaration:
    path = [*parent_path, declaration.name]
    return declaration.model_copy(
        update={"qualified_path": path, "children": [_repath(child, path) for child in declaration.children]}
    )


def build_declaration(
    kind: DeclarationKind,
    name: str,
    *children: Declaration,
    parameters: Sequence[str] = (),
    returns: str | None = None,
    access: AccessLevel = AccessLevel.PUBLIC,
    throwing: bool = False,
    is_async: bool = False,
    generic: str = "",
    **attributes: Any,
) -> Declaration:
    return Declaration(
        kind=kind,
        name=name,
        qualified_path=[name],
        signature=Signature(
            parameters=list(parameters),
            return_type=returns,
            is_throwing=throwing,
            is_async=is_async,
            generic_signature=generic,
        ),
        attributes=Attributes(access_level=access, **attributes),
        children=list(children),
    )


def build_dump(*children: Declaration, target_name: str = "Demo") -> SDKDump:
    root = Declaration(
        kind=DeclarationKind.MODULE,
        name=target_name,
        children=[_repath(child, []) for child in children],
    )
    return SDKDump(target_name=target_name, root=root)


def raw_type_node(type_name: str) -> dict[str, Any]:
    return {"kind": "TypeNominal", "name": type_name, "printedName": type_name}


def raw_declaration(
    decl_kind: str,
    name: str,
    *children: dict[str, Any],
    printed_name: str | None = None,
    types: Sequence[str] = (),
    **extra: Any,
) -> dict[str, Any]:
    kind = {"Func": "Function", "Constructor": "Constructor", "Var": "Var"}.get(decl_kind, "TypeDecl")
    return {
        "kind": kind,
        "name": name,
        "printedName": printed_name or name,
        "declKind": decl_kind,
        "children": [*(raw_type_node(t) for t in types), *children],
        **extra,
    }


def raw_dump(*children: dict[str, Any]) -> dict[str, Any]:
    return {
        "ABIRoot": {
            "kind": "Root",
            "name": "TopLevel",
            "printedName": "TopLevel",
            "children": [{"kind": "Import", "name": "Foundation", "printedName": "Foundation"}, *children],
        },
        "ConstValues": [],
    }


class FakeShell:
    """Records commands and answers them through ``handler``."""

    def __init__(self, handler: Callable[[list[str], Path | None], str] | None = None) -> None:
        self.handler = handler or (lambda command, cwd: "")
        self.commands: list[tuple[list[str], Path | None]] = []

    def execute(self, command: Sequence[str], cwd: Path | None = None) -> str:
        self.commands.append((list(command), cwd))
        return self.handler(list(command), cwd)


@pytest.fixture()
def declaration() -> Callable[..., Declaration]:
    """Factory for normalized declarations."""
    return build_declaration


@pytest.fixture()
def make_dump() -> Callable[..., SDKDump]:
    """Factory wrapping declarations into a dump with consistent paths."""
    return build_dump


@pytest.fixture()
def raw_decl() -> Callable[..., dict[str, Any]]:
    """Factory for ABI digester declaration nodes."""
    return raw_declaration


@pytest.fixture()
def write_dump(tmp_path: Path) -> Callable[..., Path]:
    """Writes ABI digester JSON below ``tmp_path`` and returns the file."""

    def write(relative: str, *children: dict[str, Any]) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(raw_dump(*children)), encoding="utf-8")
        return path

    return write


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings isolated to the test's temporary directory."""
    return Settings(working_directory=tmp_path / "work", max_workers=2)


@pytest.fixture()
def shell_factory() -> type[FakeShell]:
    return FakeShell


@pytest.fixture()
def foo_with_bar(declaration: Callable[..., Declaration]) -> Declaration:
    """``public struct Foo { public func bar() }``."""
    return declaration(
        DeclarationKind.STRUCT,
        "Foo",
        declaration(DeclarationKind.FUNCTION, "bar()"),
    )
