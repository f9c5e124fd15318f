"""Tests for public_api_diff.abi_generator — locating dumps in build products."""

from __future__ import annotations

from pathlib import Path

import pytest

from public_api_diff.abi_generator import ABIGenerator
from public_api_diff.config import Settings
from public_api_diff.errors import NoDumpProducedError


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}", encoding="utf-8")
    return path


@pytest.fixture()
def products(tmp_path: Path, settings: Settings) -> Path:
    return tmp_path / settings.products_subpath


class TestProjectMode:
    def test_framework_path(self, tmp_path: Path, settings: Settings) -> None:
        expected = _touch(
            tmp_path
            / ".build/Build/Products/Debug-maccatalyst/Scheme.framework/Modules/Scheme.swiftmodule/abi.json"
        )

        (output,) = ABIGenerator(settings).generate(tmp_path, "Scheme")

        assert output.target_name == "Scheme"
        assert output.abi_json_file_url == expected

    def test_missing_dump(self, tmp_path: Path, settings: Settings) -> None:
        with pytest.raises(NoDumpProducedError) as excinfo:
            ABIGenerator(settings).generate(tmp_path, "Scheme")
        assert excinfo.value.target_name == "Scheme"
        assert excinfo.value.path.name == "abi.json"


class TestPackageMode:
    def test_one_output_per_module(self, tmp_path: Path, settings: Settings, products: Path) -> None:
        core = _touch(products / "Core.swiftmodule" / "arm64-apple-ios-macabi.abi.json")
        (products / "UI.framework/Modules/UI.swiftmodule").mkdir(parents=True)

        outputs = ABIGenerator(settings).generate(tmp_path, None)

        assert [o.target_name for o in outputs] == ["Core", "UI"]
        assert outputs[0].abi_json_file_url == core
        # missing dumps surface later, when the file is loaded
        assert outputs[1].abi_json_file_url == products / "UI.framework/Modules/UI.swiftmodule/abi.json"

    def test_duplicate_module_names_are_reported_once(
        self, tmp_path: Path, settings: Settings, products: Path
    ) -> None:
        _touch(products / "Core.swiftmodule/x86_64.abi.json")
        _touch(products / "Core.framework/Modules/Core.swiftmodule/x86_64.abi.json")

        outputs = ABIGenerator(settings).generate(tmp_path, None)

        assert [o.target_name for o in outputs] == ["Core"]

    def test_no_products_directory(self, tmp_path: Path, settings: Settings) -> None:
        assert ABIGenerator(settings).generate(tmp_path, None) == []

    def test_configuration_changes_products_path(self, tmp_path: Path) -> None:
        settings = Settings(working_directory=tmp_path, build_configuration="Release", platform="iphoneos")
        _touch(tmp_path / ".build/Build/Products/Release-iphoneos/Lib.swiftmodule/abi.json")

        (output,) = ABIGenerator(settings).generate(tmp_path, None)

        assert output.target_name == "Lib"
