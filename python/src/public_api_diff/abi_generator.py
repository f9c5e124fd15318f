"""Locates the raw ABI dumps a build produced, one per compilation target."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from public_api_diff.errors import NoDumpProducedError
from public_api_diff.logging import get_logger
from public_api_diff.models import ABIGeneratorOutput

if TYPE_CHECKING:
    from public_api_diff.config import Settings

log = get_logger(__name__)

ABI_FILE_NAME = "abi.json"


class ABIGenerator:
    """Finds ``abi.json`` dumps below a built project's products directory.

    With a scheme the project is expected to produce a single framework named
    after the scheme. Without one, every ``.swiftmodule`` in the products
    directory is treated as a package target.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def generate(self, project_dir: Path, scheme: str | None) -> list[ABIGeneratorOutput]:
        if scheme is None:
            return self._package_outputs(project_dir)
        return [self._project_output(project_dir, scheme)]

    def _project_output(self, project_dir: Path, scheme: str) -> ABIGeneratorOutput:
        log.info("locating_abi_file", project_dir=str(project_dir), scheme=scheme)
        abi_file = (
            project_dir
            / self.settings.products_subpath
            / f"{scheme}.framework"
            / "Modules"
            / f"{scheme}.swiftmodule"
            / ABI_FILE_NAME
        )
        if not abi_file.is_file():
            raise NoDumpProducedError(scheme, abi_file)
        log.debug("abi_file_located", target=scheme, path=str(abi_file))
        return ABIGeneratorOutput(target_name=scheme, abi_json_file_url=abi_file)

    def _package_outputs(self, project_dir: Path) -> list[ABIGeneratorOutput]:
        products_dir = project_dir / self.settings.products_subpath
        log.info("scanning_abi_files", project_dir=str(project_dir), products_dir=str(products_dir))
        if not products_dir.is_dir():
            return []

        module_dirs = [*products_dir.glob("*.swiftmodule"), *products_dir.glob("*.framework/Modules/*.swiftmodule")]
        outputs: dict[str, ABIGeneratorOutput] = {}
        for module_dir in sorted(module_dirs):
            if not module_dir.is_dir():
                continue
            target_name = module_dir.stem
            if target_name in outputs:
                continue
            abi_file = _find_abi_file(module_dir)
            log.debug("abi_file_located", target=target_name, path=str(abi_file), exists=abi_file.is_file())
            outputs[target_name] = ABIGeneratorOutput(target_name=target_name, abi_json_file_url=abi_file)
        return [outputs[name] for name in sorted(outputs)]


def _find_abi_file(module_dir: Path) -> Path:
    candidates = sorted(module_dir.glob("*.abi.json"))
    if candidates:
        return candidates[0]
    # expected location; loading reports it as missing for this target only
    return module_dir / ABI_FILE_NAME
