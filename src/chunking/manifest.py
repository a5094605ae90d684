"""Runtime loader metadata for chunked builds."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

import msgspec

from entryconfig.errors import ConfigError
from entryconfig.models import ChunkSpec
from serde_msgspec import StructBaseStrict

type ModuleUriFactory = Callable[[str], Sequence[str]]

MODULE_URI_PLACEHOLDER = "%s"
_OUTPUT_MARKER = "%output%"


class ModuleManifest(StructBaseStrict, frozen=True):
    """Chunk dependency and URI tables consumed by the runtime loader."""

    module_info: dict[str, tuple[str, ...]]
    module_uris: dict[str, tuple[str, ...]]
    root_id: str

    def wrapper_code(self) -> str:
        """Return the root chunk wrapper declaring the loader tables.

        Returns
        -------
        str
            Wrapper source with the ``%output%`` marker.
        """
        info = msgspec.json.encode(self.module_info).decode("utf-8")
        uris = msgspec.json.encode(self.module_uris).decode("utf-8")
        return (
            f"var PLOVR_MODULE_INFO = {info};\n"
            f"var PLOVR_MODULE_URIS = {uris};\n"
            f"{_OUTPUT_MARKER}"
        )

    def chunk_wrapper(self) -> str:
        """Return the ``chunk_wrapper`` flag value for the root chunk.

        Returns
        -------
        str
            ``<root id>:<wrapper code>``.
        """
        return f"{self.root_id}:{self.wrapper_code()}"


def build_module_manifest(
    modules: Mapping[str, ChunkSpec],
    create_module_uris: ModuleUriFactory,
) -> ModuleManifest:
    """Collect per-chunk deps and URIs in declaration order.

    Returns
    -------
    ModuleManifest
        Loader tables for every declared chunk.

    Raises
    ------
    ConfigError
        Raised when zero or several chunks have no dependencies.
    """
    root_id: str | None = None
    module_info: dict[str, tuple[str, ...]] = {}
    module_uris: dict[str, tuple[str, ...]] = {}
    for chunk_id, spec in modules.items():
        module_info[chunk_id] = tuple(spec.deps)
        module_uris[chunk_id] = tuple(create_module_uris(chunk_id))
        if not spec.deps:
            if root_id is not None:
                msg = "Many root modules"
                raise ConfigError(msg)
            root_id = chunk_id
    if root_id is None:
        msg = "No root module"
        raise ConfigError(msg)
    return ModuleManifest(module_info=module_info, module_uris=module_uris, root_id=root_id)


def production_uri_factory(template: str | None) -> ModuleUriFactory:
    """Return a URI factory substituting the chunk id into ``template``.

    Returns
    -------
    ModuleUriFactory
        Callable mapping a chunk id to its output URIs.

    Raises
    ------
    ConfigError
        Raised when no template is configured.
    """
    if not template:
        msg = "Chunk builds require 'module-production-uri'."
        raise ConfigError(msg)

    def _uris(chunk_id: str) -> tuple[str, ...]:
        return (template.replace(MODULE_URI_PLACEHOLDER, chunk_id),)

    return _uris


__all__ = [
    "MODULE_URI_PLACEHOLDER",
    "ModuleManifest",
    "ModuleUriFactory",
    "build_module_manifest",
    "production_uri_factory",
]
