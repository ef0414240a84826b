"""Status provider discovery and manifest loading.

Every provider lives in its own sub-package of ``pyroombooking.provider`` and
describes itself with a ``manifest.json`` next to its code. Manifests are read
once and indexed by provider id.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any

from ..exceptions import ProviderError
from ..models import ProviderInfo

MANIFEST_FILENAME = "manifest.json"
SCHEMA_FILENAME = "manifest.schema.json"
_REQUIRED_KEYS = ("id", "name", "payment_methods")
_MANIFEST_INDEX: dict[str, ProviderManifest] | None = None


@dataclass(frozen=True, slots=True)
class ProviderManifest:
    id: str
    name: str
    payment_methods: tuple[str, ...]

    def to_info(self) -> ProviderInfo:
        return ProviderInfo(id=self.id, name=self.name, payment_methods=self.payment_methods)


def _package_root() -> Traversable:
    return resources.files(__package__)


def load_manifest_schema() -> dict[str, Any]:
    """Return the JSON schema every provider manifest must satisfy."""
    return json.loads((_package_root() / SCHEMA_FILENAME).read_text(encoding="utf-8"))


def _require_text(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ProviderError(f"Provider manifest {key} must be a non-empty string.")
    return value


def _parse_payment_methods(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ProviderError("Provider manifest payment_methods must be a non-empty list.")
    if not all(isinstance(method, str) and method for method in value):
        raise ProviderError("Provider manifest payment_methods must be a list of strings.")
    if len(set(value)) != len(value):
        raise ProviderError("Provider manifest payment_methods must not repeat.")
    return tuple(value)


def parse_manifest(data: Any, folder_name: str) -> ProviderManifest:
    """Validate raw manifest data found in ``folder_name``."""
    if not isinstance(data, dict):
        raise ProviderError(f"Manifest for provider {folder_name} must be a JSON object.")
    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise ProviderError(
            f"Manifest for provider {folder_name} is missing: {', '.join(missing)}."
        )
    provider_id = _require_text(data, "id")
    if provider_id != folder_name:
        raise ProviderError(
            f"Manifest id {provider_id!r} does not match its folder {folder_name!r}."
        )
    return ProviderManifest(
        id=provider_id,
        name=_require_text(data, "name"),
        payment_methods=_parse_payment_methods(data["payment_methods"]),
    )


def iter_provider_folders() -> Iterator[tuple[str, Traversable]]:
    """Yield ``(folder name, manifest path)`` for each packaged provider."""
    for entry in _package_root().iterdir():
        if not entry.is_dir():
            continue
        manifest_path = entry / MANIFEST_FILENAME
        if manifest_path.is_file():
            yield entry.name, manifest_path


def _read_manifest(folder_name: str, manifest_path: Traversable) -> ProviderManifest:
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ProviderError(f"Manifest for provider {folder_name} is not valid JSON.") from exc
    return parse_manifest(data, folder_name)


def _manifest_index() -> dict[str, ProviderManifest]:
    global _MANIFEST_INDEX
    if _MANIFEST_INDEX is None:
        index = {
            manifest.id: manifest
            for manifest in (
                _read_manifest(folder_name, path) for folder_name, path in iter_provider_folders()
            )
        }
        _MANIFEST_INDEX = dict(sorted(index.items()))
    return _MANIFEST_INDEX


def load_manifests() -> list[ProviderManifest]:
    """Return every provider manifest, sorted by id."""
    return list(_manifest_index().values())


def clear_manifest_cache() -> None:
    """Forget loaded manifests so the next lookup reads them again."""
    global _MANIFEST_INDEX
    _MANIFEST_INDEX = None


def list_providers() -> list[ProviderInfo]:
    return [manifest.to_info() for manifest in load_manifests()]


def get_manifest(provider_id: str) -> ProviderManifest:
    manifest = _manifest_index().get(provider_id)
    if manifest is None:
        raise ProviderError(f"Unknown provider: {provider_id}.")
    return manifest
