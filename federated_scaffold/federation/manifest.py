"""Package manifest (``package.json``) probing."""

from __future__ import annotations

import json
from typing import Any

from federated_scaffold.errors import ManifestNotFoundError, ManifestParseError
from federated_scaffold.scaffolder.tree import VirtualTree


def read_package_manifest(tree: VirtualTree, path: str = "package.json") -> str:
    """Return the manifest text at *path*.

    Raises:
        ManifestNotFoundError: If the file does not exist.
    """
    content = tree.read_text(path)
    if content is None:
        raise ManifestNotFoundError(path)
    return content


def has_dependency(manifest_text: str, package_name: str) -> bool:
    """Return ``True`` if *package_name* appears under ``dependencies``.

    Each entry of the ``dependencies`` object is rendered back to its literal
    text (``"name": "version"``) and searched for *package_name* as a
    substring.  This is looser than an exact key lookup: ``"ng-terminal"``
    also matches ``"ng-terminal-extras"`` or a version string that mentions
    it.

    A missing or non-object ``dependencies`` section yields ``False``.

    Raises:
        ManifestParseError: If *manifest_text* is not valid JSON.
    """
    try:
        document = json.loads(manifest_text)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"Cannot parse package manifest: {exc}") from exc

    if not isinstance(document, dict):
        return False
    dependencies = document.get("dependencies")
    if not isinstance(dependencies, dict):
        return False
    return any(
        package_name in _entry_text(key, value) for key, value in dependencies.items()
    )


def _entry_text(key: str, value: Any) -> str:
    return f"{json.dumps(key, ensure_ascii=False)}: {json.dumps(value, ensure_ascii=False)}"
