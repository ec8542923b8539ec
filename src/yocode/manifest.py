"""Manifest loading, validation and append-only mutation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

from .exceptions import ManifestMalformed, ManifestMissing
from .models import LanguageVariant

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"
SCHEMA_PATH = Path(__file__).parent / "schemas" / "manifest.schema.json"

_schema_cache: dict[str, Any] = {}


def _load_schema() -> dict[str, Any]:
    """Load and cache the bundled manifest schema."""
    if "manifest" not in _schema_cache:
        with SCHEMA_PATH.open(encoding="utf-8") as f:
            _schema_cache["manifest"] = json.load(f)
    return _schema_cache["manifest"]


@dataclass
class Manifest:
    """A project manifest held as a key-ordered mapping."""

    data: dict[str, Any]

    @property
    def name(self) -> str:
        return self.data["name"]

    @property
    def commands(self) -> list[dict[str, Any]]:
        return self.data.get("contributes", {}).get("commands", [])

    def command_ids(self) -> list[str]:
        """Command ids declared under contributes.commands, in order."""
        return [entry["command"] for entry in self.commands]


def load(path: Path) -> Manifest:
    """Load and validate a manifest.

    Args:
        path: Path to the manifest file

    Returns:
        Parsed manifest

    Raises:
        ManifestMissing: If the file does not exist
        ManifestMalformed: If the file is not a valid manifest object
    """
    path = Path(path)
    if not path.exists():
        msg = f"Manifest not found at {path}"
        raise ManifestMissing(msg, details={"path": str(path)})

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Manifest at {path} is not valid JSON: {e}"
        raise ManifestMalformed(msg, details={"path": str(path)}) from e
    except UnicodeDecodeError as e:
        msg = f"Manifest at {path} is not valid UTF-8: {e}"
        raise ManifestMalformed(msg, details={"path": str(path)}) from e
    except OSError as e:
        msg = f"Failed to read manifest at {path}: {e}"
        raise ManifestMalformed(msg, details={"path": str(path)}) from e

    try:
        jsonschema.validate(data, _load_schema())
    except jsonschema.ValidationError as e:
        msg = f"Manifest validation failed: {e.message}"
        raise ManifestMalformed(
            msg,
            details={"path": str(path), "field": list(e.absolute_path)},
        ) from e

    return Manifest(data=data)


def add_command_entry(manifest: Manifest, command: str, title: str) -> Manifest:
    """Append a command contribution, creating missing containers.

    Existing entries are never removed or reordered. Newly created
    ``contributes`` and ``commands`` keys land at the end of their parent.
    """
    contributes = manifest.data.setdefault("contributes", {})
    commands = contributes.setdefault("commands", [])
    commands.append({"command": command, "title": title})
    logger.debug("manifest now declares %d command(s)", len(commands))
    return manifest


def dumps(manifest: Manifest) -> str:
    """Serialize with two-space indentation and a trailing newline."""
    return json.dumps(manifest.data, indent=2, ensure_ascii=False) + "\n"


def save(manifest: Manifest, path: Path) -> None:
    Path(path).write_text(dumps(manifest), encoding="utf-8")


def detect_variant(manifest: Manifest) -> LanguageVariant:
    """Pick the language variant from the manifest's toolchain dependencies."""
    for section in ("devDependencies", "dependencies"):
        if "typescript" in manifest.data.get(section, {}):
            return LanguageVariant.TYPED
    return LanguageVariant.SCRIPT
