"""package.json reading and version updates."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import get_error
from .constants import DEFAULT_DIST_TAG, MANIFEST_FILENAME


@dataclass
class Manifest:
    """The parts of package.json the release cares about."""

    name: str
    version: str | None
    path: Path
    private: bool = False
    publish_registry: str | None = None
    publish_tag: str = DEFAULT_DIST_TAG
    data: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path) -> "Manifest":
        publish_config = data.get("publishConfig") or {}
        return cls(
            name=data.get("name") or "",
            version=data.get("version"),
            path=path,
            private=data.get("private") is True,
            publish_registry=publish_config.get("registry") or None,
            publish_tag=publish_config.get("tag") or DEFAULT_DIST_TAG,
            data=data,
        )


def manifest_path(pkg_root: Path) -> Path:
    return pkg_root / MANIFEST_FILENAME


def read_manifest(pkg_root: Path) -> Manifest:
    """Load package.json from a package root.

    Raises:
        PackageError: ENOPKG if the file is missing, ENOPKGNAME if it has no name,
            EINVALIDPKG if it is not a JSON object
    """
    path = manifest_path(pkg_root)
    if not path.is_file():
        raise get_error("ENOPKG", path=path)

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise get_error("EINVALIDPKG", path=path, reason=e) from e

    if not isinstance(data, dict):
        raise get_error("EINVALIDPKG", path=path, reason="top-level value is not an object")
    if not isinstance(data.get("publishConfig") or {}, dict):
        raise get_error("EINVALIDPKG", path=path, reason="`publishConfig` is not an object")

    manifest = Manifest.from_dict(data, path)
    if not isinstance(manifest.name, str) or not manifest.name.strip():
        raise get_error("ENOPKGNAME", path=path)

    return manifest


def _detect_indent(text: str) -> str | int:
    for line in text.splitlines()[1:]:
        stripped = line.lstrip(" \t")
        if stripped and len(stripped) != len(line):
            return line[: len(line) - len(stripped)]
    return 2


def write_version(pkg_root: Path, version: str) -> Path:
    """Set the ``version`` field of package.json in place.

    Key order, indentation and the trailing newline are preserved.

    Returns:
        Path to the updated package.json
    """
    path = manifest_path(pkg_root)
    text = path.read_text(encoding="utf-8")
    data = json.loads(text)
    data["version"] = version

    output = json.dumps(data, indent=_detect_indent(text), ensure_ascii=False)
    if text.endswith("\n"):
        output += "\n"
    path.write_text(output, encoding="utf-8")

    return path
