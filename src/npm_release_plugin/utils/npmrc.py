"""Reading and appending npm ``.npmrc`` configuration files."""

import base64
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from .registry import nerf_dart

_ENV_REF = re.compile(r"(\\*)\$\{([^}]+)\}")


@dataclass(frozen=True)
class AuthInfo:
    """Credentials found for a registry."""

    token: str
    type: str = "Bearer"

    @property
    def header(self) -> str:
        return f"{self.type} {self.token}"


def expand_env(value: str, env: Mapping[str, str]) -> str:
    """Replace ``${VAR}`` references the way npm does.

    Unknown variables are left untouched, and an escaped ``\\${VAR}`` is kept
    literally.
    """

    def _replace(match: re.Match) -> str:
        escapes, name = match.group(1), match.group(2)
        if len(escapes) % 2:
            return match.group(0)[1:]
        if name in env:
            return escapes + env[name]
        return match.group(0)

    return _ENV_REF.sub(_replace, value)


def parse_npmrc(text: str, env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Parse ``key = value`` lines into a dict, expanding env references."""
    env = env or {}
    config: dict[str, str] = {}

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith((";", "#")) or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = expand_env(key.strip(), env)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]

        config[key] = expand_env(value, env)

    return config


def load_npmrc(paths: Iterable[Path], env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Merge .npmrc files; earlier paths take precedence over later ones."""
    merged: dict[str, str] = {}

    for path in paths:
        if not path.is_file():
            continue
        for key, value in parse_npmrc(path.read_text(encoding="utf-8"), env).items():
            merged.setdefault(key, value)

    return merged


def get_auth_info(registry: str, npmrc: Mapping[str, str]) -> AuthInfo | None:
    """Find credentials for ``registry`` in merged .npmrc settings.

    Walks from the full registry path up to the host, looking for
    ``_authToken``, then ``_auth``, then ``username`` / ``_password`` at each
    level, and finally falls back to a top-level legacy ``_auth``.
    """
    key = nerf_dart(registry)

    while True:
        token = npmrc.get(f"{key}:_authToken")
        if token:
            return AuthInfo(token, "Bearer")

        basic = npmrc.get(f"{key}:_auth")
        if basic:
            return AuthInfo(basic, "Basic")

        username = npmrc.get(f"{key}:username")
        password = npmrc.get(f"{key}:_password")
        if username and password:
            # _password is stored base64 encoded
            decoded = base64.b64decode(password).decode("utf-8")
            return AuthInfo(encode_basic_auth(username, decoded), "Basic")

        # "//host/a/b/" -> "//host/a/"
        trimmed = key.rstrip("/")
        head, _, _ = trimmed.rpartition("/")
        if not head or head == "/":
            break
        key = head + "/"

    legacy = npmrc.get("_auth")
    if legacy:
        return AuthInfo(legacy, "Basic")

    return None


def encode_basic_auth(username: str, password: str) -> str:
    return base64.b64encode(f"{username}:{password}".encode()).decode("ascii")


def append_npmrc(path: Path, lines: Iterable[str]) -> None:
    """Append entries to an .npmrc file, creating it if needed.

    Existing content is never rewritten.
    """
    block = "\n".join(lines)
    path.parent.mkdir(parents=True, exist_ok=True)

    prefix = ""
    if path.exists():
        existing = path.read_text(encoding="utf-8")
        if existing and not existing.endswith("\n"):
            prefix = "\n"

    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{prefix}{block}\n")
