# pyright: reportAny=false, reportExplicitAny=false
"""Port extraction from project configuration files.

Ports are read from ``package.json`` scripts, dev-server config files of
the common bundlers and meta-frameworks, ``angular.json`` and ``.env``
files. Config files are source code, so they are matched with regular
expressions rather than evaluated.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import orjson

from projax.scanner._detector import MANIFEST_NAME, read_manifest

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["PortInfo", "extract_ports"]

_MAX_PORT: Final = 65535


@dataclass(frozen=True, slots=True)
class PortInfo:
    """A port found in a project's configuration.

    Attributes:
        port: The port number.
        script: The ``package.json`` script that uses it, if any.
        source: Name of the file it was found in.
    """

    port: int
    script: str | None
    source: str


_SCRIPT_PATTERNS: Final = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"--port[=\s]+(\d+)",
        r"-p\s+(\d+)",
        r"PORT\s*=\s*(\d+)",
        r"VITE_PORT\s*=\s*(\d+)",
        r"NEXT_PORT\s*=\s*(\d+)",
    )
)

_SERVER_BLOCK_PATTERNS: Final = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"server\s*:\s*\{[^}]*port\s*:\s*(\d+)",
        r"server\s*:\s*\{[^}]*port\s*:\s*['\"](\d+)['\"]",
    )
)

_DEV_SERVER_PATTERNS: Final = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"devServer\s*:\s*\{[^}]*port\s*:\s*(\d+)",
        r"devServer\s*:\s*\{[^}]*port\s*:\s*['\"](\d+)['\"]",
    )
)

_BARE_PORT_PATTERNS: Final = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"port\s*:\s*(\d+)",
        r"port\s*:\s*['\"](\d+)['\"]",
    )
)

_ENV_PATTERN: Final = re.compile(
    r"^\s*(?:export\s+)?(?:PORT|VITE_PORT|NEXT_PORT|REACT_APP_PORT)\s*=\s*['\"]?(\d+)",
    re.IGNORECASE,
)

_CONFIG_SOURCES: Final = (
    (
        ("vite.config.js", "vite.config.ts", "vite.config.mjs", "vite.config.cjs"),
        _SERVER_BLOCK_PATTERNS + _BARE_PORT_PATTERNS,
    ),
    (
        ("next.config.js", "next.config.ts", "next.config.mjs"),
        _DEV_SERVER_PATTERNS + _BARE_PORT_PATTERNS,
    ),
    (
        ("webpack.config.js", "webpack.config.ts"),
        _DEV_SERVER_PATTERNS,
    ),
    (
        ("nuxt.config.js", "nuxt.config.ts"),
        _SERVER_BLOCK_PATTERNS,
    ),
)

_ENV_FILES: Final = (".env", ".env.local", ".env.development", ".env.production")


def _valid_port(value: object) -> int | None:
    try:
        port = int(value)  # pyright: ignore[reportArgumentType]
    except (TypeError, ValueError):
        return None
    return port if 0 < port <= _MAX_PORT else None


def _first_port(content: str, patterns: Iterable[re.Pattern[str]]) -> int | None:
    """Return the first valid port matched by any pattern, in pattern order."""
    for pattern in patterns:
        match = pattern.search(content)
        if match is not None:
            port = _valid_port(match.group(1))
            if port is not None:
                return port
    return None


def _read_text(path: "Path") -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _from_manifest(root: "Path") -> list[PortInfo]:
    manifest = read_manifest(root)
    scripts = manifest.get("scripts") if manifest is not None else None
    if not isinstance(scripts, Mapping):
        return []

    ports: list[PortInfo] = []
    for name, command in scripts.items():
        if not isinstance(command, str):
            continue
        port = _first_port(command, _SCRIPT_PATTERNS)
        if port is not None:
            ports.append(PortInfo(port=port, script=str(name), source=MANIFEST_NAME))
    return ports


def _from_config_files(root: "Path") -> list[PortInfo]:
    ports: list[PortInfo] = []
    for file_names, patterns in _CONFIG_SOURCES:
        for file_name in file_names:
            content = _read_text(root / file_name)
            if content is None:
                continue
            port = _first_port(content, patterns)
            if port is not None:
                ports.append(PortInfo(port=port, script=None, source=file_name))
    return ports


def _from_angular(root: "Path") -> list[PortInfo]:
    try:
        data: Any = orjson.loads((root / "angular.json").read_bytes())
    except (OSError, orjson.JSONDecodeError):
        return []

    projects = data.get("projects") if isinstance(data, Mapping) else None
    if not isinstance(projects, Mapping):
        return []

    ports: list[PortInfo] = []
    for project in projects.values():
        options: Any = project
        for key in ("architect", "serve", "options"):
            options = options.get(key) if isinstance(options, Mapping) else None
        if not isinstance(options, Mapping):
            continue
        port = _valid_port(options.get("port"))
        if port is not None:
            ports.append(PortInfo(port=port, script=None, source="angular.json"))
    return ports


def _from_env_files(root: "Path") -> list[PortInfo]:
    ports: list[PortInfo] = []
    for file_name in _ENV_FILES:
        content = _read_text(root / file_name)
        if content is None:
            continue
        for line in content.splitlines():
            if line.strip().startswith("#"):
                continue
            match = _ENV_PATTERN.match(line)
            port = _valid_port(match.group(1)) if match is not None else None
            if port is not None:
                ports.append(PortInfo(port=port, script=None, source=file_name))
    return ports


def extract_ports(root: "Path") -> list[PortInfo]:
    """Extract the ports a project is configured to listen on.

    Sources are read in a fixed order: ``package.json`` scripts, vite, next,
    webpack and nuxt config files, ``angular.json``, then ``.env``,
    ``.env.local``, ``.env.development`` and ``.env.production``. Unreadable
    or unparseable files are skipped. Ports outside 1-65535 are ignored.

    Args:
        root: Project root directory.

    Returns:
        Ports in discovery order, deduplicated by ``(port, script)``; the
        first source to report a pair wins.
    """
    found = [
        *_from_manifest(root),
        *_from_config_files(root),
        *_from_angular(root),
        *_from_env_files(root),
    ]

    seen: set[tuple[int, str | None]] = set()
    ports: list[PortInfo] = []
    for info in found:
        key = (info.port, info.script)
        if key not in seen:
            seen.add(key)
            ports.append(info)
    return ports
