"""
Layered lookup of ``PAYOS_*`` settings.

Values come from three places, weakest first: the process environment (or a
caller supplied ``base`` mapping), an optional ``.env`` file that only fills
keys still missing, and explicit ``overrides`` that always win. The result
remembers where every key came from so configuration errors can say which
layer to fix.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

__all__ = [
    "ENV_PREFIX",
    "PayOSEnvironment",
    "build_environment",
    "load_env_file",
    "parse_env_text",
]

ENV_PREFIX = "PAYOS_"

SOURCE_ENVIRON = "environment"
SOURCE_FILE = "env file"
SOURCE_OVERRIDE = "override"


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    if raw[:1] in ("'", '"'):
        quote = raw[0]
        end = raw.find(quote, 1)
        if end != -1:
            return raw[1:end]
    # Unquoted values may carry a trailing " # comment".
    comment = raw.find(" #")
    if comment != -1:
        raw = raw[:comment]
    return raw.rstrip()


def parse_env_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` lines; ``export`` prefixes, quotes and comments are allowed."""
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        values[key] = _parse_value(value)
    return values


def _read_env_file(path: Path) -> Dict[str, str]:
    try:
        return parse_env_text(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy keys from the ``.env`` file at ``path`` into ``environ`` (default
    :data:`os.environ`) without replacing keys that are already set.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _read_env_file(Path(path)).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class PayOSEnvironment:
    variables: Mapping[str, str]
    sources: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def source_of(self, key: str) -> Optional[str]:
        """``"environment"``, ``"env file"`` or ``"override"``; ``None`` when unset."""
        return self.sources.get(key)

    def settings(self) -> Dict[str, str]:
        """The non-blank ``PAYOS_*`` entries only."""
        return {
            key: value
            for key, value in self.variables.items()
            if key.startswith(ENV_PREFIX) and str(value).strip()
        }


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> PayOSEnvironment:
    """
    Resolve the layered environment.

    ``base`` replaces :data:`os.environ` when given. Pass ``env_file=None`` to
    skip reading a file.
    """
    variables: Dict[str, str] = dict(os.environ if base is None else base)
    sources = {key: SOURCE_ENVIRON for key in variables}

    if env_file is not None:
        for key, value in _read_env_file(Path(env_file)).items():
            if key not in variables:
                variables[key] = value
                sources[key] = SOURCE_FILE

    for key, value in (overrides or {}).items():
        variables[key] = value
        sources[key] = SOURCE_OVERRIDE

    return PayOSEnvironment(variables=variables, sources=sources)
