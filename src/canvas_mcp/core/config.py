from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import click
from dotenv import load_dotenv

from .client import CanvasClient

APP_NAME = "canvas-mcp-server"
TOKEN_KEY = "CANVAS_API_TOKEN"
DOMAIN_KEY = "CANVAS_API_DOMAIN"
CONFIG_KEYS = (TOKEN_KEY, DOMAIN_KEY)

log = logging.getLogger("canvas_mcp.core.config")


class MissingConfigurationError(ValueError):
    """Raised when the Canvas token or domain cannot be found anywhere."""


class ConfigStore:
    """
    Small JSON key/value store in the per-user application directory.

    Used by ``canvas-mcp config`` to persist the Canvas domain and token so the
    server can start without environment variables.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else Path(click.get_app_dir(APP_NAME)) / "config.json"

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Ignoring unreadable config file %s", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def get_all(self) -> Dict[str, str]:
        return self._read()

    def clear(self) -> None:
        self._write({})

    def has_config(self) -> bool:
        data = self._read()
        return all(data.get(key) for key in CONFIG_KEYS)


@dataclass(frozen=True)
class CanvasSettings:
    token: str = ""
    domain: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.token and self.domain)


def load_settings(
    store: Optional[ConfigStore] = None, *, use_dotenv: bool = True
) -> CanvasSettings:
    """Resolve the Canvas token and domain: environment first, stored config second."""
    if use_dotenv:
        load_dotenv()
    store = store or ConfigStore()
    stored = store.get_all()

    def _pick(key: str) -> str:
        return (os.getenv(key) or stored.get(key) or "").strip()

    return CanvasSettings(token=_pick(TOKEN_KEY), domain=_pick(DOMAIN_KEY))


def create_client_from_env(
    store: Optional[ConfigStore] = None, **kwargs
) -> CanvasClient:
    """Create a CanvasClient from the environment or the stored configuration."""
    settings = load_settings(store)
    if not settings.complete:
        raise MissingConfigurationError(
            f"Missing {TOKEN_KEY} or {DOMAIN_KEY}. "
            "Set them in the environment or run `canvas-mcp config`."
        )
    return CanvasClient(domain=settings.domain, token=settings.token, **kwargs)


__all__ = [
    "APP_NAME",
    "CanvasSettings",
    "ConfigStore",
    "MissingConfigurationError",
    "create_client_from_env",
    "load_settings",
]
