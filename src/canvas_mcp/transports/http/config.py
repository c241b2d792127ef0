from __future__ import annotations

import os
from dataclasses import dataclass


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw.replace("_", ""))


@dataclass(frozen=True)
class HttpConfig:
    """Minimal configuration for the HTTP facade runner."""

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    public_url: str = ""

    @classmethod
    def from_env(cls) -> "HttpConfig":
        port = _read_int_env("HTTP_PORT", cls.port)
        if not 0 < port < 65536:
            raise ValueError("HTTP_PORT must be between 1 and 65535")

        return cls(
            host=(os.getenv("HTTP_HOST") or cls.host).strip(),
            port=port,
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).strip().upper(),
            public_url=(os.getenv("HTTP_PUBLIC_URL") or "").strip().rstrip("/"),
        )

    def with_overrides(self, *, host: str | None = None, port: int | None = None) -> "HttpConfig":
        return HttpConfig(
            host=host or self.host,
            port=port or self.port,
            log_level=self.log_level,
            public_url=self.public_url,
        )


__all__ = ["HttpConfig"]
