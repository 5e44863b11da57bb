"""Server configuration: bind address, CORS policy, logging and uvicorn."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .uvicorn import UvicornConfig

logger = logging.getLogger("serverops.config")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
MAX_PORT = 65535

ALLOW_ALL = ("*", "allow-all")

DEFAULT_CORS_METHODS = ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE")


def resolve_port(port: Any) -> int:
    """
    Resolve a configured port, falling back to 3000.

    Integers and integer-like strings are accepted. Anything else, or a value
    outside 0..65535, is replaced by the default with a warning.
    """
    if port is None:
        return DEFAULT_PORT

    resolved: int | None = None
    if isinstance(port, int) and not isinstance(port, bool):
        resolved = port
    elif isinstance(port, str):
        try:
            resolved = int(port.strip(), 10)
        except ValueError:
            resolved = None

    if resolved is None or not 0 <= resolved <= MAX_PORT:
        logger.warning(f'Invalid port "{port}" given - using {DEFAULT_PORT} instead')
        return DEFAULT_PORT
    return resolved


def _as_list(value: Any) -> list[str]:
    if value is True:
        return ["*"]
    if value is None or value is False:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


@dataclass(frozen=True)
class CORSPolicy:
    """
    CORS policy applied with Starlette's CORSMiddleware.

    The defaults allow every origin without credentials, with the usual set
    of methods and any request header.
    """

    origins: tuple[str, ...] = ("*",)
    credentials: bool = False
    methods: tuple[str, ...] = DEFAULT_CORS_METHODS
    headers: tuple[str, ...] = ("*",)

    @classmethod
    def from_value(cls, value: Any) -> CORSPolicy | None:
        """
        Build a policy from a config value.

        Args:
            value: None (no CORS), "*" / "allow-all", a single origin string,
                a mapping with origin/credentials/methods/headers keys, or a
                CORSPolicy

        Returns:
            CORSPolicy, or None when CORS is disabled
        """
        if value is None or isinstance(value, CORSPolicy):
            return value

        if isinstance(value, str):
            if value in ALLOW_ALL:
                logger.info("Notice: CORS is enabled for ALL origins!")
                return cls()
            return cls(origins=(value,))

        if isinstance(value, Mapping):
            kwargs: dict[str, Any] = {}
            if "origin" in value:
                kwargs["origins"] = tuple(_as_list(value["origin"]))
            if "credentials" in value:
                kwargs["credentials"] = bool(value["credentials"])
            if "methods" in value:
                kwargs["methods"] = tuple(_as_list(value["methods"]))
            if "headers" in value:
                kwargs["headers"] = tuple(_as_list(value["headers"]))
            return cls(**kwargs)

        raise TypeError(f"Unsupported CORS policy: {value!r}")

    def to_middleware_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for starlette.middleware.cors.CORSMiddleware."""
        return {
            "allow_origins": list(self.origins),
            "allow_credentials": self.credentials,
            "allow_methods": list(self.methods),
            "allow_headers": list(self.headers),
        }


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration of a ServerOps instance.

    Port and CORS values are validated once, at construction; invalid ports
    fall back to 3000.

    Attributes:
        host: Bind address (default: "0.0.0.0")
        port: Bind port (default: 3000)
        cors: CORS policy, "*"/"allow-all", a mapping, or None (disabled)
        security_headers: Add defensive response headers (default: True)
        log_level: Level for setup_logging() at launch (default: "info")
        log_file: Write logs to this file instead of stderr (optional)
        uvicorn: Uvicorn server configuration
    """

    host: str = DEFAULT_HOST
    port: Any = DEFAULT_PORT
    cors: Any = None
    security_headers: bool = True
    log_level: str = "info"
    log_file: str | None = None
    uvicorn: UvicornConfig = field(default_factory=UvicornConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "port", resolve_port(self.port))
        object.__setattr__(self, "cors", CORSPolicy.from_value(self.cors))

    @classmethod
    def from_value(cls, value: ServerConfig | Mapping[str, Any] | None) -> ServerConfig:
        """Coerce a ServerConfig, a mapping or None into a ServerConfig."""
        if value is None:
            return cls()
        if isinstance(value, ServerConfig):
            return value
        return cls.from_dict(value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServerConfig:
        """
        Create a ServerConfig from a mapping.

        Unknown keys are ignored with a warning. A nested "uvicorn" mapping
        populates UvicornConfig.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown server config keys: {', '.join(unknown)}")

        kwargs = {key: value for key, value in data.items() if key in known}
        uv = kwargs.get("uvicorn")
        if isinstance(uv, Mapping):
            uv_known = {f.name for f in dataclasses.fields(UvicornConfig)}
            kwargs["uvicorn"] = UvicornConfig(
                **{key: value for key, value in uv.items() if key in uv_known}
            )
        return cls(**kwargs)

    @staticmethod
    def _navigate_to_section(config_dict: Any, section: str | None) -> Mapping[str, Any]:
        """Navigate to a dotted section of a config dict ({} if missing)."""
        current = config_dict
        if section:
            for part in section.split("."):
                if isinstance(current, Mapping) and part in current:
                    current = current[part]
                else:
                    return {}
        return current if isinstance(current, Mapping) else {}

    @classmethod
    def from_yaml(cls, path: str | Path, section: str | None = "server") -> ServerConfig:
        """
        Load a ServerConfig from a YAML file.

        Args:
            path: YAML file path
            section: Dotted section holding the server settings, or None to
                use the whole document

        Example:
            # etc/app.yaml
            server:
              port: 8080
              cors: allow-all

            config = ServerConfig.from_yaml("etc/app.yaml")
        """
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
        return cls.from_dict(cls._navigate_to_section(document, section))
