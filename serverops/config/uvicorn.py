"""Uvicorn server configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class UvicornConfig:
    """
    Uvicorn server configuration.

    Attributes:
        timeout_keep_alive: Keep-alive timeout in seconds (default: 5)
        backlog: Socket backlog size (default: 2048)
        log_level: Uvicorn log level (default: "warning")
        access_log: Enable access logging (default: False)
        ssl_keyfile: Path to SSL key file (optional)
        ssl_certfile: Path to SSL certificate file (optional)
    """

    timeout_keep_alive: int = 5
    backlog: int = 2048
    log_level: str = "warning"
    access_log: bool = False
    ssl_keyfile: str | None = None
    ssl_certfile: str | None = None

    def to_uvicorn_kwargs(self) -> dict[str, Any]:
        """
        Convert to uvicorn.Config kwargs.

        TLS files are only included when both are set, to avoid overriding
        uvicorn defaults with None values.

        Returns:
            Dictionary of kwargs for uvicorn.Config()
        """
        kwargs: dict[str, Any] = {
            "timeout_keep_alive": self.timeout_keep_alive,
            "backlog": self.backlog,
            "log_level": self.log_level,
            "access_log": self.access_log,
        }

        if self.ssl_keyfile and self.ssl_certfile:
            kwargs["ssl_keyfile"] = self.ssl_keyfile
            kwargs["ssl_certfile"] = self.ssl_certfile

        return kwargs

    def to_log_config(self) -> dict[str, Any]:
        """
        Logging dict for uvicorn's own loggers.

        Uvicorn records propagate to the root logger so they share the
        formatter installed by serverops.log.setup_logging().
        """
        access_level = "info" if self.access_log else "warning"
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "uvicorn": {"level": self.log_level.upper()},
                "uvicorn.access": {"level": access_level.upper()},
                "uvicorn.error": {"level": self.log_level.upper()},
            },
        }
