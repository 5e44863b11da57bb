#!/usr/bin/env python3
"""
ServerOps Example.

Builds a small API out of two chained sub-builders, serves a static
directory and proxies an outbound request.

Usage:
    # Defaults (port 3000, no CORS)
    python serverops_server.py

    # Explicit port with CORS open to all origins
    python serverops_server.py --port 8080 --cors

    # Load settings from the "server" section of a YAML file
    python serverops_server.py --config server.yaml
"""

from __future__ import annotations

import argparse
import pathlib
from typing import Any

from serverops import ServerConfig, ServerOps

USERS = {"1": {"id": "1", "name": "Ada"}, "2": {"id": "2", "name": "Grace"}}

# -----------------------------------------------------------------------------
# Route handlers
# -----------------------------------------------------------------------------


def health(server: ServerOps, request: Any) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "time": server.timestamp()}


async def list_users(server: ServerOps, request: Any) -> list[dict[str, str]]:
    return list(USERS.values())


async def get_user(server: ServerOps, request: Any) -> dict[str, str]:
    user_id = request.path_params["user_id"]
    if user_id not in USERS:
        raise server.error(f"User {user_id} not found", 404)
    return USERS[user_id]


async def create_user(server: ServerOps, request: Any) -> dict[str, str]:
    form = await request.form()
    if "name" not in form:
        raise server.error("Missing name", 400)
    user_id = str(len(USERS) + 1)
    USERS[user_id] = {"id": user_id, "name": str(form["name"])}
    return USERS[user_id]


async def proxy_uuid(server: ServerOps, request: Any) -> Any:
    """Outbound call; upstream failures are forwarded with their status."""
    return await server.http.GET("https://httpbin.org/uuid")


async def timing(request: Any, call_next: Any) -> Any:
    response = await call_next(request)
    response.headers["X-Served-At"] = ServerOps.timestamp("UTC")
    return response


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def users_api() -> ServerOps:
    """Sub-builder holding the user routes."""
    return (
        ServerOps()
        .use("/users", timing)
        .GET("/users", list_users)
        .GET("/users/{user_id}", get_user)
        .POST("/users", create_user)
    )


def create_server(config: ServerConfig) -> ServerOps:
    public = pathlib.Path(__file__).resolve().parent / "public"
    public.mkdir(exist_ok=True)

    return (
        ServerOps(config)
        .GET("/health", health)
        .GET("/uuid", proxy_uuid)
        .chain(users_api())
        .static("/public", public)
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="ServerOps example")
    parser.add_argument("--port", default=None, help="Port to listen on")
    parser.add_argument("--cors", action="store_true", help="Allow all origins")
    parser.add_argument("--config", default=None, help="YAML file with a 'server' section")
    args = parser.parse_args()

    if args.config:
        config = ServerConfig.from_yaml(args.config)
    else:
        config = ServerConfig(port=args.port, cors="*" if args.cors else None)

    create_server(config).launch(
        lambda server: print(f"Listening on port {server.port} at {server.timestamp()}")
    )


if __name__ == "__main__":
    main()
