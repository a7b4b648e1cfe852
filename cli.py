from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path


def _load_project_version(pyproject_path: Path | None = None) -> str:
    """Best-effort loader for the project version from pyproject.toml.

    This avoids importing the server module (and its MCP wiring) just to
    answer a simple CLI query like `--version`.
    """
    if pyproject_path is None:
        pyproject_path = Path(__file__).with_name("pyproject.toml")

    import tomllib

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return "0.0.0"
    except tomllib.TOMLDecodeError:
        return "0.0.0"

    project = data.get("project") or {}
    version = project.get("version")
    if isinstance(version, str) and version.strip():
        return version.strip()
    return "0.0.0"


def _run_doctor(*, probe: bool) -> int:
    """Run environment checks and print a human-readable summary."""

    # Lazy import to avoid pulling in the server module unless needed.
    from bitbucket_mcp.diagnostics import validate_environment

    result = asyncio.run(validate_environment(probe=probe))

    status = str(result.get("status", "unknown"))
    checks = result.get("checks") or []
    ok = sum(1 for c in checks if c.get("level") == "ok")
    warning = sum(1 for c in checks if c.get("level") == "warning")
    error = sum(1 for c in checks if c.get("level") == "error")

    print(f"Status: {status}")
    print(f"Checks: ok={ok}, warning={warning}, error={error}")
    for check in checks:
        name = check.get("name", "?")
        level = check.get("level", "?")
        message = check.get("message", "")
        print(f"- [{level}] {name}: {message}")

    return 0 if status != "error" else 1


async def _serve_stdio() -> None:
    from mcp.server.stdio import stdio_server

    from bitbucket_mcp.server import close_translator, server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await close_translator()


def _run_serve(transport: str, host: str, port: int) -> int:
    if transport == "stdio":
        asyncio.run(_serve_stdio())
        return 0

    import uvicorn

    uvicorn.run("main:app", host=host, port=port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bitbucket-mcp",
        description="Bitbucket MCP server CLI helpers.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the bitbucket-mcp version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command")
    doctor = subparsers.add_parser(
        "doctor",
        help="Validate the Bitbucket configuration and test the API connection.",
    )
    doctor.add_argument(
        "--offline",
        action="store_true",
        help="Only validate configuration; do not contact Bitbucket.",
    )
    serve = subparsers.add_parser("serve", help="Run the MCP server.")
    serve.add_argument("--transport", choices=["stdio", "sse"], default="stdio")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    if argv is None:
        argv = sys.argv[1:]

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # When used as a library function in tests, return the exit code
        # instead of raising.
        return int(getattr(exc, "code", 1) or 0)

    if args.version and not args.command:
        print(_load_project_version())
        return 0

    if args.command == "doctor":
        return _run_doctor(probe=not args.offline)

    if args.command == "serve":
        return _run_serve(args.transport, args.host, args.port)

    # Default: show help if no command/flag was given.
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
