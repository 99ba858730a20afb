#!/usr/bin/env python
"""
Serve the freight pricing API with uvicorn.

Usage:
    python scripts/run_api.py [--host 127.0.0.1] [--port 8000] [--data-dir DIR] [--no-reload]

The port defaults to $FREIGHT_PRICING_PORT, then 8000. --data-dir is
handed to the server as $FREIGHT_PRICING_DATA_DIR.
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

APP = "freight_pricing.api.main:app"
PORT_ENV = "FREIGHT_PRICING_PORT"
DATA_DIR_ENV = "FREIGHT_PRICING_DATA_DIR"

SRC_PATH = Path(__file__).resolve().parent.parent / 'src'


def parse_args(argv=None, environ=None) -> argparse.Namespace:
    environ = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(description="Run the freight pricing API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(environ.get(PORT_ENV, "8000")))
    parser.add_argument("--data-dir", type=Path, help="Directory holding the store CSV files")
    parser.add_argument("--no-reload", dest="reload", action="store_false",
                        help="Disable auto-reload on source changes")
    return parser.parse_args(argv)


def server_env(args: argparse.Namespace, environ=None) -> dict:
    """Child environment with src importable and the data dir forwarded."""
    env = dict(os.environ if environ is None else environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = f"{SRC_PATH}{os.pathsep}{existing}" if existing else str(SRC_PATH)
    if args.data_dir is not None:
        env[DATA_DIR_ENV] = str(args.data_dir.expanduser().resolve())
    return env


def server_command(args: argparse.Namespace) -> list[str]:
    command = [sys.executable, "-m", "uvicorn", APP, "--host", args.host, "--port", str(args.port)]
    if args.reload:
        command.append("--reload")
    return command


def main(argv=None):
    args = parse_args(argv)
    print(f"Starting Freight Pricing API on {args.host}:{args.port}...")
    try:
        completed = subprocess.run(server_command(args), env=server_env(args))
    except KeyboardInterrupt:
        print("\nAPI stopped.")
        return 0
    return completed.returncode


if __name__ == "__main__":
    sys.exit(main())
