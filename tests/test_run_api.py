"""
Tests for the API launcher script's argument and environment handling.
"""
import importlib.util
import os
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / 'scripts' / 'run_api.py'


@pytest.fixture(scope="module")
def run_api():
    spec = importlib.util.spec_from_file_location("run_api", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_defaults(run_api):
    args = run_api.parse_args([], environ={})

    assert run_api.server_command(args) == [
        sys.executable, "-m", "uvicorn", "freight_pricing.api.main:app",
        "--host", "0.0.0.0", "--port", "8000", "--reload",
    ]


def test_port_from_environment_and_flags(run_api):
    args = run_api.parse_args(["--host", "127.0.0.1", "--no-reload"], environ={"FREIGHT_PRICING_PORT": "9001"})

    command = run_api.server_command(args)

    assert command[-4:] == ["--host", "127.0.0.1", "--port", "9001"]
    assert "--reload" not in command


def test_server_env_prepends_src_and_forwards_data_dir(run_api, tmp_path):
    args = run_api.parse_args(["--data-dir", str(tmp_path)], environ={})

    env = run_api.server_env(args, environ={"PYTHONPATH": "/opt/lib"})

    src, rest = env["PYTHONPATH"].split(os.pathsep, 1)
    assert Path(src) == SCRIPT.parent.parent / 'src'
    assert rest == "/opt/lib"
    assert env["FREIGHT_PRICING_DATA_DIR"] == str(tmp_path.resolve())


def test_server_env_without_data_dir(run_api):
    args = run_api.parse_args([], environ={})

    env = run_api.server_env(args, environ={})

    assert "FREIGHT_PRICING_DATA_DIR" not in env
    assert Path(env["PYTHONPATH"]) == SCRIPT.parent.parent / 'src'
