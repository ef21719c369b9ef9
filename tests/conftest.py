"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest

import owoxgcp.redact as redact_module
from owoxgcp.provisioning.types import VMInstance


PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the owoxgcp CLI as a subprocess."""

    def _run(*args, input_text=None):
        env = dict(os.environ)
        env.pop("OWOX_BASIC_AUTH_PASSWORD", None)
        result = subprocess.run(
            [sys.executable, "-m", "owoxgcp.owoxgcp", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=env,
            input=input_text if input_text is not None else "",
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture(autouse=True)
def _reset_redaction():
    """Registered secrets are module state; start and end every test clean."""
    redact_module.reset()
    yield
    redact_module.reset()


# ── Unit-test fixtures ──────────────────────────────────────────────


@pytest.fixture
def vm():
    """A running VM with an external IP."""
    return VMInstance(
        name="owox-data-marts",
        zone="us-central1-a",
        machine_type="e2-small",
        external_ip="203.0.113.10",
        status="RUNNING",
    )


@pytest.fixture
def recorded_cmds(monkeypatch):
    """Replace run_shell_cmd everywhere with a recorder.

    Returns (calls, responses): calls collects every command list; responses
    maps a command prefix tuple to the (rc, stdout, stderr) it should return.
    Unmatched commands succeed with empty output.
    """
    calls = []
    responses = {}

    def fake_run(command, dry_run=False, timeout=600, input_text=None):
        calls.append(list(command))
        if dry_run:
            return 0, "", ""
        for prefix, result in responses.items():
            if tuple(command[: len(prefix)]) == prefix:
                return result
        return 0, "", ""

    for module in (
        "owoxgcp.provisioning.gcp",
        "owoxgcp.provisioning.ssh_transport",
        "owoxgcp.provisioning.ssh_keys",
        "owoxgcp.auth",
    ):
        monkeypatch.setattr(f"{module}.run_shell_cmd", fake_run)
    return calls, responses
