"""SSH transport: run commands and upload scripts via gcloud compute ssh/scp."""

import logging
import os
import tempfile

from owoxgcp.provisioning.shell import run_shell_cmd

logger = logging.getLogger(__name__)


def _gcloud_ssh_cmd(instance, zone, command):
    """Build gcloud command to run a command on the instance."""
    return ["gcloud", "compute", "ssh", instance, f"--zone={zone}", "--quiet", f"--command={command}"]


def _gcloud_scp_cmd(local_path, instance, zone, remote_path):
    """Build gcloud command to copy a local file to the instance."""
    return ["gcloud", "compute", "scp", local_path, f"{instance}:{remote_path}", f"--zone={zone}", "--quiet"]


def run_remote(vm, command, dry_run=False, timeout=600):
    """Run a command on the VM over SSH.

    Returns:
        (returncode, stdout, stderr) tuple
    """
    return run_shell_cmd(_gcloud_ssh_cmd(vm.name, vm.zone, command), dry_run=dry_run, timeout=timeout)


def remote_output(vm, command, timeout=120):
    """Run a command on the VM and return its stripped stdout ('' on failure)."""
    rc, stdout, _ = run_remote(vm, command, timeout=timeout)
    return stdout.strip() if rc == 0 else ""


def remote_http_status(vm, path="/", port=80):
    """Ask curl on the VM for the HTTP status of a local URL."""
    host = "localhost" if port == 80 else f"localhost:{port}"
    return remote_output(vm, f"curl -s -o /dev/null -w '%{{http_code}}' http://{host}{path} 2>/dev/null")


def scp_file(local_path, vm, remote_path, dry_run=False, timeout=300):
    """Copy a file to the VM via gcloud compute scp."""
    rc, _, stderr = run_shell_cmd(
        _gcloud_scp_cmd(local_path, vm.name, vm.zone, remote_path),
        dry_run=dry_run,
        timeout=timeout,
    )
    if rc != 0:
        logger.error(f"Failed to upload {os.path.basename(local_path)} to {vm.name}:{remote_path}: {stderr.strip()}")
        return False
    return True


def _script_command(remote_path, log_path=None):
    """Shell line that runs an uploaded script as root and then removes it."""
    run = f"sudo bash {remote_path}"
    if log_path:
        run = f"set -o pipefail; {run} 2>&1 | tee {log_path}"
    return f"{run}; rc=$?; rm -f {remote_path}; exit $rc"


def run_remote_script(vm, name, content, log_path=None, dry_run=False, timeout=900):
    """Upload a script to the VM's home directory and execute it with sudo.

    The script output is logged line by line. The local temp copy is always
    removed; the remote copy is removed after it runs.

    Returns:
        True if the upload succeeded and the script exited 0.
    """
    remote_path = f"~/{name}"

    if dry_run:
        run_shell_cmd(_gcloud_scp_cmd(name, vm.name, vm.zone, remote_path), dry_run=True)
        run_remote(vm, _script_command(remote_path, log_path), dry_run=True)
        return True

    with tempfile.NamedTemporaryFile(mode="w", suffix=f"_{name}", delete=False) as f:
        f.write(content)
        tmp_path = f.name

    try:
        logger.info(f"Uploading {name} to {vm.name}...")
        if not scp_file(tmp_path, vm, remote_path):
            return False
    finally:
        os.unlink(tmp_path)

    logger.info(f"Executing {name} on {vm.name}...")
    rc, stdout, stderr = run_remote(vm, _script_command(remote_path, log_path), timeout=timeout)
    for line in stdout.splitlines():
        logger.info(f"  {line}")
    if rc != 0:
        if stderr.strip():
            logger.error(stderr.strip())
        logger.error(f"{name} failed on {vm.name} (exit code {rc})")
        return False
    return True
