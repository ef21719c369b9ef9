"""SSH readiness polling for a freshly created VM."""

import logging
import time

from owoxgcp.provisioning.ssh_transport import run_remote

logger = logging.getLogger(__name__)

SSH_PROBE_COMMAND = "echo 'SSH connection successful'"


def check_ssh(vm, timeout=20):
    """Single SSH reachability probe."""
    rc, _, _ = run_remote(vm, SSH_PROBE_COMMAND, timeout=timeout)
    return rc == 0


def _probe_round(vm, policy):
    """Up to policy.attempts probes, sleeping policy.interval between them."""
    for attempt in range(1, policy.attempts + 1):
        logger.info(f"SSH connectivity test {attempt}/{policy.attempts}...")
        if check_ssh(vm, timeout=policy.attempt_timeout):
            logger.info("SSH connection established!")
            return True
        if attempt < policy.attempts:
            logger.warning(f"SSH attempt {attempt} failed, retrying in {policy.interval} seconds...")
            time.sleep(policy.interval)

    logger.error(f"Cannot establish SSH connection after {policy.attempts} attempts")
    return False


def wait_for_vm_ready(vm, policy, dry_run=False):
    """Wait for the VM to boot and accept SSH.

    Sleeps policy.initial_wait, runs one probe round, and if that fails waits
    policy.grace_wait and runs a second round.

    Returns:
        True if SSH connected, False otherwise.
    """
    if dry_run:
        logger.info(
            f"[dry-run] Wait {policy.initial_wait}s, then probe SSH up to {policy.attempts} times "
            f"every {policy.interval}s (retry once after {policy.grace_wait}s)"
        )
        return True

    logger.info("Waiting for VM to be ready...")
    time.sleep(policy.initial_wait)
    if _probe_round(vm, policy):
        return True

    logger.info(f"VM not quite ready - waiting {policy.grace_wait} more seconds...")
    time.sleep(policy.grace_wait)
    return _probe_round(vm, policy)
