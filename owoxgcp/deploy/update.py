"""Update the OWOX package on an existing VM, or report its version."""

import logging

from owoxgcp.provisioning.ssh_transport import remote_http_status, remote_output, run_remote_script
from owoxgcp.templates import generate_update_script

logger = logging.getLogger(__name__)

UPDATE_SCRIPT = "update-owox.sh"
UPDATE_LOG = "~/update-owox.log"


def report_version(vm):
    """Log `owox --version` and `npm list -g owox` from the VM."""
    logger.info("Checking current OWOX version...")
    version = remote_output(vm, "owox --version 2>/dev/null")
    if not version:
        logger.error("Could not retrieve OWOX version")
        logger.info("OWOX might not be installed or not responding")
        return False
    logger.info(f"Current OWOX version: {version}")

    npm_info = remote_output(vm, "npm list -g owox 2>/dev/null")
    if npm_info:
        logger.info("NPM package info:")
        for line in npm_info.splitlines():
            logger.info(f"  {line}")
    return True


def update_app(vm, package, dry_run=False):
    """Reinstall the package on the VM and check the service afterwards.

    The service is stopped during the install. Post-update checks only warn.
    """
    logger.info(f"Updating OWOX on {vm.name} to {package}")
    logger.warning("This may take a few minutes. The OWOX service will be temporarily unavailable.")

    if not run_remote_script(vm, UPDATE_SCRIPT, generate_update_script(package), log_path=UPDATE_LOG, dry_run=dry_run):
        logger.error("OWOX update failed")
        logger.info("You can check the update log manually:")
        logger.info(f"  gcloud compute ssh {vm.name} --zone={vm.zone}")
        logger.info(f"  cat {UPDATE_LOG}")
        return False
    logger.info("OWOX update completed successfully!")

    if dry_run:
        return True

    update_log = remote_output(vm, f"tail -10 {UPDATE_LOG} 2>/dev/null")
    if update_log:
        logger.info("Update results:")
        for line in update_log.splitlines():
            logger.info(f"  {line}")

    logger.info("Testing updated OWOX installation...")
    new_version = remote_output(vm, "owox --version 2>/dev/null")
    if new_version:
        logger.info(f"OWOX is running with version: {new_version}")
    else:
        logger.warning("Could not verify OWOX version after update")

    status = remote_http_status(vm, "/")
    if status in ("200", "401"):
        logger.info(f"OWOX HTTP service is responding (status: {status})")
    else:
        logger.warning(f"OWOX HTTP service test returned: {status or 'no response'}")

    logger.info(f"The OWOX application has been updated to: {package}")
    return True
