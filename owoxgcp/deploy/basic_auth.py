"""Enable, verify and remove nginx basic authentication on the VM."""

import logging

from owoxgcp.auth import hash_users, render_htpasswd
from owoxgcp.provisioning.ssh_transport import remote_http_status, run_remote_script
from owoxgcp.templates import PUBLIC_API_PATH, generate_configure_auth_script, generate_remove_auth_script

logger = logging.getLogger(__name__)

CONFIGURE_SCRIPT = "configure-auth-remote.sh"
REMOVE_SCRIPT = "remove-auth-remote.sh"


def verify_basic_auth(vm):
    """Probe nginx from inside the VM: / must be 401, the public API 200.

    Mismatches are reported as warnings; the return value says whether both
    probes matched.
    """
    logger.info("Testing authentication setup...")
    ok = True

    status = remote_http_status(vm, "/")
    if status == "401":
        logger.info("Authentication is working correctly (401 Unauthorized)")
    else:
        logger.warning(f"Authentication test returned: {status or 'no response'} (expected: 401)")
        ok = False

    status = remote_http_status(vm, PUBLIC_API_PATH)
    if status == "200":
        logger.info("Public API is accessible (200 OK)")
    else:
        logger.warning(f"Public API test returned: {status or 'no response'} (expected: 200)")
        ok = False
    return ok


def configure_basic_auth(vm, users, dry_run=False):
    """Hash the users' passwords, install the htpasswd file and reload nginx."""
    logger.info("=== Configuring Basic Authentication ===")
    if not users:
        logger.error("At least one user is required")
        return False

    if not hash_users(users, dry_run=dry_run):
        return False
    logger.info(f"Created {len(users)} user(s) for basic authentication")

    script = generate_configure_auth_script(render_htpasswd(users))
    if not run_remote_script(vm, CONFIGURE_SCRIPT, script, dry_run=dry_run):
        logger.error("Failed to configure basic authentication on VM")
        logger.info("Debugging steps:")
        logger.info(f"1. Check VM status: gcloud compute instances describe {vm.name} --zone={vm.zone}")
        logger.info(f"2. Test SSH manually: gcloud compute ssh {vm.name} --zone={vm.zone}")
        logger.info("3. Check nginx status: sudo systemctl status nginx")
        return False
    logger.info("Basic authentication configured successfully!")

    if not dry_run:
        verify_basic_auth(vm)
    return True


def remove_basic_auth(vm, dry_run=False):
    """Restore the public nginx site and delete the htpasswd file."""
    logger.info("Removing Basic Authentication from nginx...")
    if not run_remote_script(vm, REMOVE_SCRIPT, generate_remove_auth_script(), dry_run=dry_run):
        logger.error("Failed to remove authentication")
        return False
    logger.info("Authentication removal completed!")
    logger.info("OWOX is now publicly accessible without authentication")
    return True
