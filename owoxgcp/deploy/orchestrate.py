"""Deploy orchestration: firewall, VM, readiness wait, auth, access summary."""

import logging

from owoxgcp.auth import AUTH_DESCRIPTIONS, uses_basic_auth
from owoxgcp.deploy.basic_auth import configure_basic_auth
from owoxgcp.deploy.params import DeployParams
from owoxgcp.provisioning import gcp
from owoxgcp.provisioning.ssh import wait_for_vm_ready
from owoxgcp.provisioning.types import VMInstance
from owoxgcp.templates import PUBLIC_API_PATH, generate_startup_script

logger = logging.getLogger(__name__)


def create_or_keep_vm(params: DeployParams):
    """Create the VM, or keep an existing one unless params.recreate is set."""
    s = params.settings
    startup_script = generate_startup_script(s.package)

    if gcp.resource_exists("vm", s.instance, s.zone, dry_run=params.dry_run):
        logger.warning(f"VM instance '{s.instance}' already exists in zone '{s.zone}'")
        table = gcp.describe_instance_table(s.instance, s.zone)
        if table:
            logger.info(table)
        if not params.recreate:
            logger.info("Keeping existing VM instance (pass --recreate to delete and recreate it)")
            return True
        logger.warning("Recreating VM: all data on the instance will be deleted")
        if not gcp.delete_instance(s.instance, s.zone, dry_run=params.dry_run):
            return False

    return gcp.create_instance(
        s.instance,
        s.zone,
        s.machine_type,
        s.project,
        s.disk_size,
        startup_script,
        dry_run=params.dry_run,
    )


def apply_auth_configuration(vm, params: DeployParams):
    """Apply the chosen auth method. IAP is referenced only and not configured."""
    method = params.auth_method
    if method == "none":
        logger.info("No authentication configured - all endpoints are public")
        return True
    if method in ("iap", "both"):
        logger.warning("Identity-Aware Proxy is not configured by this tool; set it up in the Cloud Console")
    if uses_basic_auth(method):
        return configure_basic_auth(vm, params.users, dry_run=params.dry_run)
    return True


def display_access_info(vm, auth_method, users=()):
    """Log the access URLs and any basic-auth credentials."""
    logger.info("=== Access Information ===")
    logger.info(f"OWOX Access: {vm.url}/ ({AUTH_DESCRIPTIONS[auth_method]})")
    logger.info(f"Public API: {vm.url}{PUBLIC_API_PATH}* (always public)")

    if uses_basic_auth(auth_method) and users:
        logger.info("=== Basic Auth Credentials ===")
        for user in users:
            logger.info(f"Username: {user.username} | Password: {user.password}")
        logger.warning("Save these credentials securely!")


def deploy_instance(params: DeployParams):
    """Run a full deployment.

    Steps:
        1. Create firewall rules (if missing)
        2. Create the VM (or keep/recreate an existing one)
        3. Read its external IP
        4. Wait for SSH readiness
        5. Apply the auth configuration
        6. Log access information

    Returns:
        VMInstance on success, None on failure.
    """
    s = params.settings
    logger.info("=== OWOX Data Marts GCP Deployment ===")
    logger.info(f"Instance: {s.instance} | Zone: {s.zone} | Machine type: {s.machine_type} | Disk: {s.disk_size}GB")
    logger.info(f"Package: {s.package} | Authentication: {params.auth_method}")

    if not gcp.ensure_firewall_rules(dry_run=params.dry_run):
        return None
    if not create_or_keep_vm(params):
        return None

    logger.info("Getting VM information...")
    external_ip = gcp.get_external_ip(s.instance, s.zone, dry_run=params.dry_run)
    if not external_ip:
        logger.warning("No external IP found.")
    vm = VMInstance(name=s.instance, zone=s.zone, machine_type=s.machine_type, external_ip=external_ip, status="RUNNING")
    logger.info(f"External IP: {external_ip or 'none'}")
    logger.info(f"OWOX will be available at: {vm.url}")
    logger.info(f"External API will be accessible at: {vm.url}{PUBLIC_API_PATH}*")

    if not wait_for_vm_ready(vm, s.readiness, dry_run=params.dry_run):
        logger.error("VM is not reachable over SSH; the app may still be installing")
        logger.info(f"Retry later with: owox-gcp auth basic --instance {vm.name} --zone {vm.zone}")
        return None

    if not apply_auth_configuration(vm, params):
        return None

    display_access_info(vm, params.auth_method, params.users)
    logger.info("=== Deployment Complete ===")
    return vm
