"""Resolve the project and VM an operation acts on."""

import logging
import shutil

from owoxgcp.provisioning import gcp
from owoxgcp.provisioning.shell import format_cmd
from owoxgcp.provisioning.ssh_keys import setup_ssh_keys
from owoxgcp.provisioning.types import VMInstance

logger = logging.getLogger(__name__)


def check_prerequisites(regenerate_ssh_key=False, dry_run=False):
    """Verify gcloud is installed and authenticated; prepare Cloud Shell SSH keys."""
    if dry_run:
        logger.info("[dry-run] skipping gcloud installation and authentication checks")
        return True

    if shutil.which("gcloud") is None:
        logger.error("gcloud CLI is not installed. Please install it first.")
        return False

    account = gcp.active_account()
    if account is None:
        logger.error("You are not authenticated with gcloud. Please run 'gcloud auth login'")
        return False
    logger.debug(f"Active gcloud account: {account}")

    return setup_ssh_keys(regenerate=regenerate_ssh_key)


def select_project(requested, dry_run=False):
    """Resolve, verify and activate the project.

    Source order: the requested id (flag or config), then gcloud's default.

    Returns:
        Project on success, None on failure.
    """
    project_id = requested or ("" if dry_run else gcp.configured_project())
    if not project_id:
        logger.error("No project selected: pass --project, set 'project' in the config file, or run 'gcloud config set project'")
        return None

    project = gcp.describe_project(project_id, dry_run=dry_run)
    if project is None:
        logger.error(f"Project '{project_id}' does not exist or you don't have access")
        return None

    if not gcp.set_project(project.project_id, dry_run=dry_run):
        return None
    logger.info(f"Selected project: {project.project_id} ({project.name})")
    return project


def select_vm(instance, zone=None, dry_run=False):
    """Find a running VM by name (and zone, when given).

    Returns:
        VMInstance on success, None if no running VM matches.
    """
    if dry_run:
        vm = VMInstance(name=instance, zone=zone or "dry-run-zone", external_ip="dry-run-gcp-host", status="RUNNING")
        logger.info(f"[dry-run] {format_cmd(gcp._gcloud_list_running_cmd())}")
        return vm

    instances = gcp.list_running_instances()
    if not instances:
        logger.error("No running VM instances found in the current project")
        return None

    matches = [vm for vm in instances if vm.name == instance and (not zone or vm.zone == zone)]
    if not matches:
        logger.error(f"VM '{instance}' not found in running instances")
        logger.info("Running instances:")
        for vm in instances:
            logger.info(f"  {vm.name:<20} {vm.zone:<15} {vm.machine_type:<12} {vm.external_ip}")
        return None
    if len(matches) > 1:
        zones = ", ".join(vm.zone for vm in matches)
        logger.error(f"VM '{instance}' is running in several zones ({zones}); pass --zone")
        return None

    vm = matches[0]
    logger.info(f"Selected VM: {vm.name}")
    logger.info(f"Zone: {vm.zone}")
    logger.info(f"Machine Type: {vm.machine_type}")
    logger.info(f"External IP: {vm.external_ip}")
    return vm
