"""Find, delete and report the OWOX resources in a project."""

import logging
from dataclasses import dataclass, field

from owoxgcp.provisioning import gcp

logger = logging.getLogger(__name__)

# Deletion order: load balancer rule first, VM last.
CLEANUP_FIREWALL_RULES = [gcp.LB_HEALTH_CHECK_RULE, "owox-https-rule", "owox-http-rule"]


@dataclass
class DeploymentResources:
    """OWOX resources found in the current project."""

    instance: str
    vm_zone: str | None = None
    firewall_rules: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.vm_zone is None and not self.firewall_rules

    def describe(self) -> list[str]:
        lines = []
        if self.vm_zone:
            lines.append(f"VM instance: {self.instance} (zone: {self.vm_zone})")
        lines.extend(f"Firewall rule: {rule}" for rule in self.firewall_rules)
        return lines


def find_resources(instance, zones, dry_run=False):
    """Scan zones for the instance (first hit wins) and check known firewall rules."""
    logger.info("Scanning for OWOX resources...")
    found = DeploymentResources(instance=instance)

    for zone in zones:
        if gcp.resource_exists("vm", instance, zone, dry_run=dry_run):
            found.vm_zone = zone
            break

    for rule in CLEANUP_FIREWALL_RULES:
        if gcp.resource_exists("firewall", rule, dry_run=dry_run):
            found.firewall_rules.append(rule)
    return found


def delete_resources(found: DeploymentResources, dry_run=False):
    """Delete firewall rules, then the VM. Each one is re-checked before deletion.

    Returns:
        True if every deletion succeeded.
    """
    logger.info("=== Deleting Resources ===")
    ok = True

    for rule in found.firewall_rules:
        if dry_run or gcp.resource_exists("firewall", rule):
            ok = gcp.delete_firewall_rule(rule, dry_run=dry_run) and ok

    if found.vm_zone and (dry_run or gcp.resource_exists("vm", found.instance, found.vm_zone)):
        ok = gcp.delete_instance(found.instance, found.vm_zone, dry_run=dry_run) and ok

    return ok


def show_status(project_id, dry_run=False):
    """Log tables of OWOX VMs, forwarding rules and firewall rules."""
    logger.info(f"Checking OWOX-related resources in project: {project_id}")

    sections = [
        ("Virtual Machines:", gcp._gcloud_status_vms_cmd(), "No OWOX VMs found"),
        ("Load Balancers:", gcp._gcloud_status_forwarding_rules_cmd(), "No OWOX Load Balancers found"),
        ("Firewall Rules:", gcp._gcloud_status_firewall_rules_cmd(), "No OWOX Firewall Rules found"),
    ]
    for title, cmd, empty_message in sections:
        logger.info("")
        logger.info(title)
        table = gcp.list_table(cmd, dry_run=dry_run)
        if table:
            logger.info(table)
        else:
            logger.warning(empty_message)

    logger.info("")
    logger.info("Status check complete")
