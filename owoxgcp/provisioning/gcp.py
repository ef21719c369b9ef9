"""GCP provider: projects, instances and firewall rules via gcloud."""

import logging
import os
import tempfile

from owoxgcp.provisioning.shell import format_cmd, run_shell_cmd
from owoxgcp.provisioning.types import NO_IP, Project, VMInstance

logger = logging.getLogger(__name__)

NETWORK_TAG = "owox-server"
INSTANCE_TAGS = f"{NETWORK_TAG},http-server,https-server"
INSTANCE_LABELS = "environment=production,application=owox"
IMAGE = "projects/debian-cloud/global/images/family/debian-12"

# Default Compute Engine service account scopes.
INSTANCE_SCOPES = [
    "https://www.googleapis.com/auth/devstorage.read_only",
    "https://www.googleapis.com/auth/logging.write",
    "https://www.googleapis.com/auth/monitoring.write",
    "https://www.googleapis.com/auth/servicecontrol",
    "https://www.googleapis.com/auth/service.management.readonly",
    "https://www.googleapis.com/auth/trace.append",
]

# Firewall rule name -> (allowed, description), in creation order.
FIREWALL_RULES = {
    "owox-http-rule": ("tcp:80", "Allow HTTP traffic to OWOX"),
    "owox-https-rule": ("tcp:443", "Allow HTTPS traffic to OWOX"),
}
LB_HEALTH_CHECK_RULE = "owox-lb-health-check"

RUNNING_INSTANCES_FORMAT = "value(name,zone,machineType.basename(),networkInterfaces[0].accessConfigs[0].natIP)"
INSTANCE_TABLE_FORMAT = (
    "table(name,status,machineType.basename(),networkInterfaces[0].accessConfigs[0].natIP:label=EXTERNAL_IP)"
)

# ── Command builders ───────────────────────────────────────────────


def _gcloud_auth_list_cmd():
    """Build gcloud command to list active accounts."""
    return ["gcloud", "auth", "list", "--filter=status:ACTIVE", "--format=value(account)"]


def _gcloud_project_describe_cmd(project_id):
    """Build gcloud command to fetch a project's display name."""
    return ["gcloud", "projects", "describe", project_id, "--format=value(name)"]


def _gcloud_config_get_project_cmd():
    """Build gcloud command to read the configured default project."""
    return ["gcloud", "config", "get-value", "project"]


def _gcloud_config_set_project_cmd(project_id):
    """Build gcloud command to set the default project."""
    return ["gcloud", "config", "set", "project", project_id]


def _gcloud_create_cmd(instance, zone, machine_type, project, disk_size, startup_script_path):
    """Build gcloud command to create the OWOX instance."""
    disk = ",".join(
        [
            "auto-delete=yes",
            "boot=yes",
            f"device-name={instance}",
            f"image={IMAGE}",
            "mode=rw",
            f"size={disk_size}",
            f"type=projects/{project}/zones/{zone}/diskTypes/pd-standard",
        ]
    )
    return [
        "gcloud",
        "compute",
        "instances",
        "create",
        instance,
        f"--zone={zone}",
        f"--machine-type={machine_type}",
        "--network-tier=PREMIUM",
        "--maintenance-policy=MIGRATE",
        "--provisioning-model=STANDARD",
        f"--scopes={','.join(INSTANCE_SCOPES)}",
        f"--tags={INSTANCE_TAGS}",
        f"--create-disk={disk}",
        "--no-shielded-secure-boot",
        "--shielded-vtpm",
        "--shielded-integrity-monitoring",
        f"--labels={INSTANCE_LABELS}",
        "--reservation-affinity=any",
        "--metadata-from-file",
        f"startup-script={startup_script_path}",
    ]


def _gcloud_delete_cmd(instance, zone):
    """Build gcloud command to delete an instance."""
    return ["gcloud", "compute", "instances", "delete", instance, f"--zone={zone}", "--quiet"]


def _gcloud_describe_cmd(instance, zone, fmt=None):
    """Build gcloud command to describe an instance."""
    cmd = ["gcloud", "compute", "instances", "describe", instance, f"--zone={zone}"]
    if fmt:
        cmd.append(f"--format={fmt}")
    return cmd


def _gcloud_external_ip_cmd(instance, zone):
    """Build gcloud command to get external IP."""
    return _gcloud_describe_cmd(instance, zone, fmt="get(networkInterfaces[0].accessConfigs[0].natIP)")


def _gcloud_list_running_cmd():
    """Build gcloud command to list running instances, one per line."""
    return [
        "gcloud",
        "compute",
        "instances",
        "list",
        "--filter=status:RUNNING",
        f"--format={RUNNING_INSTANCES_FORMAT}",
    ]


def _gcloud_firewall_describe_cmd(rule):
    """Build gcloud command to describe a firewall rule."""
    return ["gcloud", "compute", "firewall-rules", "describe", rule]


def _gcloud_firewall_create_cmd(rule, allow, description):
    """Build gcloud command to create an ingress rule for the OWOX tag."""
    return [
        "gcloud",
        "compute",
        "firewall-rules",
        "create",
        rule,
        "--allow",
        allow,
        "--source-ranges",
        "0.0.0.0/0",
        "--description",
        description,
        "--target-tags",
        NETWORK_TAG,
    ]


def _gcloud_firewall_delete_cmd(rule):
    """Build gcloud command to delete a firewall rule."""
    return ["gcloud", "compute", "firewall-rules", "delete", rule, "--quiet"]


def _gcloud_forwarding_rule_describe_cmd(rule):
    """Build gcloud command to describe a global forwarding rule."""
    return ["gcloud", "compute", "forwarding-rules", "describe", rule, "--global"]


def _gcloud_status_vms_cmd():
    return [
        "gcloud",
        "compute",
        "instances",
        "list",
        "--filter=labels.application=owox OR name~owox",
        "--format=table(name,zone,status,networkInterfaces[0].accessConfigs[0].natIP:label=EXTERNAL_IP)",
    ]


def _gcloud_status_forwarding_rules_cmd():
    return [
        "gcloud",
        "compute",
        "forwarding-rules",
        "list",
        "--filter=name~owox",
        "--format=table(name,IPAddress,target)",
    ]


def _gcloud_status_firewall_rules_cmd():
    return [
        "gcloud",
        "compute",
        "firewall-rules",
        "list",
        "--filter=name~owox",
        "--format=table(name,direction,allowed[].ports)",
    ]


# ── Project and account ────────────────────────────────────────────


def active_account():
    """Return the active gcloud account, or None when not authenticated."""
    rc, stdout, _ = run_shell_cmd(_gcloud_auth_list_cmd())
    account = stdout.strip().splitlines()[0] if rc == 0 and stdout.strip() else ""
    return account or None


def configured_project():
    """Return gcloud's default project, or '' when unset."""
    rc, stdout, _ = run_shell_cmd(_gcloud_config_get_project_cmd())
    value = stdout.strip() if rc == 0 else ""
    return "" if value == "(unset)" else value


def describe_project(project_id, dry_run=False):
    """Look up a project by id.

    Returns:
        Project on success, None if it does not exist or is not accessible.
    """
    if dry_run:
        logger.info(f"[dry-run] {format_cmd(_gcloud_project_describe_cmd(project_id))}")
        return Project(project_id=project_id)

    rc, stdout, _ = run_shell_cmd(_gcloud_project_describe_cmd(project_id))
    if rc != 0:
        return None
    return Project(project_id=project_id, name=stdout.strip() or "Unknown")


def set_project(project_id, dry_run=False):
    """Make project_id the default for subsequent gcloud calls."""
    rc, _, stderr = run_shell_cmd(_gcloud_config_set_project_cmd(project_id), dry_run=dry_run)
    if rc != 0:
        logger.error(f"Failed to set project '{project_id}': {stderr.strip()}")
        return False
    return True


# ── Resource lookups ───────────────────────────────────────────────

_DESCRIBE_BUILDERS = {
    "vm": lambda name, zone: _gcloud_describe_cmd(name, zone),
    "firewall": lambda name, zone: _gcloud_firewall_describe_cmd(name),
    "forwarding-rule": lambda name, zone: _gcloud_forwarding_rule_describe_cmd(name),
}


def resource_exists(kind, name, zone=None, dry_run=False):
    """Check whether a named resource exists by describing it.

    In dry-run mode the lookup is logged and reported as missing so the
    creation path is shown.
    """
    builder = _DESCRIBE_BUILDERS.get(kind)
    if builder is None:
        raise ValueError(f"Unknown resource kind: {kind}")
    cmd = builder(name, zone)
    if dry_run:
        logger.info(f"[dry-run] {format_cmd(cmd)}")
        return False
    rc, _, _ = run_shell_cmd(cmd)
    return rc == 0


def describe_instance_table(instance, zone):
    """Return a one-row table describing the instance (for display)."""
    rc, stdout, _ = run_shell_cmd(_gcloud_describe_cmd(instance, zone, fmt=INSTANCE_TABLE_FORMAT))
    return stdout.rstrip() if rc == 0 else ""


def get_external_ip(instance, zone, dry_run=False):
    """Return the instance's NAT IP, or '' if it has none."""
    rc, stdout, _ = run_shell_cmd(_gcloud_external_ip_cmd(instance, zone), dry_run=dry_run)
    if dry_run:
        return "dry-run-gcp-host"
    return stdout.strip() if rc == 0 else ""


def parse_running_instances(output):
    """Parse tab-separated `instances list` output into VMInstance objects."""
    instances = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        parts += [""] * (4 - len(parts))
        name, zone, machine_type, external_ip = (p.strip() for p in parts[:4])
        instances.append(
            VMInstance(
                name=name,
                zone=zone.rsplit("/", 1)[-1],
                machine_type=machine_type,
                external_ip=external_ip or NO_IP,
                status="RUNNING",
            )
        )
    return instances


def list_running_instances():
    """Return all RUNNING instances in the current project."""
    rc, stdout, stderr = run_shell_cmd(_gcloud_list_running_cmd())
    if rc != 0:
        logger.error(f"Failed to list instances: {stderr.strip()}")
        return []
    return parse_running_instances(stdout)


def list_table(cmd, dry_run=False):
    """Run a `list --format=table(...)` command; '' means nothing was listed."""
    rc, stdout, _ = run_shell_cmd(cmd, dry_run=dry_run)
    output = stdout.rstrip() if rc == 0 else ""
    if "Listed 0 items" in output:
        return ""
    return output


# ── Mutations ──────────────────────────────────────────────────────


def ensure_firewall_rules(dry_run=False):
    """Create the HTTP/HTTPS ingress rules unless they already exist."""
    logger.info("Creating firewall rules...")
    for rule, (allow, description) in FIREWALL_RULES.items():
        if resource_exists("firewall", rule, dry_run=dry_run):
            logger.info(f"Firewall rule '{rule}' already exists")
            continue
        rc, _, stderr = run_shell_cmd(_gcloud_firewall_create_cmd(rule, allow, description), dry_run=dry_run)
        if rc != 0:
            logger.error(f"Failed to create firewall rule '{rule}': {stderr.strip()}")
            return False
        logger.info(f"Firewall rule '{rule}' created ({allow})")
    logger.info("Firewall rules configured")
    return True


def delete_firewall_rule(rule, dry_run=False):
    """Delete a firewall rule."""
    logger.info(f"Deleting firewall rule '{rule}'...")
    rc, _, stderr = run_shell_cmd(_gcloud_firewall_delete_cmd(rule), dry_run=dry_run)
    if rc != 0:
        logger.error(f"Failed to delete firewall rule '{rule}': {stderr.strip()}")
        return False
    logger.info(f"Firewall rule '{rule}' deleted")
    return True


def create_instance(instance, zone, machine_type, project, disk_size, startup_script, dry_run=False):
    """Create the instance with the rendered startup script as metadata.

    The script is written to a temp file for --metadata-from-file and removed
    afterwards.
    """
    logger.info(f"Creating VM instance '{instance}' in zone '{zone}' ({machine_type}, {disk_size}GB)...")

    if dry_run:
        run_shell_cmd(
            _gcloud_create_cmd(instance, zone, machine_type, project, disk_size, "startup-script.sh"),
            dry_run=True,
        )
        return True

    with tempfile.NamedTemporaryFile(mode="w", suffix="_startup-script.sh", delete=False) as f:
        f.write(startup_script)
        script_path = f.name

    try:
        cmd = _gcloud_create_cmd(instance, zone, machine_type, project, disk_size, script_path)
        rc, _, stderr = run_shell_cmd(cmd)
    finally:
        os.unlink(script_path)

    if rc != 0:
        logger.error(f"Failed to create instance: {stderr.strip()}")
        return False
    logger.info(f"VM instance created: {instance}")
    return True


def delete_instance(instance, zone, dry_run=False):
    """Delete an instance.

    Uses gcloud compute instances delete --quiet (blocks until complete).
    """
    logger.info(f"Deleting instance '{instance}' in zone '{zone}'...")

    rc, _, stderr = run_shell_cmd(_gcloud_delete_cmd(instance, zone), dry_run=dry_run)
    if rc != 0:
        logger.error(f"Failed to delete instance: {stderr.strip()}")
        return False

    logger.info("Instance deleted.")
    return True
