"""GCP provisioning: types, gcloud wrappers, SSH transport and readiness polling."""

from owoxgcp.provisioning.gcp import (
    create_instance,
    delete_instance,
    ensure_firewall_rules,
    get_external_ip,
    list_running_instances,
    resource_exists,
)
from owoxgcp.provisioning.shell import run_shell_cmd
from owoxgcp.provisioning.ssh import check_ssh, wait_for_vm_ready
from owoxgcp.provisioning.ssh_keys import setup_ssh_keys
from owoxgcp.provisioning.ssh_transport import run_remote, run_remote_script, scp_file
from owoxgcp.provisioning.types import Project, VMInstance

__all__ = [
    "Project",
    "VMInstance",
    "run_shell_cmd",
    "check_ssh",
    "wait_for_vm_ready",
    "setup_ssh_keys",
    "run_remote",
    "run_remote_script",
    "scp_file",
    "resource_exists",
    "ensure_firewall_rules",
    "create_instance",
    "delete_instance",
    "get_external_ip",
    "list_running_instances",
]
