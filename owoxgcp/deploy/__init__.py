"""Deploy library: deployment, auth, update and cleanup orchestration."""

from owoxgcp.deploy.basic_auth import configure_basic_auth, remove_basic_auth, verify_basic_auth
from owoxgcp.deploy.cleanup import DeploymentResources, delete_resources, find_resources, show_status
from owoxgcp.deploy.orchestrate import (
    apply_auth_configuration,
    create_or_keep_vm,
    deploy_instance,
    display_access_info,
)
from owoxgcp.deploy.params import DeployParams
from owoxgcp.deploy.update import report_version, update_app

__all__ = [
    "DeployParams",
    "DeploymentResources",
    "apply_auth_configuration",
    "configure_basic_auth",
    "create_or_keep_vm",
    "delete_resources",
    "deploy_instance",
    "display_access_info",
    "find_resources",
    "remove_basic_auth",
    "report_version",
    "show_status",
    "update_app",
    "verify_basic_auth",
]
