"""Shared CLI plumbing: common flags, settings, project/VM resolution, confirmation."""

import logging
import sys

from owoxgcp.config import build_settings, load_config, resolve_zone
from owoxgcp.deploy.targets import check_prerequisites, select_project, select_vm

logger = logging.getLogger(__name__)


def add_common_args(parser):
    """Flags every command accepts."""
    parser.add_argument("--config", default=None, help="YAML config file (default: ./owox-gcp.yaml if present)")
    parser.add_argument("--project", default=None, help="GCP project ID (default: config, then gcloud's default)")
    parser.add_argument(
        "--regenerate-ssh-key",
        action="store_true",
        help="In Cloud Shell, replace a passphrase-protected gcloud SSH key",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")


def add_vm_args(parser):
    """Flags that pick an existing VM."""
    parser.add_argument("--instance", default=None, help="VM instance name (default: owox-data-marts)")
    parser.add_argument("--zone", default=None, help="Zone of the instance (default: found among running VMs)")


def load_settings(args, **overrides):
    """Load the config file and apply CLI overrides; exit 1 on invalid values."""
    overrides.setdefault("project", getattr(args, "project", None))
    overrides.setdefault("instance", getattr(args, "instance", None))
    try:
        return build_settings(load_config(args.config), overrides)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


def prepare_project(args, settings):
    """Run prerequisite checks and select the project; exit 1 on failure."""
    if not check_prerequisites(regenerate_ssh_key=args.regenerate_ssh_key, dry_run=args.dry_run):
        sys.exit(1)
    project = select_project(settings.project, dry_run=args.dry_run)
    if project is None:
        sys.exit(1)
    settings.project = project.project_id
    return project


def prepare_vm(args, settings):
    """Select the project, then the running VM; exit 1 on failure."""
    prepare_project(args, settings)
    zone = resolve_zone(args.zone) if args.zone else None
    vm = select_vm(settings.instance, zone=zone, dry_run=args.dry_run)
    if vm is None:
        sys.exit(1)
    return vm


def confirm(prompt, expected=("y", "yes"), assume_yes=False, exact=False):
    """Ask for confirmation on stdin. EOF (no terminal) counts as 'no'.

    With exact=True the answer must match one of expected character for
    character; otherwise the comparison ignores case.
    """
    if assume_yes:
        return True
    try:
        answer = input(prompt).strip()
    except EOFError:
        return False
    if exact:
        return answer in expected
    return answer.lower() in {e.lower() for e in expected}
