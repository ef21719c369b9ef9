"""Status and test-auth commands: report what is deployed and how it answers."""

import logging
import sys

from owoxgcp.commands import add_common_args, add_vm_args, load_settings, prepare_project, prepare_vm
from owoxgcp.deploy import show_status
from owoxgcp.probe import check_external_access

logger = logging.getLogger(__name__)


def handle_status(args):
    """CLI handler for 'status'."""
    settings = load_settings(args)
    project = prepare_project(args, settings)
    show_status(project.project_id, dry_run=args.dry_run)


def handle_test_auth(args):
    """CLI handler for 'test-auth'."""
    settings = load_settings(args)
    vm = prepare_vm(args, settings)

    logger.info(f"Testing authentication for: {vm.name}")
    if not vm.has_external_ip:
        logger.error("VM has no external IP - cannot test from outside")
        sys.exit(1)
    if args.dry_run:
        logger.info(f"[dry-run] GET {vm.url}/ and {vm.url}/api/external/")
        return

    ok = check_external_access(vm)
    logger.info("Authentication test complete")
    if not ok:
        sys.exit(1)


def register_status_commands(subparsers):
    """Register the 'status' and 'test-auth' commands."""
    status = subparsers.add_parser("status", help="Show deployment status")
    add_common_args(status)
    status.set_defaults(func=handle_status)

    test_auth = subparsers.add_parser("test-auth", help="Test authentication setup from outside the VM")
    add_common_args(test_auth)
    add_vm_args(test_auth)
    test_auth.set_defaults(func=handle_test_auth)
