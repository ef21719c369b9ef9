"""Cleanup command: delete the OWOX VM and firewall rules."""

import logging
import sys

from owoxgcp.commands import add_common_args, confirm, load_settings, prepare_project
from owoxgcp.commands.auth import register_remove_target
from owoxgcp.deploy import delete_resources, find_resources

logger = logging.getLogger(__name__)

FINAL_CONFIRMATION = "DELETE EVERYTHING"


def handle_cleanup(args):
    """CLI handler for 'cleanup all'."""
    settings = load_settings(args)
    project = prepare_project(args, settings)

    found = find_resources(settings.instance, settings.cleanup_zones, dry_run=args.dry_run)
    if found.empty:
        logger.info("No OWOX resources found to delete")
        return

    logger.warning("Found the following OWOX resources:")
    for line in found.describe():
        logger.info(f"  {line}")

    logger.error("WARNING: This will DELETE ALL listed resources permanently!")
    logger.error("This action CANNOT be undone!")
    if not confirm(
        "Are you sure you want to delete all OWOX resources? (yes/NO): ",
        expected=("yes",),
        assume_yes=args.yes,
        exact=True,
    ):
        logger.info("Cleanup cancelled by user")
        return
    if not confirm(
        f"Final confirmation: type '{FINAL_CONFIRMATION}' to proceed: ",
        expected=(FINAL_CONFIRMATION,),
        assume_yes=args.yes,
        exact=True,
    ):
        logger.info("Cleanup cancelled by user")
        return

    if not delete_resources(found, dry_run=args.dry_run):
        logger.error("Some resources could not be deleted")
        sys.exit(1)

    logger.info("=== Cleanup Complete ===")
    logger.info(f"All OWOX resources have been deleted from project: {project.project_id}")


def register_cleanup_command(subparsers):
    """Register the 'cleanup' command with all/auth actions."""
    cleanup_parser = subparsers.add_parser("cleanup", help="Remove OWOX resources")
    action_subparsers = cleanup_parser.add_subparsers(dest="action", required=True)

    all_parser = action_subparsers.add_parser("all", help="Remove the OWOX deployment (all resources)")
    add_common_args(all_parser)
    all_parser.add_argument("--instance", default=None, help="VM instance name (default: owox-data-marts)")
    all_parser.add_argument("--yes", action="store_true", help="Skip both confirmation prompts")
    all_parser.set_defaults(func=handle_cleanup)

    register_remove_target(action_subparsers, name="auth", help_text="Remove only authentication (keep VM)")
