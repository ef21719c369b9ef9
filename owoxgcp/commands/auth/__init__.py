"""Auth command: configure or remove access control on an existing VM."""

import logging
import sys

from owoxgcp.auth import collect_users
from owoxgcp.commands import add_common_args, add_vm_args, confirm, load_settings, prepare_vm
from owoxgcp.deploy import configure_basic_auth, remove_basic_auth
from owoxgcp.provisioning.ssh import check_ssh

logger = logging.getLogger(__name__)


def handle_basic(args):
    """CLI handler for 'auth basic'."""
    settings = load_settings(args)
    try:
        users = collect_users(args.user, settings.users)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    vm = prepare_vm(args, settings)

    if not args.dry_run:
        logger.info("Testing SSH connectivity to VM...")
        if not check_ssh(vm):
            logger.error("Cannot establish SSH connection to VM")
            logger.info("Please ensure:")
            logger.info("1. VM is running and ready")
            logger.info("2. SSH keys are properly configured")
            logger.info(f"3. Try: gcloud compute ssh {vm.name} --zone={vm.zone}")
            sys.exit(1)
        logger.info("SSH connectivity confirmed")

    if not configure_basic_auth(vm, users, dry_run=args.dry_run):
        sys.exit(1)

    logger.info("=== Basic Auth Credentials ===")
    for user in users:
        logger.info(f"Username: {user.username} | Password: {user.password}")
    logger.warning("Save these credentials securely!")


def handle_iap(args):
    """CLI handler for 'auth iap'."""
    logger.warning("Identity-Aware Proxy requires an OAuth consent screen and a load balancer")
    logger.error("IAP configuration is not supported by this tool")
    logger.info("Configure IAP in the Cloud Console, or use 'auth basic' for password protection")
    sys.exit(1)


def handle_remove(args):
    """CLI handler for 'auth remove'."""
    logger.warning("This will remove Basic Auth configuration")
    logger.warning("VM and OWOX application will remain running")
    if not args.dry_run and not confirm("Continue? (y/N): ", assume_yes=args.yes):
        logger.info("Cleanup cancelled")
        return

    settings = load_settings(args)
    vm = prepare_vm(args, settings)
    if not remove_basic_auth(vm, dry_run=args.dry_run):
        sys.exit(1)


def register_remove_target(subparsers, name="remove", help_text="Remove authentication (make public)"):
    parser = subparsers.add_parser(name, help=help_text)
    add_common_args(parser)
    add_vm_args(parser)
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    parser.set_defaults(func=handle_remove)
    return parser


def register_auth_command(subparsers):
    """Register the 'auth' command with basic/iap/remove actions."""
    auth_parser = subparsers.add_parser("auth", help="Manage authentication on an existing VM")
    action_subparsers = auth_parser.add_subparsers(dest="action", required=True)

    basic = action_subparsers.add_parser("basic", help="Configure Basic Authentication")
    add_common_args(basic)
    add_vm_args(basic)
    basic.add_argument(
        "--user",
        action="append",
        default=None,
        metavar="NAME[:PASSWORD]",
        help="Basic-auth user; repeatable. Without a password one is generated (default: one 'admin' user)",
    )
    basic.set_defaults(func=handle_basic)

    iap = action_subparsers.add_parser("iap", help="Configure Identity-Aware Proxy (not supported)")
    add_common_args(iap)
    add_vm_args(iap)
    iap.set_defaults(func=handle_iap)

    register_remove_target(action_subparsers)
