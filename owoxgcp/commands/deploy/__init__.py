"""Deploy command: create firewall rules and the VM, then configure access."""

import logging
import sys

from owoxgcp.auth import collect_users, uses_basic_auth
from owoxgcp.commands import add_common_args, confirm, load_settings, prepare_project
from owoxgcp.config import AUTH_METHODS
from owoxgcp.deploy import DeployParams, deploy_instance

logger = logging.getLogger(__name__)


def handle_deploy(args):
    """CLI handler for 'deploy'."""
    settings = load_settings(
        args,
        zone=args.zone,
        machine_type=args.machine_type,
        disk_size=args.disk_size,
        package=args.package,
        auth_method="none" if args.public else args.auth,
    )

    if args.public:
        logger.warning("This will create a VM without any authentication")
        if not args.dry_run and not confirm("Are you sure? (y/N): ", assume_yes=args.yes):
            logger.info("Deployment cancelled")
            return

    users = []
    if uses_basic_auth(settings.auth_method):
        try:
            users = collect_users(args.user, settings.users)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    prepare_project(args, settings)

    params = DeployParams(
        settings=settings,
        auth_method=settings.auth_method,
        users=users,
        recreate=args.recreate,
        dry_run=args.dry_run,
    )
    if deploy_instance(params) is None:
        sys.exit(1)


def register_deploy_command(subparsers):
    """Register the 'deploy' command."""
    parser = subparsers.add_parser("deploy", help="Deploy a new OWOX instance")
    add_common_args(parser)
    parser.add_argument("--instance", default=None, help="VM instance name (default: owox-data-marts)")
    parser.add_argument("--zone", default=None, help="Zone, or a region preset: us, europe, asia (default: us-central1-a)")
    parser.add_argument(
        "--machine-type",
        default=None,
        help="Machine type, or a size preset: small (e2-micro), medium (e2-small), large (e2-medium) (default: medium)",
    )
    parser.add_argument("--disk-size", type=int, default=None, help="Boot disk size in GB (default: 20)")
    parser.add_argument(
        "--package",
        default=None,
        help="npm package spec, or a preset: stable (owox), next (owox@next) (default: stable)",
    )
    parser.add_argument("--auth", default=None, choices=AUTH_METHODS, help="Authentication method (default: basic)")
    parser.add_argument(
        "--user",
        action="append",
        default=None,
        metavar="NAME[:PASSWORD]",
        help="Basic-auth user; repeatable. Without a password one is generated (default: one 'admin' user)",
    )
    parser.add_argument("--public", action="store_true", help="Deploy without authentication (public access)")
    parser.add_argument("--recreate", action="store_true", help="Delete and recreate the VM if it already exists")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    parser.set_defaults(func=handle_deploy)
