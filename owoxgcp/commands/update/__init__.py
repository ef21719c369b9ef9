"""Update command: upgrade the OWOX package on an existing VM."""

import logging
import sys

from owoxgcp.commands import add_common_args, add_vm_args, load_settings, prepare_vm
from owoxgcp.config import UPDATE_PRESETS, resolve_package
from owoxgcp.deploy import report_version, update_app

logger = logging.getLogger(__name__)


def handle_update(args):
    """CLI handler for 'update'."""
    if not args.check_version:
        try:
            package = resolve_package(args.package, presets=UPDATE_PRESETS)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    settings = load_settings(args)
    vm = prepare_vm(args, settings)

    if args.check_version:
        if args.dry_run:
            logger.info(f"[dry-run] ssh {vm.name}: owox --version; npm list -g owox")
            return
        if not report_version(vm):
            sys.exit(1)
        return

    if not update_app(vm, package, dry_run=args.dry_run):
        sys.exit(1)


def register_update_command(subparsers):
    """Register the 'update' command."""
    parser = subparsers.add_parser("update", help="Update the OWOX app on an existing VM")
    add_common_args(parser)
    add_vm_args(parser)
    parser.add_argument(
        "--package",
        default="stable",
        help="npm package spec, or a preset: stable (owox@latest), next (owox@next) (default: stable)",
    )
    parser.add_argument("--check-version", action="store_true", help="Only report the installed version")
    parser.set_defaults(func=handle_update)
