#!/usr/bin/env python3
"""OWOX Data Marts on Google Cloud: CLI entrypoint."""

import argparse

from owoxgcp.commands.auth import register_auth_command
from owoxgcp.commands.cleanup import register_cleanup_command
from owoxgcp.commands.deploy import register_deploy_command
from owoxgcp.commands.status import register_status_commands
from owoxgcp.commands.update import register_update_command
from owoxgcp.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Deploy and manage OWOX Data Marts on Google Cloud")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every gcloud command before it runs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # deploy, auth, update, cleanup, status/test-auth
    register_deploy_command(subparsers)
    register_auth_command(subparsers)
    register_update_command(subparsers)
    register_cleanup_command(subparsers)
    register_status_commands(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
