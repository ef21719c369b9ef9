"""Basic-auth users: validation, password generation and htpasswd hashing."""

import base64
import logging
import os
import re
import secrets
from dataclasses import dataclass

from owoxgcp.provisioning.shell import run_shell_cmd
from owoxgcp.redact import register_secret

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "admin"
MIN_PASSWORD_LENGTH = 6
PASSWORD_ENV_VAR = "OWOX_BASIC_AUTH_PASSWORD"

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")

AUTH_DESCRIPTIONS = {
    "none": "No authentication required",
    "basic": "Basic Authentication required",
    "iap": "Google IAP authentication required",
    "both": "Both Basic Auth + Google IAP required",
}


@dataclass
class BasicAuthUser:
    """One htpasswd entry plus the clear-text password for the summary."""

    username: str
    password: str
    generated: bool = False
    password_hash: str = ""

    @property
    def htpasswd_line(self) -> str:
        return f"{self.username}:{self.password_hash}"


def generate_password() -> str:
    """12 random bytes, base64 encoded (same shape as `openssl rand -base64 12`)."""
    return base64.b64encode(secrets.token_bytes(12)).decode()


def validate_username(username: str) -> str:
    if not _USERNAME_RE.match(username or ""):
        raise ValueError(f"Invalid username '{username}': use only alphanumeric characters and underscores")
    return username


def validate_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def make_user(username, password=None):
    """Validate a user; a missing password falls back to the env var, then a random one."""
    validate_username(username)
    if not password:
        password = os.environ.get(PASSWORD_ENV_VAR, "")
    if password:
        validate_password(password)
        register_secret(password)
        return BasicAuthUser(username=username, password=password)
    return BasicAuthUser(username=username, password=generate_password(), generated=True)


def parse_user_spec(spec: str) -> BasicAuthUser:
    """Parse a `NAME` or `NAME:PASSWORD` command-line value."""
    username, sep, password = spec.partition(":")
    return make_user(username, password if sep else None)


def collect_users(cli_specs=None, config_users=None):
    """Build the user list from --user flags and config `auth.users`.

    With neither source, a single admin user with a random password is
    returned. Duplicate usernames are rejected.
    """
    users = [parse_user_spec(spec) for spec in cli_specs or []]
    for entry in config_users or []:
        if isinstance(entry, str):
            users.append(parse_user_spec(entry))
        elif isinstance(entry, dict):
            password = entry.get("password")
            users.append(make_user(str(entry.get("name", "")), None if password is None else str(password)))
        else:
            raise ValueError(f"Invalid user entry of type {type(entry).__name__}: expected 'NAME[:PASSWORD]' or a mapping")

    if not users:
        users = [make_user(DEFAULT_USERNAME)]

    seen = set()
    for user in users:
        if user.username in seen:
            raise ValueError(f"Duplicate user '{user.username}'")
        seen.add(user.username)
    return users


def hash_password(password, dry_run=False):
    """Hash a password in APR1-MD5 htpasswd format using openssl.

    The password is passed on stdin so it never appears in a process list.

    Returns:
        The hash string, or None on failure.
    """
    cmd = ["openssl", "passwd", "-apr1", "-stdin"]
    if dry_run:
        run_shell_cmd(cmd, dry_run=True)
        return "$apr1$dryrun$"
    rc, stdout, stderr = run_shell_cmd(cmd, input_text=f"{password}\n", timeout=30)
    if rc != 0 or not stdout.strip():
        logger.error(f"Failed to hash password: {stderr.strip()}")
        return None
    return stdout.strip()


def hash_users(users, dry_run=False):
    """Fill in password_hash for every user. Returns False if any hash failed."""
    for user in users:
        password_hash = hash_password(user.password, dry_run=dry_run)
        if password_hash is None:
            return False
        user.password_hash = password_hash
    return True


def render_htpasswd(users) -> str:
    return "".join(f"{user.htpasswd_line}\n" for user in users)


def uses_basic_auth(method: str) -> bool:
    return method in ("basic", "both")
