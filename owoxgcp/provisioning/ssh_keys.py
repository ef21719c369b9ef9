"""Cloud Shell SSH key setup for gcloud compute ssh."""

import getpass
import logging
import os

from owoxgcp.provisioning.shell import run_shell_cmd

logger = logging.getLogger(__name__)

GCE_KEY_NAME = "google_compute_engine"


def is_cloud_shell(environ=None):
    """Detect Google Cloud Shell from its environment variables."""
    environ = os.environ if environ is None else environ
    if environ.get("CLOUD_SHELL"):
        return True
    home = environ.get("HOME", "")
    return home.startswith("/home/") and bool(environ.get("DEVSHELL_PROJECT_ID"))


def default_key_path():
    return os.path.join(os.path.expanduser("~"), ".ssh", GCE_KEY_NAME)


def _keygen_cmd(key_path):
    return ["ssh-keygen", "-t", "rsa", "-f", key_path, "-C", getpass.getuser(), "-N", "", "-q"]


def key_is_usable(key_path):
    """True if the private key loads without a passphrase."""
    rc, _, _ = run_shell_cmd(["ssh-keygen", "-y", "-P", "", "-f", key_path])
    return rc == 0


def create_key(key_path):
    """Create a passphrase-less RSA key and register it with gcloud."""
    os.makedirs(os.path.dirname(key_path), exist_ok=True)
    for path in (key_path, f"{key_path}.pub"):
        if os.path.exists(path):
            os.remove(path)

    rc, _, stderr = run_shell_cmd(_keygen_cmd(key_path))
    if rc != 0:
        logger.error(f"Failed to create SSH key: {stderr.strip()}")
        return False
    logger.info("SSH key created without passphrase")

    logger.info("Configuring gcloud SSH...")
    rc, _, stderr = run_shell_cmd(["gcloud", "compute", "config-ssh", "--quiet"])
    if rc != 0:
        logger.warning(f"gcloud compute config-ssh failed (continuing): {stderr.strip()}")
    return True


def setup_ssh_keys(regenerate=False, key_path=None, environ=None):
    """Make sure Cloud Shell has a passphrase-less key for gcloud compute ssh.

    Outside Cloud Shell nothing is done. An existing key that needs a
    passphrase is only replaced when regenerate is True.

    Returns:
        False only if creating a key failed.
    """
    if not is_cloud_shell(environ):
        return True

    logger.info("Detected Cloud Shell environment")
    key_path = key_path or default_key_path()

    if not os.path.exists(key_path):
        logger.info("Creating SSH key for gcloud compute...")
        return create_key(key_path)

    if key_is_usable(key_path):
        return True

    logger.warning("SSH key has passphrase which may cause issues in Cloud Shell")
    if not regenerate:
        logger.warning("Re-run with --regenerate-ssh-key to replace it with a key without passphrase")
        return True

    logger.info("Creating new SSH key without passphrase...")
    return create_key(key_path)
