"""External HTTP checks of a deployed instance."""

import logging

import httpx

from owoxgcp.templates import PUBLIC_API_PATH

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

# Status of GET / -> (log level, meaning)
ROOT_STATUS_MEANING = {
    200: (logging.INFO, "HTTP 200 OK - No authentication configured"),
    401: (logging.INFO, "HTTP 401 Unauthorized - Basic authentication is working"),
    403: (logging.INFO, "HTTP 403 Forbidden - IAP authentication required"),
}


def http_status(url, client=None, timeout=DEFAULT_TIMEOUT):
    """GET url without following redirects.

    Returns:
        The status code, or None if the connection failed.
    """
    try:
        if client is not None:
            resp = client.get(url, timeout=timeout)
        else:
            resp = httpx.get(url, timeout=timeout, follow_redirects=False)
    except httpx.HTTPError as e:
        logger.debug(f"GET {url} failed: {e}")
        return None
    return resp.status_code


def describe_root_status(status):
    """Map the status of GET / to (log level, message)."""
    if status is None:
        return logging.ERROR, "Connection failed - VM might not be ready or firewall issues"
    return ROOT_STATUS_MEANING.get(status, (logging.WARNING, f"HTTP {status} - Unexpected response"))


def check_external_access(vm, client=None):
    """Check the site root and the public API from outside the VM.

    Returns:
        True if the root answered with a known status and the public API
        returned 200.
    """
    root_url = f"{vm.url}/"
    logger.info(f"Testing HTTP access to: {root_url}")
    root_status = http_status(root_url, client=client)
    level, message = describe_root_status(root_status)
    logger.log(level, message)

    api_url = f"{vm.url}{PUBLIC_API_PATH}"
    logger.info(f"Testing public API access: {api_url}")
    api_status = http_status(api_url, client=client)
    if api_status == 200:
        logger.info("Public API is accessible (200 OK)")
    else:
        logger.warning(f"Public API returned: {api_status if api_status is not None else 'connection-failed'}")

    return root_status in ROOT_STATUS_MEANING and api_status == 200
