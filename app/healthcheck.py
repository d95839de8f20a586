"""HTTP health check probe for container orchestration.

Execute a lightweight HTTP GET request against the prober's own /health/live
endpoint. Return appropriate exit codes for container runtime health probes.

Exit Codes:
    0: Healthy - Endpoint returned HTTP 200.
    1: Unhealthy - Connection failed or non-200 response.

Environment Variables:
    HEALTHCHECK_HOST: Target host address (default: 127.0.0.1).
    HEALTHCHECK_PORT: Target port number (default: 8080).
"""

import os
import sys
import urllib.error
import urllib.request

TIMEOUT = 2  # seconds


def build_url() -> str:
    host = os.environ.get("HEALTHCHECK_HOST", "127.0.0.1")
    port = os.environ.get("HEALTHCHECK_PORT", "8080")
    return f"http://{host}:{port}/health/live"


def check(url: str, timeout: float = TIMEOUT) -> int:
    """Return 0 when `url` answers HTTP 200 within `timeout`, else 1."""
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            return 0 if response.status == 200 else 1
    except (urllib.error.URLError, TimeoutError):
        # Network errors and non-success HTTP responses (4xx, 5xx).
        return 1


def main() -> None:
    sys.exit(check(build_url()))


if __name__ == "__main__":
    main()
