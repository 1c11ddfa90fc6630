"""Server entry point: ``python -m journal_analytics.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from journal_analytics.core.config.settings import Settings, get_settings
from journal_analytics.core.server.app import create_app

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def is_loopback_host(host: str) -> bool:
    """True for ``localhost`` and any loopback IPv4/IPv6 literal."""
    if host.strip().lower() == "localhost":
        return True
    try:
        return ip_address(host.strip("[]")).is_loopback
    except ValueError:
        return False


def check_bind_allowed(settings: Settings) -> None:
    """Refuse non-loopback binds unless explicitly allowed.

    Raises:
        RuntimeError: The host is not loopback and
            ``JOURNAL_ALLOW_INSECURE_BIND`` is not set.
    """
    if settings.journal_allow_insecure_bind or is_loopback_host(settings.journal_host):
        return
    raise RuntimeError(
        f"Refusing to serve journal data on non-loopback host {settings.journal_host!r}: "
        "the server has no auth layer. Set JOURNAL_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    """Start the journal analytics MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.journal_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    check_bind_allowed(settings)
    if settings.journal_allow_insecure_bind and not is_loopback_host(settings.journal_host):
        logger.warning("Serving journal analytics on %s without authentication",
                       settings.journal_host)

    mcp = create_app()
    logger.info(
        "Starting Journal Analytics server on %s:%d (data: %s)",
        settings.journal_host,
        settings.journal_port,
        settings.journal_data_path or "mock journal",
    )
    mcp.run(
        transport="streamable-http",
        host=settings.journal_host,
        port=settings.journal_port,
    )


if __name__ == "__main__":
    run()
