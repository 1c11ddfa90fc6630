"""Journal Analytics MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from datetime import date

from fastmcp import FastMCP

from journal_analytics.core.config.settings import get_settings
from journal_analytics.domains.health.connectors import JournalDataSource
from journal_analytics.domains.health.connectors.journal_export import JournalParseError
from journal_analytics.domains.health.connectors.providers import (
    JsonJournalSource,
    MockJournalSource,
)
from journal_analytics.domains.health.domain_logic.analytics_engine import (
    AnalyticsConfig,
    HealthAnalyticsEngine,
)
from journal_analytics.domains.health.tools.journal_analytics_tools import (
    register_journal_analytics_tools,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "Journal Analytics"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    data_source_override: JournalDataSource | None = None,
    config_override: AnalyticsConfig | None = None,
) -> FastMCP:
    """Create and configure the journal analytics MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Chooses the journal data source (export file, else mock journal)
    3. Builds the analytics engine from settings
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Health journal analytics server. Computes summary statistics, "
            "correlations between tracked metrics, an overall health score, "
            "good-day streaks and plain-language insights from daily journal logs."
        ),
    )

    # --- Initialize journal data source ---
    if data_source_override is not None:
        source = data_source_override
    elif settings.journal_data_path:
        try:
            source = JsonJournalSource(settings.journal_data_path)
            logger.info("Using journal export at %s", settings.journal_data_path)
        except JournalParseError as exc:
            logger.error("Failed to load journal export: %s", exc)
            logger.warning("Falling back to the mock journal")
            source = MockJournalSource(date.today(), settings.mock_journal_days)
    else:
        source = MockJournalSource(date.today(), settings.mock_journal_days)
        logger.info("No JOURNAL_DATA_PATH configured; using mock journal data")

    # --- Initialize analytics engine ---
    config = config_override or settings.to_analytics_config()
    engine = HealthAnalyticsEngine(source, config)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "data_source": source.data_source,
            "max_insights": config.max_insights,
            "min_sample_size": config.min_sample_size,
        }

    register_journal_analytics_tools(server, engine)
    logger.info("Journal analytics tools registered")

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
