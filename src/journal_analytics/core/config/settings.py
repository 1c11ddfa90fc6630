"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from journal_analytics.domains.health.domain_logic.analytics_engine import AnalyticsConfig
from journal_analytics.domains.health.domain_logic.metric_models import MetricKind


class Settings(BaseSettings):
    """Journal analytics server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback: the journal holds personal health data and there
    # is no auth layer. Opt into `0.0.0.0` explicitly for remote access.
    journal_host: str = "127.0.0.1"
    journal_port: int = 8011
    journal_log_level: str = "info"
    # If binding to non-loopback, refuse to start unless this is set true.
    journal_allow_insecure_bind: bool = False

    # Data source
    # Path to a journal JSON export; empty = deterministic mock journal.
    journal_data_path: str = ""
    mock_journal_days: int = 90

    # Analytics
    analytics_min_sample_size: int = 3
    analytics_significance_level: float = 0.05
    analytics_trend_threshold: float = 0.05
    analytics_max_insights: int = 10
    analytics_score_window_days: int = 7
    # JSON object of metric kind -> weight, e.g. {"mood": 1.0, "pain_level": 1.2}
    analytics_metric_weights: dict[str, float] = {}

    def to_analytics_config(self) -> AnalyticsConfig:
        """Build the immutable engine configuration.

        Raises:
            ValueError: If a weight is keyed by an unknown metric kind.
        """
        return AnalyticsConfig(
            min_sample_size=self.analytics_min_sample_size,
            significance_level=self.analytics_significance_level,
            trend_threshold=self.analytics_trend_threshold,
            max_insights=self.analytics_max_insights,
            score_window_days=self.analytics_score_window_days,
            metric_weights={
                MetricKind(kind): weight
                for kind, weight in self.analytics_metric_weights.items()
            },
        )


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
