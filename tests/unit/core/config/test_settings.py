"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from journal_analytics.core.config.settings import Settings, get_settings
from journal_analytics.domains.health.domain_logic.metric_models import MetricKind


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.journal_host == "127.0.0.1"
        assert settings.journal_port == 8011
        assert settings.journal_allow_insecure_bind is False
        assert settings.journal_data_path == ""
        assert settings.analytics_min_sample_size == 3
        assert settings.analytics_metric_weights == {}

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("JOURNAL_PORT", "9100")
        monkeypatch.setenv("ANALYTICS_MAX_INSIGHTS", "4")
        monkeypatch.setenv("ANALYTICS_SIGNIFICANCE_LEVEL", "0.01")
        settings = get_settings()
        assert settings.journal_port == 9100
        assert settings.analytics_max_insights == 4
        assert settings.analytics_significance_level == 0.01


class TestAnalyticsConfig:
    def test_weights_from_json(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_METRIC_WEIGHTS", '{"mood": 2.0, "pain_level": 0.5}')
        config = get_settings().to_analytics_config()
        assert config.metric_weights == {MetricKind.MOOD: 2.0, MetricKind.PAIN_LEVEL: 0.5}
        assert config.weight_for(MetricKind.MOOD) == 2.0

    def test_knobs_carried_over(self):
        config = Settings(
            _env_file=None,
            analytics_min_sample_size=5,
            analytics_max_insights=3,
            analytics_score_window_days=14,
        ).to_analytics_config()
        assert config.min_sample_size == 5
        assert config.max_insights == 3
        assert config.score_window_days == 14

    def test_unknown_weight_key(self):
        settings = Settings(_env_file=None, analytics_metric_weights={"sleep": 1.0})
        with pytest.raises(ValueError):
            settings.to_analytics_config()
