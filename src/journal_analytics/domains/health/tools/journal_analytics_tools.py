"""MCP tools exposing the journal analytics engine.

Analysis runs in a worker thread (``asyncio.to_thread``) so a long history
never blocks the event loop. Expected analytics failures come back as JSON
payloads with a ``status`` field instead of tool errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import date
from typing import TYPE_CHECKING, Any, Callable

from fastmcp import FastMCP

from journal_analytics.domains.health.domain_logic.analytics_engine import AnalysisRequest
from journal_analytics.domains.health.domain_logic.errors import (
    AnalyticsError,
    CalculationError,
    InsufficientDataError,
    UnknownMetricError,
)
from journal_analytics.domains.health.domain_logic.metric_models import DateRange

if TYPE_CHECKING:
    from journal_analytics.domains.health.domain_logic.analytics_engine import (
        HealthAnalyticsEngine,
    )
    from journal_analytics.domains.health.domain_logic.analytics_models import (
        ChartStatistics,
        CorrelationResult,
        HealthScore,
        StreakResult,
    )

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------

def _error_payload(exc: AnalyticsError) -> dict[str, Any]:
    if isinstance(exc, InsufficientDataError):
        return {
            "status": "insufficient_data",
            "required": exc.required,
            "available": exc.available,
            "message": f"{exc} Keep tracking or pick metrics you log more often.",
        }
    if isinstance(exc, CalculationError):
        return {
            "status": "calculation_error",
            "message": f"{exc.reason}. Try a different pair of metrics.",
        }
    if isinstance(exc, UnknownMetricError):
        return {"status": "unknown_metric", "message": str(exc)}
    return {"status": "error", "message": str(exc)}


def _invalid_days(days: int) -> dict[str, Any]:
    return {"status": "invalid_request", "message": f"days must be at least 1 (got {days})"}


def _period_payload(period: DateRange) -> dict[str, str]:
    return {"start": period.start.isoformat(), "end": period.end.isoformat()}


def _statistics_payload(stats: ChartStatistics) -> dict[str, Any]:
    return {
        "mean": round(stats.mean, 4),
        "median": round(stats.median, 4),
        "min": stats.min,
        "max": stats.max,
        "count": stats.count,
        "trend_direction": stats.trend_direction.value,
        "change_percentage": round(stats.change_percentage, 2),
    }


def _correlation_payload(result: CorrelationResult) -> dict[str, Any]:
    return {
        "primary_metric": result.primary_metric,
        "secondary_metric": result.secondary_metric,
        "coefficient": round(result.coefficient, 4),
        "p_value": round(result.p_value, 6),
        "is_significant": result.is_significant,
        "strength": result.strength_label,
        "direction": result.direction_label,
        "matched_days": result.matched_point_count,
        "time_range": _period_payload(result.time_range),
        "insights": list(result.insights),
    }


def _score_payload(score: HealthScore) -> dict[str, Any]:
    return {
        "overall_score": round(score.overall_score, 2),
        "previous_score": (
            round(score.previous_score, 2) if score.previous_score is not None else None
        ),
        "trend": score.trend.value,
        "components": [
            {
                "metric": c.metric.value,
                "name": c.name,
                "score": round(c.score, 2),
                "weight": c.weight,
            }
            for c in score.components
        ],
        "window": _period_payload(score.window) if score.window else None,
        "computed_at": score.computed_at.isoformat(),
    }


def _streak_payload(streak: StreakResult) -> dict[str, Any]:
    return {
        "metric_id": streak.metric_id,
        "streak_kind": streak.streak_kind,
        "current_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "is_active": streak.is_active,
    }


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_journal_analytics_tools(
    mcp: FastMCP,
    engine: HealthAnalyticsEngine,
    *,
    today: Callable[[], date] = date.today,
) -> None:
    """Register journal analytics tools on the MCP server."""

    def _period(days: int) -> DateRange:
        return DateRange.last_n_days(today(), days)

    @mcp.tool
    async def list_metrics(days: int = 30) -> str:
        """List the metrics that have journal data in the recent period.

        Args:
            days: Number of days to look back (default: 30).
        """
        if days < 1:
            return json.dumps(_invalid_days(days))
        period = _period(days)
        metric_ids = await asyncio.to_thread(engine.available_metrics, period)
        metrics = []
        for metric_id in metric_ids:
            series = await asyncio.to_thread(engine.series, metric_id, period)
            metrics.append({
                "metric_id": metric_id,
                "display_name": series.display_name,
                "category": series.category.value,
                "description": series.spec.description,
                "value_range": list(series.spec.value_range) if series.spec.value_range else None,
                "data_points": len(series),
            })
        return json.dumps({
            "status": "ok",
            "period": _period_payload(period),
            "metrics": metrics,
            **engine.source.get_provenance(),
        }, indent=2)

    @mcp.tool
    async def metric_statistics(metric_id: str, days: int = 30) -> str:
        """Summary statistics and trend direction for one metric.

        Args:
            metric_id: Metric identifier, e.g. 'mood', 'pain_level' or 'symptom:1'.
            days: Number of days to analyze (default: 30).
        """
        if days < 1:
            return json.dumps(_invalid_days(days))
        period = _period(days)
        try:
            stats = await asyncio.to_thread(engine.statistics, metric_id, period)
        except AnalyticsError as exc:
            return json.dumps(_error_payload(exc))
        return json.dumps({
            "status": "ok",
            "metric_id": metric_id,
            "period": _period_payload(period),
            "statistics": _statistics_payload(stats),
        }, indent=2)

    @mcp.tool
    async def correlate_metrics(primary_metric: str, secondary_metric: str, days: int = 30) -> str:
        """Pearson correlation between two metrics over their shared days.

        Args:
            primary_metric: First metric identifier (e.g. 'mood').
            secondary_metric: Second metric identifier (e.g. 'pain_level').
            days: Number of days to analyze (default: 30).
        """
        if days < 1:
            return json.dumps(_invalid_days(days))
        start_time = time.monotonic()
        try:
            result = await asyncio.to_thread(
                engine.correlate, primary_metric, secondary_metric, _period(days),
            )
        except AnalyticsError as exc:
            logger.info("Correlation %s/%s not computed: %s", primary_metric, secondary_metric, exc)
            return json.dumps(_error_payload(exc))
        logger.debug("correlate_metrics took %.1f ms", (time.monotonic() - start_time) * 1000)
        return json.dumps({"status": "ok", **_correlation_payload(result)}, indent=2)

    @mcp.tool
    async def health_score() -> str:
        """Overall 0-100 health score for the last week and its trend."""
        score = await asyncio.to_thread(engine.health_score, today())
        if not score.has_data:
            return json.dumps({
                "status": "insufficient_data",
                "message": "No scored metrics have entries in the last week.",
            })
        return json.dumps({"status": "ok", **_score_payload(score)}, indent=2)

    @mcp.tool
    async def streaks(days: int = 90) -> str:
        """Current and longest good-day streaks for every tracked metric.

        Args:
            days: Number of days of history to scan (default: 90).
        """
        if days < 1:
            return json.dumps(_invalid_days(days))
        results = await asyncio.to_thread(engine.streaks, _period(days))
        return json.dumps({
            "status": "ok",
            "streaks": [_streak_payload(s) for s in results],
        }, indent=2)

    @mcp.tool
    async def health_insights(
        days: int = 30,
        max_insights: int | None = None,
        metric_ids: list[str] | None = None,
    ) -> str:
        """Generate ranked, plain-language insights from the journal.

        Args:
            days: Number of days to analyze (default: 30).
            max_insights: Maximum insights to return (default: server setting).
            metric_ids: Restrict the analysis to these metrics (default: all tracked).
        """
        if days < 1:
            return json.dumps(_invalid_days(days))
        start_time = time.monotonic()
        request = AnalysisRequest(
            period=_period(days),
            metric_ids=tuple(metric_ids) if metric_ids else None,
            max_insights=max_insights,
        )
        try:
            report = await asyncio.to_thread(engine.recompute, request)
        except AnalyticsError as exc:
            return json.dumps(_error_payload(exc))

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info("Generated %d insights over %d metrics in %.1f ms",
                    len(report.insights), len(report.series), elapsed_ms)

        return json.dumps({
            "status": "ok",
            "period": _period_payload(report.period),
            "health_score": _score_payload(report.health_score),
            "insights": [i.as_dict() for i in report.insights],
            "correlations": [_correlation_payload(c) for c in report.correlations],
            **report.provenance,
        }, indent=2)
