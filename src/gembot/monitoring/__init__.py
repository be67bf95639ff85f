"""Prometheus metrics for gembot."""

from __future__ import annotations

from gembot.monitoring.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
