"""Simulated training runs: telemetry, the run controller and the version store."""

from forge.services.training.controller import RunController
from forge.services.training.telemetry import DecayCurve, LogStream, MetricSeries
from forge.services.training.versions import VersionStore

__all__ = [
    "RunController",
    "VersionStore",
    "DecayCurve",
    "MetricSeries",
    "LogStream",
]
