"""
Chaos Exporter - Prometheus exporter for LitmusChaos engine results.

Polls a ChaosEngine for experiment verdicts and exposes them, together with
aggregate pass/fail counts, on a /metrics endpoint.
"""

__version__ = "1.0.0"
