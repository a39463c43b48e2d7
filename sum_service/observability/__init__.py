"""Request instrumentation for the sum service.

structlog request context + access logs, and Prometheus request counters and
duration histograms exposed on ``/metrics``.
"""
