"""New Relic NRQL-backed external metrics adapter for Kubernetes autoscaling."""

__version__ = "0.1.0"
