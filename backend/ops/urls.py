"""
Probe and metrics routes, mounted under /_health/ and /_metrics/.

Neither prefix goes through DRF authentication; restrict them at the
proxy in production.
"""
from django.urls import path

from ops.health import LedgerHealthView, LivenessView, ReadinessView
from ops.metrics import MetricsView

urlpatterns = [
    path("live", LivenessView.as_view(), name="probe-live"),
    path("ready", ReadinessView.as_view(), name="probe-ready"),
    path("ledger", LedgerHealthView.as_view(), name="probe-ledger"),
]

metrics_patterns = [
    path("", MetricsView.as_view(), name="prometheus-metrics"),
]
