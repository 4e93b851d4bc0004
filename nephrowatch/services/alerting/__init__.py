"""CKD alert engine: threshold resolution, metric evaluators and the orchestrator.

Submodules are imported lazily; ``resolver`` depends on the schemas package,
which itself imports ``rules``.
"""

from importlib import import_module

__all__ = [
    "AlertDecision",
    "AlertEngine",
    "AlertSeverity",
    "AlertType",
    "DEFAULT_RULES",
    "DEFAULT_THRESHOLDS",
    "MetricRule",
    "ThresholdLevels",
    "ThresholdResolver",
    "ensure_default_thresholds",
]

_LAZY_IMPORTS = {
    "AlertDecision": ("nephrowatch.services.alerting.rules", "AlertDecision"),
    "AlertSeverity": ("nephrowatch.services.alerting.rules", "AlertSeverity"),
    "AlertType": ("nephrowatch.services.alerting.rules", "AlertType"),
    "ThresholdLevels": ("nephrowatch.services.alerting.rules", "ThresholdLevels"),
    "DEFAULT_RULES": ("nephrowatch.services.alerting.evaluators", "DEFAULT_RULES"),
    "MetricRule": ("nephrowatch.services.alerting.evaluators", "MetricRule"),
    "DEFAULT_THRESHOLDS": ("nephrowatch.services.alerting.resolver", "DEFAULT_THRESHOLDS"),
    "ThresholdResolver": ("nephrowatch.services.alerting.resolver", "ThresholdResolver"),
    "ensure_default_thresholds": (
        "nephrowatch.services.alerting.resolver",
        "ensure_default_thresholds",
    ),
    "AlertEngine": ("nephrowatch.services.alerting.engine", "AlertEngine"),
}


def __getattr__(name: str):
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)
