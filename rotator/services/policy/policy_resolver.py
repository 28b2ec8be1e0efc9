import logging
from typing import Optional

from rotator.models import PolicyConfig, RotatorConfig
from rotator.services.metrics import MetricsSink, NullMetrics
from rotator.utils.file_operations import to_slash
from rotator.utils.glob_match import path_match

_POLICY_FIELDS = tuple(PolicyConfig.model_fields)


def merge_policy(base: PolicyConfig, override: Optional[PolicyConfig]) -> PolicyConfig:
    """
    Return a new policy with every non-zero field of ``override`` applied.

    Zero values (0, empty duration, unset technique) leave the base value.
    """
    if override is None:
        return base

    updates = {}
    for field_name in _POLICY_FIELDS:
        value = getattr(override, field_name)
        if value:
            updates[field_name] = value

    if not updates:
        return base
    return base.model_copy(update=updates)


class PolicyResolver:
    """Cascades defaults -> namespace override -> first matching path override."""

    def __init__(self, config: RotatorConfig, metrics: Optional[MetricsSink] = None):
        self.config = config
        self._metrics = metrics or NullMetrics()

    def effective_policy(self, namespace: str, full_path: str) -> PolicyConfig:
        effective = self.config.defaults.policy

        namespace_override = self.config.overrides.namespaces.get(namespace)
        if namespace_override is not None and namespace_override.policy is not None:
            effective = merge_policy(effective, namespace_override.policy)
            self._metrics.record_override_applied("namespace")

        path = to_slash(full_path)
        for path_override in self.config.overrides.paths:
            if path_override.policy is None:
                continue
            if path_match(path_override.match, path):
                effective = merge_policy(effective, path_override.policy)
                self._metrics.record_override_applied("path")
                logging.debug(f"Path override {path_override.match} applied to {full_path}")
                break

        return effective
