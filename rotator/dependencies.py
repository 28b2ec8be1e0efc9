from functools import lru_cache
from typing import Any, Dict

from .config import Settings, load_rotator_config
from .models import RotatorConfig
from .services.budget.budget_tracker import BudgetTracker
from .services.budget.eviction_sweeper import EvictionSweeper
from .services.discovery.file_discovery_service import FileDiscoveryService
from .services.journal import Journal
from .services.metrics import PrometheusMetrics
from .services.policy.policy_resolver import PolicyResolver
from .services.rotation.rotation_engine import RotationEngine
from .services.rotation.rotation_strategies import RotationStrategyFactory
from .services.rotator_service import RotatorService
from .services.task_pool import BackgroundTaskPool

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Hent Settings singleton instance."""
    return Settings()


def get_rotator_config() -> RotatorConfig:
    if "rotator_config" not in _singletons:
        _singletons["rotator_config"] = load_rotator_config(get_settings().config_path)
    return _singletons["rotator_config"]


def get_metrics() -> PrometheusMetrics:
    if "metrics" not in _singletons:
        _singletons["metrics"] = PrometheusMetrics()
    return _singletons["metrics"]


def get_task_pool() -> BackgroundTaskPool:
    if "task_pool" not in _singletons:
        _singletons["task_pool"] = BackgroundTaskPool()
    return _singletons["task_pool"]


def get_journal() -> Journal:
    if "journal" not in _singletons:
        journal = Journal(get_settings().journal_path)
        journal.load()
        _singletons["journal"] = journal
    return _singletons["journal"]


def get_budget_tracker() -> BudgetTracker:
    if "budget_tracker" not in _singletons:
        config = get_rotator_config()
        _singletons["budget_tracker"] = BudgetTracker(config.defaults.budgets.per_namespace_bytes)
    return _singletons["budget_tracker"]


def get_eviction_sweeper() -> EvictionSweeper:
    if "eviction_sweeper" not in _singletons:
        config = get_rotator_config()
        _singletons["eviction_sweeper"] = EvictionSweeper(
            root=config.defaults.discovery.path,
            limit_bytes=config.defaults.budgets.per_namespace_bytes,
            task_pool=get_task_pool(),
        )
    return _singletons["eviction_sweeper"]


def get_discovery_service() -> FileDiscoveryService:
    if "discovery_service" not in _singletons:
        config = get_rotator_config()
        _singletons["discovery_service"] = FileDiscoveryService(
            config.defaults.discovery, config.overrides, metrics=get_metrics()
        )
    return _singletons["discovery_service"]


def get_policy_resolver() -> PolicyResolver:
    if "policy_resolver" not in _singletons:
        _singletons["policy_resolver"] = PolicyResolver(get_rotator_config(), get_metrics())
    return _singletons["policy_resolver"]


def get_rotation_engine() -> RotationEngine:
    if "rotation_engine" not in _singletons:
        settings = get_settings()
        _singletons["rotation_engine"] = RotationEngine(
            strategy_factory=RotationStrategyFactory(chunk_size=settings.copy_chunk_size_kb * 1024),
            journal=get_journal(),
            budget_tracker=get_budget_tracker(),
            eviction_sweeper=get_eviction_sweeper(),
            task_pool=get_task_pool(),
            metrics=get_metrics(),
        )
    return _singletons["rotation_engine"]


def get_rotator_service() -> RotatorService:
    if "rotator_service" not in _singletons:
        _singletons["rotator_service"] = RotatorService(
            discovery_service=get_discovery_service(),
            policy_resolver=get_policy_resolver(),
            rotation_engine=get_rotation_engine(),
            scan_interval_seconds=get_settings().scan_interval_seconds,
            metrics=get_metrics(),
        )
    return _singletons["rotator_service"]


def reset_singletons() -> None:
    global _singletons
    _singletons.clear()
    get_settings.cache_clear()
