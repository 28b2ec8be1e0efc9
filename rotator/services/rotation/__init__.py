from .compression import compress_gzip
from .retention import enforce_retention, list_rotated_siblings
from .rotation_engine import RotationEngine, RotationTrigger, evaluate_rotation
from .rotation_strategies import (
    CopyTruncateRotationStrategy,
    RenameRotationStrategy,
    RotationResult,
    RotationStrategy,
    RotationStrategyFactory,
)

__all__ = [
    "compress_gzip",
    "enforce_retention",
    "list_rotated_siblings",
    "RotationEngine",
    "RotationTrigger",
    "evaluate_rotation",
    "CopyTruncateRotationStrategy",
    "RenameRotationStrategy",
    "RotationResult",
    "RotationStrategy",
    "RotationStrategyFactory",
]
