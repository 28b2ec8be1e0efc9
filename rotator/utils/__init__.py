"""
Utilities package for the log rotator.

This package contains pure functions and helpers that support
the rotation engine without holding any state of their own.
"""

from .file_operations import (
    MAX_ROTATION_SUFFIX,
    depth_exceeds,
    is_rotated_sibling,
    is_within_root,
    looks_rotated,
    next_rotation_path,
    relative_parts,
    remove_quietly,
)
from .glob_match import matches_any, path_match
from .units import (
    GIB,
    KIB,
    MIB,
    format_bytes_human_readable,
    parse_byte_size,
    parse_duration,
)

__all__ = [
    # File operations
    "MAX_ROTATION_SUFFIX",
    "depth_exceeds",
    "is_rotated_sibling",
    "is_within_root",
    "looks_rotated",
    "next_rotation_path",
    "relative_parts",
    "remove_quietly",
    # Glob matching
    "matches_any",
    "path_match",
    # Units
    "GIB",
    "KIB",
    "MIB",
    "format_bytes_human_readable",
    "parse_byte_size",
    "parse_duration",
]
