from .domain_objects import DiscoveredFile
from .file_discovery_service import FileDiscoveryService

__all__ = [
    "DiscoveredFile",
    "FileDiscoveryService",
]
