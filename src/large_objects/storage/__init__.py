from .base import ObjectInfo, ObjectStore
from .memory import MemoryStore
from .swift import SwiftConfig, SwiftDestination, SwiftStore

__all__ = [
    "ObjectInfo",
    "ObjectStore",
    "MemoryStore",
    "SwiftConfig",
    "SwiftDestination",
    "SwiftStore",
]
