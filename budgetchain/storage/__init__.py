"""Mini README: Persistence layer for finance records.

``base`` defines the narrow ``RecordStore`` interface the workflows depend on
(create, get, find by equality, conditional update). ``memory`` provides the
in-process implementation used by the service and the test-suite; a document
database adapter only has to implement the same four methods.
"""

from .base import RecordStore
from .memory import InMemoryRecordStore

__all__ = ["InMemoryRecordStore", "RecordStore"]
