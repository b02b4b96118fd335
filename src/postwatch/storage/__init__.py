"""Record persistence over key-value stores."""

from postwatch.storage.records import RecordStore, iter_keys

__all__ = ["RecordStore", "iter_keys"]
