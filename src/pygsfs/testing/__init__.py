from .memory_client import InMemoryObjectStore, MemoryCopyWriter, StoreOp

__all__ = ["InMemoryObjectStore", "MemoryCopyWriter", "StoreOp"]
