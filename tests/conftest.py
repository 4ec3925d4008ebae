from __future__ import annotations

import pytest

from pygsfs import FileSystemRegistry
from pygsfs.testing import InMemoryObjectStore


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def registry(store):
    return FileSystemRegistry(client=store)


@pytest.fixture
def fs(registry, store):
    store.create_bucket("b")
    return registry.get_file_system("b")
