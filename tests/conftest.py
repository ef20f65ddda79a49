import pytest

from cephdfs import CephConfig, CephFileSystem, MemoryBackend


@pytest.fixture
def backend():
    return MemoryBackend(block_size=1024)


@pytest.fixture
def fs(backend):
    return CephFileSystem(backend, CephConfig(uri="ceph://mon1:6789", user="alice"))
