import pytest

import ring_gateway
from Hash_Ring import HashRing


@pytest.fixture
def gateway_ring(monkeypatch):
    """Gives the gateway a fresh three-vnode ring for each test."""
    ring = HashRing(vnodes_per_server=3)
    monkeypatch.setattr(ring_gateway, "hash_ring", ring)
    return ring


@pytest.fixture
def gateway_client(gateway_ring):
    ring_gateway.app.config['TESTING'] = True
    with ring_gateway.app.test_client() as client:
        yield client
