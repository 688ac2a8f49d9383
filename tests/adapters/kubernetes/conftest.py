"""Shared fixtures for Kubernetes adapter tests."""

from __future__ import annotations

import pytest

from capp_placement.adapters.kubernetes import KubernetesClient
from tests.helpers.kubernetes import FakeCustomObjectsApi, FakeWatch, make_client


@pytest.fixture
def custom_objects() -> FakeCustomObjectsApi:
    return FakeCustomObjectsApi()


@pytest.fixture
def fake_watch() -> FakeWatch:
    return FakeWatch()


@pytest.fixture
def kube_client(custom_objects: FakeCustomObjectsApi, fake_watch: FakeWatch) -> KubernetesClient:
    return make_client(custom_objects, fake_watch)
