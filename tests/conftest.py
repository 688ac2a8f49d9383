from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_controller_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's CAPP_*, KUBE_* and KUBECONFIG settings out of tests."""

    for name in list(os.environ):
        if name.startswith(("CAPP_", "KUBE_", "KUBECONFIG", "KUBERNETES_SERVICE_")):
            monkeypatch.delenv(name, raising=False)
