from __future__ import annotations

import copy
from typing import Any

from addon_reconciler.core.exceptions import ApplyError, ResourceNotFoundError
from addon_reconciler.core.kubernetes.kubernetes_client import BaseClusterClient


class FakeClusterClient(BaseClusterClient):
    """In-memory cluster keyed by (kind, namespace, name) that records every mutating call."""

    def __init__(self, objects: list[dict[str, Any]] | None = None) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.fail_on: dict[tuple[str, str], Exception] = {}

        for obj in objects or []:
            self.objects[(obj["kind"], obj["metadata"]["namespace"], obj["metadata"]["name"])] = copy.deepcopy(obj)

    def _maybe_fail(self, operation: str, kind: str) -> None:
        if (operation, kind) in self.fail_on:
            raise self.fail_on[(operation, kind)]

    def apply(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> bool:
        self._maybe_fail("apply", kind)

        if self.objects.get((kind, namespace, name)) == body:
            return False

        self.calls.append(("apply", kind, namespace, name))
        self.objects[(kind, namespace, name)] = copy.deepcopy(body)
        return True

    def list(self, kind: str, namespace: str, label_selector: str | None = None) -> list[dict[str, Any]]:
        self._maybe_fail("list", kind)

        selector = dict(x.split("=", 1) for x in label_selector.split(",")) if label_selector else {}

        return [
            copy.deepcopy(obj)
            for (obj_kind, obj_namespace, _), obj in sorted(self.objects.items())
            if obj_kind == kind and obj_namespace == namespace
            and all((obj["metadata"].get("labels") or {}).get(k) == v for k, v in selector.items())
        ]

    def delete(self, kind: str, namespace: str, name: str) -> None:
        self._maybe_fail("delete", kind)

        if (kind, namespace, name) not in self.objects:
            raise ResourceNotFoundError(f"{kind} {namespace}/{name} not found", kind=kind, namespace=namespace,
                                        name=name, status=404)

        self.calls.append(("delete", kind, namespace, name))
        del self.objects[(kind, namespace, name)]

    def mutating_calls(self) -> list[tuple[str, str, str, str]]:
        return list(self.calls)


def heapster_deployment(name: str = "heapster", namespace: str = "kube-system") -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": {"chart": "heapster-0.1.1", "origin": "gardener"},
        },
    }


def api_error(message: str = "connection refused") -> ApplyError:
    return ApplyError(message, status=500)
