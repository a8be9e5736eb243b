from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import urllib3
from kubernetes import client, config
from kubernetes.dynamic.client import DynamicClient
from kubernetes.dynamic.exceptions import DynamicApiError, NotFoundError, ResourceNotFoundError as KindNotFoundError

from addon_reconciler.core.config import REQUEST_TIMEOUT
from addon_reconciler.core.exceptions import ApplyError, ResourceNotFoundError
from addon_reconciler.core.utils import setup_logger

_KIND_API_VERSIONS = {
    'ConfigMap': 'v1',
    'Secret': 'v1',
    'Service': 'v1',
    'ServiceAccount': 'v1',
    'Deployment': 'apps/v1',
    'DaemonSet': 'apps/v1',
    'StorageClass': 'storage.k8s.io/v1',
}

# Fields owned by the API server, ignored when deciding if an object changed
_SERVER_MANAGED_METADATA = (
    'creationTimestamp', 'generation', 'managedFields', 'resourceVersion', 'selfLink', 'uid',
)


class BaseClusterClient(ABC):
    @abstractmethod
    def apply(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> bool:
        """Create or update an object. Returns False when the live object already matched ``body``."""

    @abstractmethod
    def list(self, kind: str, namespace: str, label_selector: str | None = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def delete(self, kind: str, namespace: str, name: str) -> None:
        """Delete an object. Raises ResourceNotFoundError if it does not exist."""


def strip_server_fields(obj: dict[str, Any]) -> dict[str, Any]:
    stripped = {k: v for k, v in obj.items() if k != 'status'}
    metadata = {k: v for k, v in (obj.get('metadata') or {}).items() if k not in _SERVER_MANAGED_METADATA}
    annotations = {
        k: v for k, v in (metadata.get('annotations') or {}).items()
        if k != 'kubectl.kubernetes.io/last-applied-configuration'
    }

    if annotations:
        metadata['annotations'] = annotations
    else:
        metadata.pop('annotations', None)

    stripped['metadata'] = metadata

    return stripped


def is_up_to_date(live: dict[str, Any], desired: dict[str, Any]) -> bool:
    live = strip_server_fields(live)

    for key, value in strip_server_fields(desired).items():
        if key == 'metadata':
            if any(live['metadata'].get(k) != v for k, v in value.items()):
                return False
        elif live.get(key) != value:
            return False

    return True


class KubernetesClient(BaseClusterClient):
    def __init__(self, api_client: client.ApiClient, request_timeout: int = REQUEST_TIMEOUT) -> None:
        self._logger = setup_logger('KubernetesClient')
        self._request_timeout = request_timeout
        self._dynamic = DynamicClient(api_client)

    @classmethod
    def from_kubeconfig(cls, kubeconfig_path: Path, request_timeout: int = REQUEST_TIMEOUT) -> KubernetesClient:
        return cls(config.new_client_from_config(config_file=str(kubeconfig_path)), request_timeout)

    def _resource(self, kind: str) -> Any:  # noqa: ANN401 (dynamic client resource)
        api_version = _KIND_API_VERSIONS.get(kind)

        if api_version is None:
            raise ApplyError(f'Unsupported kind: {kind}', kind=kind)

        try:
            return self._dynamic.resources.get(api_version=api_version, kind=kind)
        except KindNotFoundError as e:
            raise ApplyError(f'Kind {api_version}/{kind} is not served by the cluster', kind=kind) from e
        except (DynamicApiError, urllib3.exceptions.HTTPError) as e:
            raise ApplyError(f'Failed to discover kind {kind}: {e}', kind=kind) from e

    def apply(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> bool:
        resource = self._resource(kind)

        body = {**body, 'metadata': {**body.get('metadata', {}), 'name': name, 'namespace': namespace}}

        try:
            try:
                live = resource.get(name=name, namespace=namespace, _request_timeout=self._request_timeout)
            except NotFoundError:
                resource.create(body=body, namespace=namespace, _request_timeout=self._request_timeout)
                self._logger.info(f'{kind} {namespace}/{name} created')
                return True

            if is_up_to_date(live.to_dict(), body):
                self._logger.debug(f'{kind} {namespace}/{name} unchanged')
                return False

            body['metadata']['resourceVersion'] = live.metadata.resourceVersion
            resource.replace(body=body, namespace=namespace, _request_timeout=self._request_timeout)
            self._logger.info(f'{kind} {namespace}/{name} updated')
            return True
        except DynamicApiError as e:
            msg = f'Failed to apply {kind} {namespace}/{name}: {e.reason}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace, name=name, status=e.status) from e
        except urllib3.exceptions.HTTPError as e:
            msg = f'Failed to apply {kind} {namespace}/{name}: {e}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace, name=name) from e

    def list(self, kind: str, namespace: str, label_selector: str | None = None) -> list[dict[str, Any]]:
        resource = self._resource(kind)

        try:
            result = resource.get(namespace=namespace, label_selector=label_selector,
                                  _request_timeout=self._request_timeout)
        except DynamicApiError as e:
            msg = f'Failed to list {kind} in {namespace} ({label_selector=}): {e.reason}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace, status=e.status) from e
        except urllib3.exceptions.HTTPError as e:
            msg = f'Failed to list {kind} in {namespace} ({label_selector=}): {e}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace) from e

        return list(result.to_dict().get('items') or [])

    def delete(self, kind: str, namespace: str, name: str) -> None:
        resource = self._resource(kind)

        try:
            resource.delete(name=name, namespace=namespace, _request_timeout=self._request_timeout)
        except NotFoundError as e:
            raise ResourceNotFoundError(f'{kind} {namespace}/{name} not found', kind=kind, namespace=namespace,
                                        name=name, status=404) from e
        except DynamicApiError as e:
            msg = f'Failed to delete {kind} {namespace}/{name}: {e.reason}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace, name=name, status=e.status) from e
        except urllib3.exceptions.HTTPError as e:
            msg = f'Failed to delete {kind} {namespace}/{name}: {e}'
            self._logger.exception(msg, exc_info=False)
            raise ApplyError(msg, kind=kind, namespace=namespace, name=name) from e

        self._logger.info(f'{kind} {namespace}/{name} deleted')
