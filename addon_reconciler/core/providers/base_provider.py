from __future__ import annotations

from abc import ABC
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from addon_reconciler.core.exceptions import ConfigCompositionError
from addon_reconciler.core.utils import setup_logger

if TYPE_CHECKING:
    from addon_reconciler.core.kubernetes import CloudProfile, ClusterSpecification, ProviderType


class ProviderOperation(StrEnum):
    NGINX_INGRESS = 'generate_nginx_ingress_config'
    KUBE2IAM = 'generate_kube2iam_config'
    ADMISSION_CONTROL = 'generate_admission_control_config'


class BaseProvider(ABC):
    """Provider specific configuration generators.

    Every operation in ``ProviderOperation`` has a default implementation returning an empty
    configuration, so providers only override what they actually support.
    """

    name: ProviderType

    def __init__(self, cloud_profile: CloudProfile | None = None) -> None:
        self._logger = setup_logger(self.name.capitalize())
        self._cloud_profile = cloud_profile

    def generate_nginx_ingress_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return {}

    def generate_kube2iam_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return {}

    def generate_admission_control_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return {}

    def supports(self, operation: ProviderOperation) -> bool:
        return getattr(type(self), operation.value) is not getattr(BaseProvider, operation.value)

    def dispatch(self, operation: ProviderOperation, spec: ClusterSpecification) -> dict[str, Any]:
        if not self.supports(operation):
            self._logger.debug(f'{operation} is not supported by provider {self.name}, using empty configuration')

        result = getattr(self, operation.value)(spec)

        if not isinstance(result, dict):
            raise ConfigCompositionError(
                f'Provider {self.name} returned {type(result).__name__} for {operation}, expected a mapping'
            )

        return result

    @staticmethod
    def storage_class(name: str, provisioner: str, parameters: dict[str, str], is_default: bool = False) -> dict:
        return {
            'name': name,
            'isDefaultClass': is_default,
            'provisioner': provisioner,
            'parameters': parameters,
        }
