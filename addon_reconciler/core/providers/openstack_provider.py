from typing import Any, override

from addon_reconciler.core.kubernetes.configuration import ClusterSpecification, ProviderType
from addon_reconciler.core.providers.base_provider import BaseProvider
from addon_reconciler.core.utils import generate_addon_config


class OpenStackProvider(BaseProvider):
    name = ProviderType.OPENSTACK

    @override
    def generate_nginx_ingress_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return generate_addon_config(None, spec.nginx_ingress_enabled)

    @override
    def generate_admission_control_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        parameters = {}

        if availability := spec.provider_config.get('availability') or spec.region:
            parameters['availability'] = availability

        return {
            'storageClasses': [
                self.storage_class('default', 'kubernetes.io/cinder', parameters, is_default=True),
            ],
        }
