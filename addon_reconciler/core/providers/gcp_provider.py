from typing import Any, override

from addon_reconciler.core.kubernetes.configuration import ClusterSpecification, ProviderType
from addon_reconciler.core.providers.base_provider import BaseProvider
from addon_reconciler.core.utils import generate_addon_config


class GCPProvider(BaseProvider):
    name = ProviderType.GCP

    @override
    def generate_nginx_ingress_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return generate_addon_config(None, spec.nginx_ingress_enabled)

    @override
    def generate_admission_control_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return {
            'storageClasses': [
                self.storage_class('default', 'kubernetes.io/gce-pd', {'type': 'pd-standard'}, is_default=True),
                self.storage_class('standard', 'kubernetes.io/gce-pd', {'type': 'pd-standard'}),
                self.storage_class('ssd', 'kubernetes.io/gce-pd', {'type': 'pd-ssd'}),
            ],
        }
