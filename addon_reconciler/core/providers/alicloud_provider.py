from typing import Any, override

from addon_reconciler.core.kubernetes.configuration import ClusterSpecification, ProviderType
from addon_reconciler.core.providers.base_provider import BaseProvider
from addon_reconciler.core.utils import generate_addon_config

_DEFAULT_VOLUME_TYPES = ('cloud_efficiency', 'cloud_ssd')


class AlicloudProvider(BaseProvider):
    name = ProviderType.ALICLOUD

    @override
    def generate_nginx_ingress_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return generate_addon_config(None, spec.nginx_ingress_enabled)

    def _volume_types(self) -> list[str]:
        if self._cloud_profile and self._cloud_profile.volume_types:
            return [x.name for x in self._cloud_profile.volume_types]

        return list(_DEFAULT_VOLUME_TYPES)

    @override
    def generate_admission_control_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        volume_types = self._volume_types()

        storage_classes = [
            self.storage_class('default', 'alicloud/disk', {'type': volume_types[0]}, is_default=True),
        ]
        storage_classes += [
            self.storage_class(volume_type.replace('_', '-'), 'alicloud/disk', {'type': volume_type})
            for volume_type in volume_types
        ]

        return {'storageClasses': storage_classes}
