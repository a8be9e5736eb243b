from typing import ClassVar

from addon_reconciler.core.exceptions import UnsupportedProviderError
from addon_reconciler.core.kubernetes.cloud_profile import CloudProfile
from addon_reconciler.core.kubernetes.configuration import ProviderType
from addon_reconciler.core.providers.alicloud_provider import AlicloudProvider
from addon_reconciler.core.providers.aws_provider import AWSProvider
from addon_reconciler.core.providers.azure_provider import AzureProvider
from addon_reconciler.core.providers.base_provider import BaseProvider
from addon_reconciler.core.providers.gcp_provider import GCPProvider
from addon_reconciler.core.providers.local_provider import LocalProvider
from addon_reconciler.core.providers.openstack_provider import OpenStackProvider


class ProviderFactory:
    _registry: ClassVar[dict[ProviderType, type[BaseProvider]]] = {
        ProviderType.AWS: AWSProvider,
        ProviderType.AZURE: AzureProvider,
        ProviderType.GCP: GCPProvider,
        ProviderType.OPENSTACK: OpenStackProvider,
        ProviderType.ALICLOUD: AlicloudProvider,
        ProviderType.LOCAL: LocalProvider,
    }

    @classmethod
    def get_provider(cls, provider_type: str, cloud_profile: CloudProfile | None = None) -> BaseProvider:
        try:
            provider_class = cls._registry[ProviderType(provider_type.lower())]
        except (KeyError, ValueError) as e:
            raise UnsupportedProviderError(f'Unknown provider: {provider_type}') from e

        return provider_class(cloud_profile)

    @classmethod
    def get_registered_providers(cls) -> list[ProviderType]:
        return list(cls._registry.keys())
