from addon_reconciler.core.kubernetes.cloud_profile import CloudProfile
from addon_reconciler.core.kubernetes.configuration import ClusterAddons, ClusterNetworks, ClusterSpecification, ProviderType
from addon_reconciler.core.kubernetes.kubernetes_client import BaseClusterClient, KubernetesClient

__all__ = [
    'BaseClusterClient',
    'CloudProfile',
    'ClusterAddons',
    'ClusterNetworks',
    'ClusterSpecification',
    'KubernetesClient',
    'ProviderType',
]
