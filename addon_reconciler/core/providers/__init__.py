from addon_reconciler.core.providers.base_provider import BaseProvider, ProviderOperation
from addon_reconciler.core.providers.provider_factory import ProviderFactory

__all__ = ['BaseProvider', 'ProviderFactory', 'ProviderOperation']
