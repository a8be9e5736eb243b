from addon_reconciler.core.kubernetes.configuration import ProviderType
from addon_reconciler.core.providers.base_provider import BaseProvider


# Local clusters run without cloud integration, every generator falls back to the empty configuration
class LocalProvider(BaseProvider):
    name = ProviderType.LOCAL
