from addon_reconciler.core.addons.composer import CORE_ADDON_IMAGES, OPTIONAL_ADDON_IMAGES, AddonConfigComposer
from addon_reconciler.core.addons.context import ReconciliationContext

__all__ = ['CORE_ADDON_IMAGES', 'OPTIONAL_ADDON_IMAGES', 'AddonConfigComposer', 'ReconciliationContext']
