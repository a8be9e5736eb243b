from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from addon_reconciler.core.image_vector import ImageVector
    from addon_reconciler.core.kubernetes import CloudProfile, ClusterSpecification
    from addon_reconciler.core.providers import BaseProvider
    from addon_reconciler.core.secrets import SecretBundle


@dataclass(frozen=True)
class ReconciliationContext:
    """Everything one reconciliation cycle works with. Built once per cycle and discarded afterwards."""

    spec: ClusterSpecification
    secrets: SecretBundle
    provider: BaseProvider
    image_vector: ImageVector
    namespace: str
    cloud_profile: CloudProfile | None = None

    @property
    def checksums(self) -> Mapping[str, str]:
        return self.secrets.checksums

    @property
    def runtime_version(self) -> str:
        return self.spec.kubernetes_version
