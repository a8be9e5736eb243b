from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from addon_reconciler.core.exceptions import ConfigCompositionError
from addon_reconciler.core.kubernetes.configuration import ClusterSpecification, ProviderType


class VolumeType(BaseModel):
    name: str
    volume_class: str = Field(alias='class')
    zones: list[str] = Field(default_factory=list)


class MachineImage(BaseModel):
    name: str
    id: str | None = None


class CloudProfile(BaseModel):
    name: str
    provider: ProviderType
    kubernetes_versions: list[str] = Field(default_factory=list)
    machine_images: list[MachineImage] = Field(default_factory=list)
    volume_types: list[VolumeType] = Field(default_factory=list)

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> CloudProfile:
        if manifest.get('kind') != 'CloudProfile':
            raise ValueError(f"Expected a CloudProfile manifest, got kind '{manifest.get('kind')}'")

        spec = manifest.get('spec') or {}
        provider_keys = [key for key in spec if key in {x.value for x in ProviderType}]

        if len(provider_keys) != 1:
            raise ValueError(f'CloudProfile must describe exactly one provider, found: {provider_keys}')

        provider = provider_keys[0]
        constraints = spec[provider].get('constraints', {})

        return cls(
            name=manifest['metadata']['name'],
            provider=ProviderType(provider),
            kubernetes_versions=[str(x) for x in constraints.get('kubernetes', {}).get('versions', [])],
            machine_images=constraints.get('machineImages', []),
            volume_types=constraints.get('volumeTypes', []),
        )

    @classmethod
    def from_yaml(cls, path_to_yaml: Path) -> CloudProfile:
        return cls.from_manifest(yaml.safe_load(path_to_yaml.read_text()))

    def validate_specification(self, spec: ClusterSpecification) -> None:
        if spec.provider != self.provider:
            raise ConfigCompositionError(
                f"Cloud profile '{self.name}' is for provider '{self.provider}', cluster uses '{spec.provider}'"
            )

        if self.kubernetes_versions and spec.kubernetes_version not in self.kubernetes_versions:
            raise ConfigCompositionError(
                f"Kubernetes version {spec.kubernetes_version} is not offered by cloud profile '{self.name}'. "
                f'Available versions: {self.kubernetes_versions}'
            )
