import ipaddress
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderType(StrEnum):
    AWS = 'aws'
    AZURE = 'azure'
    GCP = 'gcp'
    OPENSTACK = 'openstack'
    ALICLOUD = 'alicloud'
    LOCAL = 'local'


class ClusterNetworks(BaseModel):
    model_config = ConfigDict(frozen=True)

    pods: str = Field(default='100.96.0.0/11')
    services: str = Field(default='100.64.0.0/13')
    nodes: str = Field(default='10.250.0.0/16')

    @field_validator('pods', 'services', 'nodes')
    @classmethod
    def _validate_cidr(cls, value: str) -> str:
        try:
            ipaddress.ip_network(value, strict=False)
        except ValueError as e:
            raise ValueError(f'Invalid network range: {value}') from e

        return value


class KubeProxyConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    feature_gates: dict[str, bool] | None = Field(default=None)


class AddonToggle(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False)


class NginxIngressAddon(AddonToggle):
    load_balancer_source_ranges: list[str] = Field(default_factory=list)


class KubeLegoAddon(AddonToggle):
    email: str | None = Field(default=None)


class Kube2IAMRole(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    policy: str


class Kube2IAMAddon(AddonToggle):
    roles: list[Kube2IAMRole] = Field(default_factory=list)


class KubernetesDashboardAddon(AddonToggle):
    authentication_mode: str | None = Field(default=None)


class ClusterAutoscalerAddon(AddonToggle):
    pass


class ClusterAddons(BaseModel):
    model_config = ConfigDict(frozen=True)

    nginx_ingress: NginxIngressAddon = Field(default_factory=NginxIngressAddon)
    kube_lego: KubeLegoAddon = Field(default_factory=KubeLegoAddon)
    kube2iam: Kube2IAMAddon = Field(default_factory=Kube2IAMAddon)
    kubernetes_dashboard: KubernetesDashboardAddon = Field(default_factory=KubernetesDashboardAddon)
    cluster_autoscaler: ClusterAutoscalerAddon = Field(default_factory=ClusterAutoscalerAddon)
    helm_tiller: AddonToggle = Field(default_factory=AddonToggle)
    monocular: AddonToggle = Field(default_factory=AddonToggle)


class ClusterSpecification(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=r'^[a-z0-9-]+$')
    provider: ProviderType
    region: str | None = Field(default=None)
    kubernetes_version: str
    api_server_url: str | None = Field(default=None)
    networks: ClusterNetworks = Field(default_factory=ClusterNetworks)
    kube_proxy: KubeProxyConfig | None = Field(default=None)
    addons: ClusterAddons = Field(default_factory=ClusterAddons)
    used_as_seed: bool = Field(default=False)
    # Provider specific settings, e.g. {'nodeRoleARN': ...} for aws
    provider_config: dict[str, Any] = Field(default_factory=dict)

    @field_validator('kubernetes_version')
    @classmethod
    def _strip_version_prefix(cls, value: str) -> str:
        return value.removeprefix('v')

    @property
    def nginx_ingress_enabled(self) -> bool:
        return self.addons.nginx_ingress.enabled

    @property
    def kube2iam_enabled(self) -> bool:
        return self.addons.kube2iam.enabled
