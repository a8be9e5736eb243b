import pytest
from pydantic import ValidationError

from addon_reconciler.core.kubernetes import ClusterSpecification, ProviderType


class TestClusterSpecification:
    def test_defaults(self, spec):
        assert spec.provider == ProviderType.ALICLOUD
        assert spec.networks.pods == "100.96.0.0/11"
        assert spec.networks.services == "100.64.0.0/13"
        assert spec.networks.nodes == "10.250.0.0/16"
        assert not spec.nginx_ingress_enabled
        assert not spec.kube2iam_enabled
        assert not spec.used_as_seed

    def test_version_prefix_is_stripped(self, spec_factory):
        assert spec_factory(kubernetes_version="v1.10.5").kubernetes_version == "1.10.5"

    def test_invalid_network(self, spec_factory):
        with pytest.raises(ValidationError, match="Invalid network range: 10.0.0.0/33"):
            spec_factory(networks={"pods": "10.0.0.0/33"})

    def test_invalid_name(self, spec_factory):
        with pytest.raises(ValidationError):
            spec_factory(name="My_Shoot")

    def test_unknown_provider(self, spec_factory):
        with pytest.raises(ValidationError):
            spec_factory(provider="vsphere")

    def test_is_frozen(self, spec):
        with pytest.raises(ValidationError):
            spec.used_as_seed = True

    def test_addon_flags(self):
        spec = ClusterSpecification(
            name="seed",
            provider="aws",
            kubernetes_version="1.11.0",
            addons={"nginx_ingress": {"enabled": True}, "kube2iam": {"enabled": True}},
        )

        assert spec.nginx_ingress_enabled
        assert spec.kube2iam_enabled
