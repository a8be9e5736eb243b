from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from addon_reconciler.core.addons import generic
from addon_reconciler.core.exceptions import ConfigCompositionError
from addon_reconciler.core.providers import ProviderOperation
from addon_reconciler.core.secrets.secret_config import (
    DATA_KEY_CERTIFICATE_CA,
    DATA_KEY_KUBECONFIG,
    DATA_KEY_VPN_TLS_AUTH,
)
from addon_reconciler.core.secrets.secrets_manager import OPENVPN_DIFFIE_HELLMAN_SECRET
from addon_reconciler.core.utils import b64encode, compute_cluster_ip, merge_maps, setup_logger

if TYPE_CHECKING:
    from addon_reconciler.core.addons.context import ReconciliationContext
    from addon_reconciler.core.kubernetes import ClusterSpecification

CLUSTER_DOMAIN = 'cluster.local'

# Addon -> {images key: image vector name}
CORE_ADDON_IMAGES = {
    'calico': {'calico-node': 'calico-node', 'calico-cni': 'calico-cni', 'calico-typha': 'calico-typha'},
    'kube-dns': {
        'kube-dns': 'kube-dns',
        'kube-dns-dnsmasq': 'kube-dns-dnsmasq',
        'kube-dns-sidecar': 'kube-dns-sidecar',
        'kube-dns-autoscaler': 'cluster-proportional-autoscaler',
    },
    'kube-proxy': {'hyperkube': 'hyperkube'},
    'metrics-server': {'metrics-server': 'metrics-server'},
    'vpn-shoot': {'vpn-shoot': 'vpn-shoot'},
    'node-exporter': {'node-exporter': 'node-exporter'},
}

OPTIONAL_ADDON_IMAGES = {
    'helm-tiller': {'helm-tiller': 'helm-tiller'},
    'kube-lego': {'kube-lego': 'kube-lego'},
    'kube2iam': {'kube2iam': 'kube2iam'},
    'kubernetes-dashboard': {'kubernetes-dashboard': 'kubernetes-dashboard'},
    'monocular': {'monocular-api': 'monocular-api', 'monocular-ui': 'monocular-ui', 'busybox': 'busybox'},
    'nginx-ingress': {
        'nginx-ingress-controller': 'nginx-ingress-controller',
        'ingress-default-backend': 'ingress-default-backend',
    },
}

_GENERIC_OPTIONAL_ADDONS: dict[str, Callable[[ClusterSpecification], dict[str, Any]]] = {
    'cluster-autoscaler': generic.generate_cluster_autoscaler_config,
    'helm-tiller': generic.generate_helm_tiller_config,
    'kube-lego': generic.generate_kube_lego_config,
    'kubernetes-dashboard': generic.generate_kubernetes_dashboard_config,
    'monocular': generic.generate_monocular_config,
}

SEED_INGRESS_RESOURCES = {
    'limits': {
        'cpu': '500m',
        'memory': '1024Mi',
    },
}


def checksum_annotation(secret_name: str) -> str:
    return f'checksum/secret-{secret_name}'


class AddonConfigComposer:
    def __init__(self, context: ReconciliationContext) -> None:
        self._logger = setup_logger('AddonConfigComposer')
        self._context = context
        self._spec = context.spec
        self._secrets = context.secrets

    def _secret_text(self, secret_name: str, key: str) -> str:
        try:
            return self._secrets.get_value(secret_name, key).decode('utf-8')
        except UnicodeDecodeError as e:
            msg = f"Data key '{key}' of secret '{secret_name}' is not valid UTF-8"
            self._logger.exception(msg, exc_info=False)
            raise ConfigCompositionError(msg) from e

    def _pod_annotations(self, *secret_names: str) -> dict[str, Any]:
        checksums = self._context.checksums

        return {'podAnnotations': {checksum_annotation(name): checksums[name] for name in secret_names}}

    def compose_global(self) -> dict[str, Any]:
        return {'podNetwork': self._spec.networks.pods}

    def compose_calico(self) -> dict[str, Any]:
        return {'cloudProvider': str(self._spec.provider)}

    def compose_kube_dns(self) -> dict[str, Any]:
        try:
            cluster_dns = compute_cluster_ip(self._spec.networks.services, 10)
        except ValueError as e:
            raise ConfigCompositionError(f'Cannot compute cluster DNS address: {e}') from e

        return {
            'clusterDNS': cluster_dns,
            'domain': CLUSTER_DOMAIN,
        }

    def compose_kube_proxy(self) -> dict[str, Any]:
        config = {
            'kubeconfig': self._secret_text('kube-proxy', DATA_KEY_KUBECONFIG),
            **self._pod_annotations('kube-proxy'),
        }

        if self._spec.kube_proxy is not None and self._spec.kube_proxy.feature_gates is not None:
            config['featureGates'] = dict(sorted(self._spec.kube_proxy.feature_gates.items()))

        return config

    def compose_metrics_server(self) -> dict[str, Any]:
        return {
            'tls': {
                'caBundle': self._secret_text('ca-metrics-server', DATA_KEY_CERTIFICATE_CA),
            },
            'secret': {
                'data': {key: self._secret_text('metrics-server', key) for key in self._secrets['metrics-server']},
            },
            **self._pod_annotations('metrics-server'),
        }

    def compose_vpn_shoot(self) -> dict[str, Any]:
        config = {
            'podNetwork': self._spec.networks.pods,
            'serviceNetwork': self._spec.networks.services,
            'nodeNetwork': self._spec.networks.nodes,
            'tlsAuth': self._secret_text('vpn-seed-tlsauth', DATA_KEY_VPN_TLS_AUTH),
            **self._pod_annotations('vpn-shoot'),
        }

        if OPENVPN_DIFFIE_HELLMAN_SECRET in self._secrets:
            config['diffieHellmanKey'] = self._secret_text(OPENVPN_DIFFIE_HELLMAN_SECRET, 'dh2048.pem')

        return config

    def compose_node_exporter(self) -> dict[str, Any]:
        return {}

    def compose_core(self) -> dict[str, dict[str, Any]]:
        self._logger.debug(f'Composing core addon configuration for cluster {self._spec.name}')

        return {
            'global': self.compose_global(),
            'calico': self.compose_calico(),
            'kube-dns': self.compose_kube_dns(),
            'kube-proxy': self.compose_kube_proxy(),
            'metrics-server': self.compose_metrics_server(),
            'vpn-shoot': self.compose_vpn_shoot(),
            'node-exporter': self.compose_node_exporter(),
        }

    def vpn_shoot_secret(self) -> dict[str, Any]:
        return {
            'apiVersion': 'v1',
            'kind': 'Secret',
            'metadata': {
                'name': 'vpn-shoot',
                'namespace': self._context.namespace,
            },
            'type': 'Opaque',
            'data': {
                key: b64encode(value) for key, value in sorted(self._secrets['vpn-shoot'].items())
            },
        }

    def compose_nginx_ingress(self) -> dict[str, Any]:
        config = self._context.provider.dispatch(ProviderOperation.NGINX_INGRESS, self._spec)

        if not self._spec.nginx_ingress_enabled:
            return config

        config = merge_maps(config, {
            'controller': {
                'service': {
                    'loadBalancerSourceRanges': list(self._spec.addons.nginx_ingress.load_balancer_source_ranges),
                },
            },
        })

        if self._spec.used_as_seed:
            config = merge_maps(config, {'controller': {'resources': SEED_INGRESS_RESOURCES}})

        return config

    def compose_kube2iam(self) -> dict[str, Any]:
        return self._context.provider.dispatch(ProviderOperation.KUBE2IAM, self._spec)

    def compose_optional(self) -> dict[str, dict[str, Any]]:
        self._logger.debug(f'Composing optional addon configuration for cluster {self._spec.name}')

        configs = {name: generator(self._spec) for name, generator in _GENERIC_OPTIONAL_ADDONS.items()}
        configs['kube2iam'] = self.compose_kube2iam()
        configs['nginx-ingress'] = self.compose_nginx_ingress()

        return dict(sorted(configs.items()))

    def compose_admission_controls(self) -> dict[str, Any]:
        return self._context.provider.dispatch(ProviderOperation.ADMISSION_CONTROL, self._spec)
