from typing import Any

from addon_reconciler.core.kubernetes.configuration import ClusterSpecification
from addon_reconciler.core.utils import generate_addon_config


def generate_cluster_autoscaler_config(spec: ClusterSpecification) -> dict[str, Any]:
    return generate_addon_config(None, spec.addons.cluster_autoscaler.enabled)


def generate_helm_tiller_config(spec: ClusterSpecification) -> dict[str, Any]:
    return generate_addon_config(None, spec.addons.helm_tiller.enabled)


def generate_kube_lego_config(spec: ClusterSpecification) -> dict[str, Any]:
    kube_lego = spec.addons.kube_lego
    values = {'config': {'LEGO_EMAIL': kube_lego.email}} if kube_lego.email else None

    return generate_addon_config(values, kube_lego.enabled)


def generate_kubernetes_dashboard_config(spec: ClusterSpecification) -> dict[str, Any]:
    dashboard = spec.addons.kubernetes_dashboard
    values = {'authenticationMode': dashboard.authentication_mode} if dashboard.authentication_mode else None

    return generate_addon_config(values, dashboard.enabled)


def generate_monocular_config(spec: ClusterSpecification) -> dict[str, Any]:
    return generate_addon_config(None, spec.addons.monocular.enabled)
