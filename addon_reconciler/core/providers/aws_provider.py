from typing import Any, override

from addon_reconciler.core.kubernetes.configuration import ClusterSpecification, ProviderType
from addon_reconciler.core.providers.base_provider import BaseProvider
from addon_reconciler.core.utils import generate_addon_config


class AWSProvider(BaseProvider):
    name = ProviderType.AWS

    @override
    def generate_nginx_ingress_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        # ELBs forward with proxy protocol so the controller sees client addresses
        values = {
            'controller': {
                'config': {
                    'use-proxy-protocol': 'true',
                },
                'service': {
                    'annotations': {
                        'service.beta.kubernetes.io/aws-load-balancer-proxy-protocol': '*',
                    },
                },
            },
        }

        return generate_addon_config(values, spec.nginx_ingress_enabled)

    @override
    def generate_kube2iam_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        if not spec.kube2iam_enabled:
            return generate_addon_config(None, False)

        values: dict[str, Any] = {
            'roles': [
                {
                    'name': role.name,
                    'description': role.description or '',
                    'policy': role.policy,
                }
                for role in spec.addons.kube2iam.roles
            ],
        }

        if node_role_arn := spec.provider_config.get('nodeRoleARN'):
            values['nodeRoleARN'] = node_role_arn
        if account_id := spec.provider_config.get('accountID'):
            values['accountID'] = account_id

        return generate_addon_config(values, True)

    @override
    def generate_admission_control_config(self, spec: ClusterSpecification) -> dict[str, Any]:
        return {
            'storageClasses': [
                self.storage_class('default', 'kubernetes.io/aws-ebs', {'type': 'gp2'}, is_default=True),
                self.storage_class('gp2', 'kubernetes.io/aws-ebs', {'type': 'gp2'}),
                self.storage_class('io1', 'kubernetes.io/aws-ebs', {'type': 'io1', 'iopsPerGB': '10'}),
            ],
        }
