from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from functools import cached_property
from types import MappingProxyType

from addon_reconciler.core.config import ADDON_NAMESPACE
from addon_reconciler.core.exceptions import MissingSecretError, SecretGenerationError
from addon_reconciler.core.kubernetes.configuration import ClusterSpecification
from addon_reconciler.core.secrets.checksum import compute_checksums
from addon_reconciler.core.secrets.secret_config import (
    CertificateAuthority,
    CertificateSecretConfig,
    CertificateType,
    KubeconfigSecretConfig,
    SecretConfig,
    VPNTLSAuthSecretConfig,
)
from addon_reconciler.core.utils import setup_logger

# Optional secret, only used when it was provisioned out of band
OPENVPN_DIFFIE_HELLMAN_SECRET = 'openvpn-diffie-hellman-key'


class SecretBundle(Mapping[str, Mapping[str, bytes]]):
    """Read-only view of a cluster's secrets, keyed by logical secret name."""

    def __init__(self, secrets: Mapping[str, Mapping[str, bytes]]) -> None:
        self._secrets = MappingProxyType(
            {name: MappingProxyType(dict(data)) for name, data in sorted(secrets.items())}
        )

    def __getitem__(self, name: str) -> Mapping[str, bytes]:
        try:
            return self._secrets[name]
        except KeyError:
            raise MissingSecretError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._secrets

    def get(self, name: str, default: Mapping[str, bytes] | None = None) -> Mapping[str, bytes] | None:
        return self._secrets.get(name, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._secrets)

    def __len__(self) -> int:
        return len(self._secrets)

    def __repr__(self) -> str:
        return f'SecretBundle({list(self._secrets)})'

    @cached_property
    def checksums(self) -> Mapping[str, str]:
        return MappingProxyType(compute_checksums(self._secrets))

    def get_value(self, name: str, key: str) -> bytes:
        data = self[name]

        if key not in data:
            raise MissingSecretError(name, f"Secret '{name}' has no data key '{key}'")

        return data[key]

    def with_secret(self, name: str, data: Mapping[str, bytes]) -> SecretBundle:
        return SecretBundle({**self._secrets, name: data})


class SecretsManager:
    def __init__(self, existing_secrets: Mapping[str, Mapping[str, bytes]] | None = None) -> None:
        self._logger = setup_logger('SecretsManager')
        self._existing = dict(existing_secrets or {})

    def _load_authority(self, name: str, secrets: Mapping[str, Mapping[str, bytes]]) -> CertificateAuthority:
        if name not in secrets:
            raise SecretGenerationError(f"Certificate authority '{name}' is neither existing nor declared")

        return CertificateAuthority.from_secret_data(name, secrets[name])

    def generate(self, secret_configs: Sequence[SecretConfig], required: Iterable[str] = ()) -> SecretBundle:
        for name in required:
            if name not in self._existing:
                msg = f"Secret '{name}' is expected to exist but was not found"
                self._logger.exception(msg, exc_info=False)
                raise MissingSecretError(name, msg)

        secrets: dict[str, Mapping[str, bytes]] = dict(self._existing)
        authorities: dict[str, CertificateAuthority] = {}

        # Generate in declaration order, authorities must be declared before the secrets they sign
        for secret_config in secret_configs:
            for ca_name in secret_config.signing_authorities:
                if ca_name not in authorities:
                    authorities[ca_name] = self._load_authority(ca_name, secrets)

            if secret_config.name in secrets:
                self._logger.debug(f'Reusing existing secret {secret_config.name}')
                continue

            self._logger.info(f'Generating secret {secret_config.name}')
            secrets[secret_config.name] = secret_config.generate(authorities)

        return SecretBundle(secrets)


def default_secret_configs(spec: ClusterSpecification, namespace: str = ADDON_NAMESPACE) -> list[SecretConfig]:
    api_server_url = spec.api_server_url or f'https://api.{spec.name}.internal'

    return [
        CertificateSecretConfig(name='ca', common_name='kubernetes', cert_type=CertificateType.CA),
        CertificateSecretConfig(name='ca-metrics-server', common_name='metrics-server',
                                cert_type=CertificateType.CA),
        KubeconfigSecretConfig(
            name='kube-proxy',
            common_name='system:kube-proxy',
            cert_type=CertificateType.CLIENT,
            signing_ca='ca',
            api_server_url=api_server_url,
        ),
        CertificateSecretConfig(
            name='vpn-shoot',
            common_name='vpn-shoot',
            cert_type=CertificateType.SERVER,
            signing_ca='ca',
        ),
        VPNTLSAuthSecretConfig(name='vpn-seed-tlsauth'),
        CertificateSecretConfig(
            name='metrics-server',
            common_name='metrics-server',
            cert_type=CertificateType.SERVER,
            signing_ca='ca-metrics-server',
            dns_names=(
                'metrics-server',
                f'metrics-server.{namespace}',
                f'metrics-server.{namespace}.svc',
                f'metrics-server.{namespace}.svc.cluster.local',
            ),
        ),
    ]
