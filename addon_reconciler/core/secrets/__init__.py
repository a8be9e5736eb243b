from addon_reconciler.core.secrets.checksum import compute_checksums, compute_secret_checksum
from addon_reconciler.core.secrets.secret_config import (
    CertificateSecretConfig,
    CertificateType,
    KubeconfigSecretConfig,
    SecretConfig,
    VPNTLSAuthSecretConfig,
)
from addon_reconciler.core.secrets.secrets_manager import SecretBundle, SecretsManager, default_secret_configs

__all__ = [
    'CertificateSecretConfig',
    'CertificateType',
    'KubeconfigSecretConfig',
    'SecretBundle',
    'SecretConfig',
    'SecretsManager',
    'VPNTLSAuthSecretConfig',
    'compute_checksums',
    'compute_secret_checksum',
    'default_secret_configs',
]
