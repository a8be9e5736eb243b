from __future__ import annotations

import datetime
import ipaddress
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

import yaml
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from addon_reconciler.core.config import CERTIFICATE_VALIDITY_DAYS
from addon_reconciler.core.exceptions import SecretGenerationError
from addon_reconciler.core.utils import b64encode

DATA_KEY_CERTIFICATE_CA = 'ca.crt'
DATA_KEY_PRIVATE_KEY_CA = 'ca.key'
DATA_KEY_CERTIFICATE = 'tls.crt'
DATA_KEY_PRIVATE_KEY = 'tls.key'
DATA_KEY_KUBECONFIG = 'kubeconfig'
DATA_KEY_VPN_TLS_AUTH = 'vpn.tlsauth'


class CertificateType(StrEnum):
    CA = 'ca'
    SERVER = 'server'
    CLIENT = 'client'
    SERVER_CLIENT = 'server-client'


@dataclass(frozen=True)
class CertificateAuthority:
    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey

    @property
    def certificate_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @classmethod
    def from_secret_data(cls, name: str, data: Mapping[str, bytes]) -> CertificateAuthority:
        try:
            return cls(
                certificate=x509.load_pem_x509_certificate(data[DATA_KEY_CERTIFICATE_CA]),
                private_key=serialization.load_pem_private_key(data[DATA_KEY_PRIVATE_KEY_CA], password=None),
            )
        except KeyError as e:
            raise SecretGenerationError(f"Secret '{name}' is not a certificate authority, missing key {e}") from e
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SecretGenerationError(f"Secret '{name}' contains an invalid certificate authority: {e}") from e


class SecretConfig(ABC):
    name: str

    # Names of certificate authorities that must be available before this secret can be generated
    @property
    def signing_authorities(self) -> tuple[str, ...]:
        return ()

    @abstractmethod
    def generate(self, authorities: Mapping[str, CertificateAuthority]) -> dict[str, bytes]: ...


@dataclass(frozen=True)
class CertificateSecretConfig(SecretConfig):
    name: str
    common_name: str
    cert_type: CertificateType
    signing_ca: str | None = None
    organization: tuple[str, ...] = ()
    dns_names: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    key_size: int = 2048
    validity_days: int = CERTIFICATE_VALIDITY_DAYS

    @property
    def signing_authorities(self) -> tuple[str, ...]:
        return (self.signing_ca,) if self.signing_ca else ()

    def _subject(self) -> x509.Name:
        attributes = [x509.NameAttribute(NameOID.COMMON_NAME, self.common_name)]
        attributes += [x509.NameAttribute(NameOID.ORGANIZATION_NAME, org) for org in self.organization]

        return x509.Name(attributes)

    def _build_certificate(
        self, authorities: Mapping[str, CertificateAuthority]
    ) -> tuple[x509.Certificate, rsa.RSAPrivateKey, CertificateAuthority | None]:
        if self.cert_type != CertificateType.CA and self.signing_ca is None:
            raise SecretGenerationError(f"Certificate '{self.name}' of type {self.cert_type} requires a signing CA")

        signer = None
        if self.signing_ca is not None:
            signer = authorities.get(self.signing_ca)
            if signer is None:
                raise SecretGenerationError(
                    f"Signing CA '{self.signing_ca}' for certificate '{self.name}' is not available"
                )

        try:
            private_key = rsa.generate_private_key(public_exponent=65537, key_size=self.key_size)
        except ValueError as e:
            raise SecretGenerationError(f"Failed to generate private key for '{self.name}': {e}") from e

        subject = self._subject()
        now = datetime.datetime.now(datetime.UTC)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(signer.certificate.subject if signer else subject)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(minutes=5))
            .not_valid_after(now + datetime.timedelta(days=self.validity_days))
        )

        if self.cert_type == CertificateType.CA:
            builder = builder.add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            key_usage = x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True, crl_sign=True,
                encipher_only=False, decipher_only=False,
            )
        else:
            builder = builder.add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            key_usage = x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=True,
                data_encipherment=False, key_agreement=False, key_cert_sign=False, crl_sign=False,
                encipher_only=False, decipher_only=False,
            )

            usages = []
            if self.cert_type in (CertificateType.SERVER, CertificateType.SERVER_CLIENT):
                usages.append(ExtendedKeyUsageOID.SERVER_AUTH)
            if self.cert_type in (CertificateType.CLIENT, CertificateType.SERVER_CLIENT):
                usages.append(ExtendedKeyUsageOID.CLIENT_AUTH)
            builder = builder.add_extension(x509.ExtendedKeyUsage(usages), critical=False)

        builder = builder.add_extension(key_usage, critical=True)

        alt_names: list[x509.GeneralName] = [x509.DNSName(x) for x in self.dns_names]
        try:
            alt_names += [x509.IPAddress(ipaddress.ip_address(x)) for x in self.ip_addresses]
        except ValueError as e:
            raise SecretGenerationError(f"Invalid IP address for certificate '{self.name}': {e}") from e
        if alt_names:
            builder = builder.add_extension(x509.SubjectAlternativeName(alt_names), critical=False)

        signing_key = signer.private_key if signer else private_key
        try:
            certificate = builder.sign(private_key=signing_key, algorithm=hashes.SHA256())
        except (ValueError, TypeError) as e:
            raise SecretGenerationError(f"Failed to sign certificate '{self.name}': {e}") from e

        return certificate, private_key, signer

    def generate(self, authorities: Mapping[str, CertificateAuthority]) -> dict[str, bytes]:
        certificate, private_key, signer = self._build_certificate(authorities)

        certificate_pem = certificate.public_bytes(serialization.Encoding.PEM)
        private_key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )

        if self.cert_type == CertificateType.CA:
            return {DATA_KEY_CERTIFICATE_CA: certificate_pem, DATA_KEY_PRIVATE_KEY_CA: private_key_pem}

        return {
            DATA_KEY_CERTIFICATE_CA: signer.certificate_pem,
            DATA_KEY_CERTIFICATE: certificate_pem,
            DATA_KEY_PRIVATE_KEY: private_key_pem,
        }


@dataclass(frozen=True)
class KubeconfigSecretConfig(CertificateSecretConfig):
    api_server_url: str = 'https://kube-apiserver'
    context_name: str = 'shoot'

    def generate(self, authorities: Mapping[str, CertificateAuthority]) -> dict[str, bytes]:
        data = super().generate(authorities)

        kubeconfig = {
            'apiVersion': 'v1',
            'kind': 'Config',
            'current-context': self.context_name,
            'clusters': [{
                'name': self.context_name,
                'cluster': {
                    'server': self.api_server_url,
                    'certificate-authority-data': b64encode(data[DATA_KEY_CERTIFICATE_CA]),
                },
            }],
            'contexts': [{
                'name': self.context_name,
                'context': {'cluster': self.context_name, 'user': self.common_name},
            }],
            'users': [{
                'name': self.common_name,
                'user': {
                    'client-certificate-data': b64encode(data[DATA_KEY_CERTIFICATE]),
                    'client-key-data': b64encode(data[DATA_KEY_PRIVATE_KEY]),
                },
            }],
        }

        data[DATA_KEY_KUBECONFIG] = yaml.safe_dump(kubeconfig, default_flow_style=False).encode('utf-8')

        return data


@dataclass(frozen=True)
class VPNTLSAuthSecretConfig(SecretConfig):
    name: str

    def generate(self, authorities: Mapping[str, CertificateAuthority]) -> dict[str, bytes]:
        # OpenVPN static key: 2048 bits, hex encoded, 16 bytes per line
        key = secrets.token_hex(256)
        lines = [key[i:i + 32] for i in range(0, len(key), 32)]
        content = '\n'.join([
            '-----BEGIN OpenVPN Static key V1-----',
            *lines,
            '-----END OpenVPN Static key V1-----',
            '',
        ])

        return {DATA_KEY_VPN_TLS_AUTH: content.encode('ascii')}
