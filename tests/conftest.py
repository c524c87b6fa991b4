"""Shared fixtures: throwaway certificates built with cryptography."""

import datetime
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from pyChainMaker import ops
from pyChainMaker.models import PoolCertificate


@pytest.fixture(scope="session")
def signing_key():
    # Signatures are never checked, so one key can sign everything.
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def make_cert(signing_key):
    """Return a function building a certificate for `subject`, issued by `issuer` (self-signed when omitted)."""

    def _make(subject: str, issuer: str | None = None, key_id: bytes | None = None) -> PoolCertificate:
        now = datetime.datetime.now(datetime.timezone.utc)
        builder = (
            x509.CertificateBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject)]))
            .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer or subject)]))
            .public_key(signing_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(days=1))
            .not_valid_after(now + datetime.timedelta(days=365))
        )
        if key_id:
            builder = builder.add_extension(x509.SubjectKeyIdentifier(key_id), critical=False)

        return ops.from_certificate(builder.sign(signing_key, hashes.SHA256()))

    return _make


@pytest.fixture
def root(make_cert):
    return make_cert("Test Root")


@pytest.fixture
def intermediate(make_cert):
    return make_cert("Test Intermediate", issuer="Test Root")


@pytest.fixture
def leaf(make_cert):
    return make_cert("leaf.example.com", issuer="Test Intermediate")


@pytest.fixture
def write_pem():
    """Return a function writing certificates to a PEM file."""

    def _write(path: Path, *certs: PoolCertificate) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(ops.encode_chain(list(certs)))
        return path

    return _write
