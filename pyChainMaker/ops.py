"""Operations that feed the pool and serialize chains: decoding, file loading and PEM output.

All of the I/O of the package lives here. The pool and the chain builder only ever see `PoolCertificate` objects.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from pathlib import Path

import certifi
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from pyChainMaker.logs import get_logger
from pyChainMaker.models import PoolCertificate
from pyChainMaker.pool import CertPool

logger = get_logger(__name__)

SYSTEM_CERT_FILE = Path("/etc/ssl/cert.pem")
DEFAULT_SUFFIXES = (".pem", ".crt")
PEM_CERTIFICATE_LABEL = "CERTIFICATE"

_PEM_BLOCK = re.compile(rb"-----BEGIN ([^-\r\n]+)-----\r?\n((?:(?!-----BEGIN ).)*?)-----END \1-----", re.DOTALL)


@dataclass
class PemBlock:
    """A single decoded PEM block."""

    label: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)


def split_pem_blocks(data: bytes) -> list[PemBlock]:
    """Split PEM data into its blocks, whatever their label.

    Text outside of the BEGIN/END markers is ignored. Blocks whose base64 body cannot be decoded are skipped.

    Args:
        data (bytes): The PEM data, possibly holding many blocks.

    Returns:
        list[PemBlock]: The blocks, in the order they appear in the data.

    """
    blocks = []
    for match in _PEM_BLOCK.finditer(data):
        label = match.group(1).decode("ascii", errors="replace").strip()
        lines = match.group(2).splitlines()

        headers = {}
        if lines and b":" in lines[0]:
            while lines and lines[0].strip():
                key, _, value = lines.pop(0).decode("ascii", errors="replace").partition(":")
                headers[key.strip()] = value.strip()

        try:
            body = base64.b64decode(b"".join(line.strip() for line in lines), validate=True)
        except binascii.Error as err:
            logger.debug(f"Skipping PEM block ({label}) with a malformed body: {err}")
            continue

        blocks.append(PemBlock(label=label, body=body, headers=headers))

    return blocks


def from_certificate(cert: x509.Certificate) -> PoolCertificate:
    """Reduce a parsed certificate to the fields the pool indexes on.

    Raises:
        ValueError: If the certificate has a malformed extension.

    """
    try:
        key_id = cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value.digest
    except x509.ExtensionNotFound:
        key_id = None

    return PoolCertificate(
        raw=cert.public_bytes(Encoding.DER),
        subject=cert.subject.public_bytes(),
        issuer=cert.issuer.public_bytes(),
        subject_text=cert.subject.rfc4514_string(),
        issuer_text=cert.issuer.rfc4514_string(),
        subject_key_id=key_id,
        certificate=cert,
    )


def certificate_from_der(der: bytes) -> PoolCertificate:
    """Parse a DER encoded certificate.

    Raises:
        ValueError: If the bytes are not a certificate.

    """
    return from_certificate(x509.load_der_x509_certificate(der))


def parse_certificate(data: bytes) -> PoolCertificate:
    """Parse a certificate from PEM or DER bytes.

    PEM is tried first, then DER.

    Args:
        data (bytes): The certificate, PEM or DER encoded.

    Raises:
        ValueError: If the bytes cannot be parsed as PEM or DER.

    Returns:
        PoolCertificate: The parsed certificate.

    """
    try:
        return from_certificate(x509.load_pem_x509_certificate(data))
    except ValueError:
        try:
            return certificate_from_der(data)
        except ValueError as err:
            raise ValueError("Failed to parse certificate as PEM or DER") from err


def load_certificates_from_pem(data: bytes) -> list[PoolCertificate]:
    """Parse every certificate found in PEM data.

    Blocks that are not labelled CERTIFICATE, that carry headers, or that do not parse are skipped.

    Args:
        data (bytes): The PEM data.

    Returns:
        list[PoolCertificate]: The certificates that could be parsed.

    """
    certs = []
    for block in split_pem_blocks(data):
        if block.label != PEM_CERTIFICATE_LABEL or block.headers:
            logger.debug(f"Skipping PEM block that is not a plain certificate: {block.label}")
            continue

        try:
            certs.append(certificate_from_der(block.body))
        except ValueError as err:
            logger.debug(f"Skipping malformed certificate: {err}")

    return certs


def append_certs_from_pem(pool: CertPool, data: bytes) -> bool:
    """Add every certificate found in PEM data to the pool.

    Args:
        pool (CertPool): The pool to add the certificates to.
        data (bytes): The PEM data.

    Returns:
        bool: Whether any certificate was successfully parsed.

    """
    ok = False
    for cert in load_certificates_from_pem(data):
        pool.add(cert)
        ok = True

    return ok


def read_file_into_pool(pool: CertPool, path: Path | str) -> bool:
    """Read a PEM file and add its certificates to the pool.

    A file that cannot be read is logged and skipped.

    Returns:
        bool: Whether any certificate was loaded from the file.

    """
    logger.debug(f"Reading certificate file: {path}")
    try:
        data = Path(path).read_bytes()
    except OSError as err:
        logger.warning(f"Unable to read certificate file {path}: {err}")
        return False

    return append_certs_from_pem(pool, data)


def load_pool_from_path(pool: CertPool, path: Path | str, suffixes: tuple[str, ...] = DEFAULT_SUFFIXES) -> int:
    """Load the certificate files found under a path into the pool.

    Files are read in sorted order so that, when several certificates share a subject, the chain picked does not
    depend on the order the file system lists them in.

    Args:
        pool (CertPool): The pool to add the certificates to.
        path (Path | str): A certificate file, or a folder searched recursively.
        suffixes (tuple[str, ...], optional): The file suffixes to load from a folder. Defaults to .pem and .crt.

    Returns:
        int: The number of files that were read.

    """
    fp = Path(path)
    if fp.is_file():
        read_file_into_pool(pool, fp)
        return 1

    if not fp.is_dir():
        logger.warning(f"Certificate path {fp} does not exist")
        return 0

    logger.debug(f"Loading certificates from path {fp}")
    files = sorted(f for f in fp.rglob("*") if f.suffix in suffixes and f.is_file())
    for file in files:
        read_file_into_pool(pool, file)

    return len(files)


def load_system_certs(pool: CertPool, path: Path = SYSTEM_CERT_FILE) -> bool:
    """Load the system wide CA bundle into the pool, if there is one.

    Returns:
        bool: Whether any certificate was loaded.

    """
    if not path.exists():
        logger.debug(f"No system certificate bundle at {path}")
        return False

    logger.debug(f"Loading system ca-certificates {path}")
    return read_file_into_pool(pool, path)


def load_certifi_certs(pool: CertPool) -> bool:
    """Load the certificates shipped with the certifi package (the Mozilla defaults) into the pool."""
    logger.debug("Loading certificates from certifi")
    return append_certs_from_pem(pool, certifi.contents().encode())


def read_leaf(path: Path | str) -> PoolCertificate:
    """Read the certificate a chain will be built for.

    A PEM file must start with a plain CERTIFICATE block; later blocks are ignored. Files without PEM markers are
    parsed as DER.

    Args:
        path (Path | str): The certificate file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file does not hold a certificate.

    Returns:
        PoolCertificate: The leaf certificate.

    """
    data = Path(path).read_bytes()
    if b"-----BEGIN" not in data:
        return parse_certificate(data)

    blocks = split_pem_blocks(data)
    if not blocks:
        raise ValueError(f"Unable to read certificate file ({path})")

    block = blocks[0]
    if block.label != PEM_CERTIFICATE_LABEL or block.headers:
        raise ValueError(f"Supplied file ({path}) is not a PEM encoded certificate")

    return certificate_from_der(block.body)


def encode_pem(cert: PoolCertificate) -> bytes:
    """Encode a certificate as a PEM CERTIFICATE block, 64 characters per line.

    The parsed certificate encodes itself when it is available; otherwise the raw DER is framed by hand.
    """
    if cert.certificate is not None:
        return cert.certificate.public_bytes(Encoding.PEM)

    b64 = base64.b64encode(cert.raw).decode("ascii")
    lines = [b64[i : i + 64] for i in range(0, len(b64), 64)]
    return ("-----BEGIN CERTIFICATE-----\n" + "\n".join(lines) + "\n-----END CERTIFICATE-----\n").encode("ascii")


def encode_chain(chain: list[PoolCertificate]) -> bytes:
    """Encode a chain as concatenated PEM blocks, in chain order."""
    return b"".join(encode_pem(cert) for cert in chain)
