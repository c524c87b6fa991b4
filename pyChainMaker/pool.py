"""An in-memory, append-only pool of certificates indexed for issuer lookups.

The pool knows nothing about files or encodings: the collaborator in `pyChainMaker.ops` decodes certificates and
hands them over one at a time. Lookups are by exact subject bytes (and by subject key identifier, when the certificate
carries one), so their cost is proportional to the number of certificates sharing a subject, not to the pool size.

Usage:
-----

>>> pool = CertPool()
>>> pool.add(intermediate)
>>> pool.add(root)
>>> pool.find_by_subject(leaf.issuer)
[PoolCertificate(...)]

"""

from collections.abc import Callable, Iterator
from typing import TypeVar

from pyChainMaker.logs import get_logger
from pyChainMaker.models import PoolCertificate

logger = get_logger(__name__)

T = TypeVar("T")


class CertPool:
    """A set of certificates, kept in insertion order.

    Insertion order matters: when several certificates share a subject, lookups return them in the order they were
    added and the chain builder takes the first one.
    """

    def __init__(self):
        self.certificates: list[PoolCertificate] = []
        self.by_subject: dict[bytes, list[int]] = {}
        self.by_key_id: dict[bytes, list[int]] = {}

    def __len__(self) -> int:
        return len(self.certificates)

    def __iter__(self) -> Iterator[PoolCertificate]:
        return iter(self.certificates)

    def contains(self, cert: PoolCertificate) -> bool:
        """Whether a certificate with the same encoding is already in the pool.

        Only certificates sharing the subject are compared, not the whole pool.
        """
        return any(self.certificates[i].raw == cert.raw for i in self.by_subject.get(cert.subject, []))

    def add(self, cert: PoolCertificate) -> None:
        """Add a certificate to the pool. Adding a certificate that is already present does nothing.

        Args:
            cert (PoolCertificate): The certificate to add.

        Raises:
            TypeError: If cert is None.

        """
        if cert is None:
            raise TypeError("Cannot add None to a CertPool")

        if self.contains(cert):
            logger.debug(f"Skipping duplicate certificate: {cert.subject_text}")
            return

        n = len(self.certificates)
        self.certificates.append(cert)

        if cert.subject_key_id:
            self.by_key_id.setdefault(cert.subject_key_id, []).append(n)

        self.by_subject.setdefault(cert.subject, []).append(n)

    def find_by_subject(self, subject: bytes) -> list[PoolCertificate]:
        """Return every certificate whose encoded subject equals `subject`, in insertion order.

        Args:
            subject (bytes): The DER encoded distinguished name to look for.

        Returns:
            list[PoolCertificate]: The matching certificates, or an empty list.

        """
        return [self.certificates[i] for i in self.by_subject.get(subject, [])]

    def find_by_key_id(self, key_id: bytes) -> list[PoolCertificate]:
        """Return every certificate carrying the subject key identifier `key_id`, in insertion order."""
        return [self.certificates[i] for i in self.by_key_id.get(key_id, [])]

    def subjects(self) -> list[bytes]:
        """Return the DER encoded subjects of all the certificates in the pool."""
        return [c.subject for c in self.certificates]

    def walk(self, visit: Callable[[PoolCertificate], T | None]) -> T | None:
        """Run `visit` on each certificate in insertion order.

        The walk stops as soon as `visit` returns something other than None, and that value is handed back to the
        caller.

        Args:
            visit (Callable[[PoolCertificate], T | None]): The function to call for each certificate.

        Returns:
            T | None: The value that stopped the walk, or None if every certificate was visited.

        """
        for c in self.certificates:
            signal = visit(c)
            if signal is not None:
                return signal

        return None
