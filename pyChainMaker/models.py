"""Models used by the pool, the chain builder and the command line."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from cryptography.x509 import Certificate


class ChainStatus(StrEnum):
    """How a chain walk ended."""

    COMPLETE = auto()
    "The walk reached a self-signed certificate."

    INCOMPLETE = auto()
    """No issuer for the last certificate in the chain was found in the pool. This is not an error, but the chain
    must not be presented as if it were complete."""

    CYCLE_DETECTED = auto()
    """The next issuer was already part of the chain, for example a cross-signed pair with no self-signed root in the
    pool. The walk stops instead of looping."""

    @property
    def exit_code(self) -> int:
        """The process exit code the command line reports for this status."""
        return _EXIT_CODES[self]


_EXIT_CODES = {
    ChainStatus.COMPLETE: 0,
    ChainStatus.INCOMPLETE: 1,
    ChainStatus.CYCLE_DETECTED: 3,
}


@dataclass(frozen=True)
class PoolCertificate:
    """A certificate reduced to the fields the pool indexes on.

    Equality and hashing only consider the encoded fields; the parsed `certificate` is kept around for display.
    """

    raw: bytes
    subject: bytes
    issuer: bytes
    subject_text: str = ""
    issuer_text: str = ""
    subject_key_id: bytes | None = None
    certificate: Certificate | None = field(default=None, compare=False, repr=False)

    @property
    def is_self_signed(self) -> bool:
        """Whether the subject and issuer encodings are byte-for-byte identical."""
        return self.subject == self.issuer

    def __rich_repr__(self):  # noqa: PLW3201
        yield self.subject_text
        yield "Issuer", self.issuer_text
        yield "Self_signed", self.is_self_signed, False


@dataclass
class ChainResult:
    """The chain produced by a walk, leaf first, and how the walk ended."""

    chain: list[PoolCertificate] = field(default_factory=list)
    status: ChainStatus = ChainStatus.INCOMPLETE

    def complete(self) -> bool:
        """Whether the chain ends in a self-signed root."""
        return self.status == ChainStatus.COMPLETE

    @property
    def last(self) -> PoolCertificate | None:
        return self.chain[-1] if self.chain else None

    def __rich_repr__(self):  # noqa: PLW3201
        yield "Status", self.status
        yield "Chain", [cert.subject_text for cert in self.chain]
