"""Guard conditions."""

from pyChainMaker.models import PoolCertificate
from pyChainMaker.pool import CertPool


def leaf_is_certificate(leaf) -> None:
    """Raise a TypeError if the leaf handed to the chain builder is not a parsed certificate.

    Args:
        leaf: The value to check.

    """
    if not isinstance(leaf, PoolCertificate):
        raise TypeError(f"A chain can only be built from a PoolCertificate, not {type(leaf).__name__}.")


def pool_is_cert_pool(pool) -> None:
    """Raise a TypeError if the pool handed to the chain builder is not a CertPool."""
    if not isinstance(pool, CertPool):
        raise TypeError(f"A chain can only be built from a CertPool, not {type(pool).__name__}.")


def all_suffixes_are_valid(suffixes: list[str] | tuple[str, ...]) -> None:
    """Raise a ValueError if any file suffix does not look like `.ext`.

    Args:
        suffixes (list[str]): The suffixes used to pick certificate files out of a folder.

    """
    for s in suffixes:
        if not s.startswith(".") or len(s) < 2:
            raise ValueError(f"{s} is not a valid file suffix, suffixes must look like '.pem'.")
