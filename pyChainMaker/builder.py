"""Build a chain from a leaf certificate up to a self-signed root by walking a pool.

Matching is purely structural: a certificate's issuer bytes are looked up as a subject in the pool. Signatures,
validity periods, key usage and authority key identifiers are never consulted, so a chain produced here still has to
be validated before it can be trusted.
"""

from pyChainMaker import guard
from pyChainMaker.logs import get_logger
from pyChainMaker.models import ChainResult, ChainStatus, PoolCertificate
from pyChainMaker.pool import CertPool

logger = get_logger(__name__)


def build_chain(pool: CertPool, leaf: PoolCertificate) -> ChainResult:
    """Walk from `leaf` towards a root, one issuer at a time.

    When several certificates in the pool share the wanted subject (cross-signed or re-issued intermediates), the one
    added to the pool first is used. Only one path is ever followed; a dead end is not retried with another candidate.

    Args:
        pool (CertPool): The certificates to search for issuers.
        leaf (PoolCertificate): The certificate to start from.

    Raises:
        TypeError: If the pool or the leaf are not what the walk needs.

    Returns:
        ChainResult: The chain, leaf first, and whether it is complete, incomplete or stopped on a loop.

    """
    guard.pool_is_cert_pool(pool)
    guard.leaf_is_certificate(leaf)

    result = ChainResult(chain=[leaf])
    visited = {leaf.raw}

    if leaf.is_self_signed:
        logger.debug(f"Leaf is self-signed: {leaf.subject_text}")
        result.status = ChainStatus.COMPLETE
        return result

    current = leaf
    while True:
        logger.debug(f"Looking for the issuer of: {current.subject_text}")
        candidates = pool.find_by_subject(current.issuer)
        if not candidates:
            logger.debug(f"No issuer found for: {current.subject_text} (issuer {current.issuer_text})")
            result.status = ChainStatus.INCOMPLETE
            return result

        if len(candidates) > 1:
            logger.debug(f"{len(candidates)} certificates match {current.issuer_text}, using the first one loaded")

        candidate = candidates[0]
        if candidate.raw in visited:
            logger.warning(f"Certificate loop detected at: {candidate.subject_text}")
            result.status = ChainStatus.CYCLE_DETECTED
            return result

        logger.debug(f"Found chain cert: {candidate.subject_text}")
        result.chain.append(candidate)
        visited.add(candidate.raw)

        if candidate.is_self_signed:
            logger.debug(f"Found the root CA: {candidate.subject_text}")
            result.status = ChainStatus.COMPLETE
            return result

        current = candidate
