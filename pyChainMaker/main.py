"""The main entry point to the chain maker.

Users should create a `ChainMaker`, telling it where candidate certificates live, and call `.make_chain()` with the
path to a leaf certificate. The result holds the chain (leaf first) and whether it reached a self-signed root.
"""

from pathlib import Path

import rich

from pyChainMaker import guard, ops
from pyChainMaker.builder import build_chain
from pyChainMaker.logs import get_logger
from pyChainMaker.models import ChainResult, PoolCertificate
from pyChainMaker.pool import CertPool

logger = get_logger(__name__)

# Changing any of these means the cached pool no longer matches the sources.
_POOL_SOURCES = {"ca_path", "system_certs", "certifi_certs", "suffixes", "system_cert_file"}


class ChainMaker:
    """Build certificate chains from a leaf up to a root using certificates found on disk.

    The pool of candidate issuers is loaded once and reused for every chain until one of its sources changes. Sources
    are loaded in a fixed order: the system bundle, then the certifi bundle, then the files under `ca_path` in sorted
    order. When several certificates share a subject the first one loaded is used, so this order decides the chain.

    Usage:
    -----

    >>> r = ChainMaker(ca_path="~/certs").make_chain("server.pem")
    >>> rich.print(r)
    ChainResult(
        Status=<ChainStatus.COMPLETE: 'complete'>,
        Chain=['CN=server.example.com', 'CN=Example Intermediate', 'CN=Example Root']
    )

    """

    def __init__(
        self,
        ca_path: Path | str = ".",
        system_certs: bool = True,
        certifi_certs: bool = False,
        suffixes: tuple[str, ...] = ops.DEFAULT_SUFFIXES,
        system_cert_file: Path = ops.SYSTEM_CERT_FILE,
    ):
        """Create a new instance of the ChainMaker.

        Args:
            ca_path (Path | str, optional): A certificate file, or a folder searched recursively for certificate
            files. Defaults to the current folder.

            system_certs (bool, optional): Whether to load the system CA bundle. Defaults to True.

            certifi_certs (bool, optional): Whether to load the Mozilla CA bundle shipped with certifi.
            Defaults to False.

            suffixes (tuple[str, ...], optional): The suffixes of the files to load from `ca_path`.
            Defaults to `.pem` and `.crt`.

            system_cert_file (Path, optional): Where the system CA bundle lives. Defaults to `/etc/ssl/cert.pem`.

        """
        guard.all_suffixes_are_valid(suffixes)

        self._pool: CertPool | None = None

        self.ca_path: Path = Path(ca_path)
        self.system_certs: bool = system_certs
        self.certifi_certs: bool = certifi_certs
        self.suffixes: tuple[str, ...] = tuple(suffixes)
        self.system_cert_file: Path = system_cert_file

    def get_pool(self) -> CertPool:
        """Return the pool of candidate issuers, loading it on first use.

        Returns:
            CertPool: The loaded pool.

        """
        if self._pool is not None:
            logger.debug("Returning cached certificate pool")
            return self._pool

        logger.debug("Loading certificate pool")
        pool = CertPool()

        if self.system_certs:
            ops.load_system_certs(pool, self.system_cert_file)

        if self.certifi_certs:
            ops.load_certifi_certs(pool)

        ops.load_pool_from_path(pool, self.ca_path, suffixes=self.suffixes)
        logger.debug(f"Certificate pool holds {len(pool)} certificate(s)")

        self._pool = pool
        return self._pool

    def get_leaf(self, leaf_path: Path | str) -> PoolCertificate:
        """Read the certificate a chain will be built for.

        Raises:
            LookupError: If the file cannot be read or does not hold a certificate.

        """
        try:
            return ops.read_leaf(leaf_path)
        except (OSError, ValueError) as err:
            raise LookupError(f"Problem reading the leaf certificate from {leaf_path}.") from err

    def make_chain(self, leaf_path: Path | str) -> ChainResult:
        """Build the chain for the certificate stored at `leaf_path`.

        Args:
            leaf_path (Path | str): The leaf certificate, PEM or DER encoded.

        Raises:
            LookupError: If the leaf certificate could not be read.

        Returns:
            ChainResult: The chain, leaf first, and how the walk ended.

        """
        leaf = self.get_leaf(leaf_path)
        logger.debug(f"Building chain for {leaf.subject_text}")
        return build_chain(self.get_pool(), leaf)

    def __setattr__(self, name, value):
        """Intercept updates to the certificate sources since the pool is cached."""
        if name in _POOL_SOURCES:
            logger.debug("Clearing cached certificate pool")
            self._pool = None
        super(ChainMaker, self).__setattr__(name, value)


if __name__ == "__main__":
    maker = ChainMaker(ca_path=".", certifi_certs=True)
    r = maker.make_chain("cert.pem")
    rich.print(r)
