"""The command line interface to the package."""

import logging
from pathlib import Path
from typing import Annotated

import rich.padding
import typer
from rich.console import Console
from rich.padding import Padding
from typer import Typer

from pyChainMaker import config, logs, ops
from pyChainMaker.main import ChainMaker
from pyChainMaker.models import ChainResult, ChainStatus, PoolCertificate

app = Typer(help="Make a certificate chain from a single certificate.")

# Messages go to stderr, stdout is reserved for the chain itself.
err_console = Console(stderr=True)

LEAF_ERROR_EXIT_CODE = 4

LeafArgument = Annotated[Path, typer.Argument(help="The PEM (or DER) encoded certificate to build the chain for.")]
CaPathOption = Annotated[
    str,
    typer.Option(
        "--ca-path",
        "-c",
        envvar="CA_PATH",
        help="A certificate file, or a folder searched recursively for certificate files. Defaults to '.'.",
    ),
]
DebugOption = Annotated[bool, typer.Option("--debug", "-d", envvar="DEBUG", help="Debug output.")]
OutputOption = Annotated[
    Path,
    typer.Option("--output", "-o", help="Write the chain to this file instead of standard output."),
]
ConfigOption = Annotated[
    Path,
    typer.Option("--config", help="The YAML config file to read.", show_default=str(config.DEFAULT_CONFIG_FILE)),
]
NoSystemOption = Annotated[
    bool,
    typer.Option("--no-system", help=f"Do not load the system CA bundle ({ops.SYSTEM_CERT_FILE})."),
]
CertifiOption = Annotated[
    bool,
    typer.Option("--certifi", help="Also load the Mozilla CA bundle shipped with the certifi package."),
]


def _settings(config_file: Path | None, **overrides) -> config.Settings:
    """Load the config file, apply the command line on top and set the console log level."""
    try:
        settings = config.load_settings(config_file).merge(**overrides)
    except ValueError as err:
        raise typer.BadParameter(str(err), param_hint="--config") from err

    logs.set_logger_level(logging.DEBUG if settings.debug else logging.WARNING)
    return settings


def _print_exception(err: Exception) -> None:
    exceptions = []
    while err:
        exceptions.append(err)
        err = err.__cause__
    for ex in reversed(exceptions):
        err_console.print(rich.padding.Padding(f"[bold]- {type(ex).__name__}[/bold]: {ex}", (0, 0, 0, 2)))


def _write_chain(result: ChainResult, output: Path | None) -> None:
    pem = ops.encode_chain(result.chain)
    if output is None:
        typer.echo(pem.decode("ascii"), nl=False)
    else:
        output.write_bytes(pem)


def _report(result: ChainResult) -> None:
    last = result.last
    if result.status == ChainStatus.INCOMPLETE:
        err_console.print("[bold yellow]Partial chain, root CA not found")
        err_console.print(Padding(f"No issuer for [bold]{last.subject_text}[/bold]: {last.issuer_text}", (0, 0, 0, 2)))
    elif result.status == ChainStatus.CYCLE_DETECTED:
        err_console.print("[bold red]Certificate loop detected, no self-signed root reachable")
        err_console.print(
            Padding(f"The issuer of [bold]{last.subject_text}[/bold] is already in the chain", (0, 0, 0, 2))
        )


def _make(maker: ChainMaker, leaf: Path, output: Path | None) -> None:
    try:
        result = maker.make_chain(leaf)
    except LookupError as err:
        err_console.print("[bold red]Unable to read the leaf certificate")
        err_console.print(f"[i]The log file may have more info, found in {logs.OUTPUT_DIR}")
        _print_exception(err)
        raise typer.Exit(code=LEAF_ERROR_EXIT_CODE) from err

    _write_chain(result, output)
    _report(result)
    raise typer.Exit(code=result.status.exit_code)


@app.command()
def chain(
    leaf: LeafArgument,
    ca_path: CaPathOption = None,
    debug: DebugOption = False,
    no_system: NoSystemOption = False,
    certifi: CertifiOption = False,
    output: OutputOption = None,
    config_file: ConfigOption = None,
):
    """Build the chain from a certificate up to its root and print it as PEM.

    Exits with 0 when the chain reaches a self-signed root, 1 when no issuer could be found for the last certificate
    (the partial chain is still printed) and 3 when the certificates issue each other in a loop.
    """
    settings = _settings(
        config_file,
        ca_path=ca_path,
        debug=True if debug else None,
        system_certs=False if no_system else None,
        certifi_certs=True if certifi else None,
    )
    maker = ChainMaker(
        ca_path=settings.ca_dir,
        system_certs=settings.system_certs,
        certifi_certs=settings.certifi_certs,
    )
    _make(maker, leaf, output)


@app.command()
def bundle(
    leaf: LeafArgument,
    ca_path: CaPathOption = None,
    debug: DebugOption = False,
    output: OutputOption = None,
    config_file: ConfigOption = None,
):
    """Build a bundle from a certificate using only the .pem files found in the CA path.

    No system or certifi certificates are used. Exit codes are the same as for `chain`.
    """
    settings = _settings(config_file, ca_path=ca_path, debug=True if debug else None)
    maker = ChainMaker(ca_path=settings.ca_dir, system_certs=False, certifi_certs=False, suffixes=(".pem",))
    _make(maker, leaf, output)


@app.command()
def subjects(
    ca_path: CaPathOption = None,
    debug: DebugOption = False,
    no_system: NoSystemOption = False,
    certifi: CertifiOption = False,
    config_file: ConfigOption = None,
    key_id: Annotated[
        str,
        typer.Option("--key-id", "-k", help="Only list certificates with this subject key identifier (hex)."),
    ] = None,
):
    """List the certificates that would be searched for issuers, in the order they are tried."""
    try:
        wanted = bytes.fromhex(key_id.replace(":", "")) if key_id is not None else None
    except ValueError as err:
        raise typer.BadParameter(f"{key_id} is not a hex key identifier", param_hint="--key-id") from err

    settings = _settings(
        config_file,
        ca_path=ca_path,
        debug=True if debug else None,
        system_certs=False if no_system else None,
        certifi_certs=True if certifi else None,
    )
    pool = ChainMaker(
        ca_path=settings.ca_dir,
        system_certs=settings.system_certs,
        certifi_certs=settings.certifi_certs,
    ).get_pool()

    rich.print(
        f"[bold]Certificate pool[/bold] ({len(pool)} certificate(s), {len(set(pool.subjects()))} distinct subject(s))"
    )

    def show(cert: PoolCertificate) -> None:
        marker = " [i](self-signed)[/i]" if cert.is_self_signed else ""
        rich.print(Padding(f"- [bold]{cert.subject_text}[/bold]{marker}", pad=(0, 0, 0, 2)))
        if cert.subject_key_id:
            rich.print(Padding(f"key id {cert.subject_key_id.hex(':')}", pad=(0, 0, 0, 4)))

    if wanted is None:
        pool.walk(show)
        return

    matches = pool.find_by_key_id(wanted)
    if not matches:
        err_console.print(f"[bold yellow]No certificate with key id {wanted.hex(':')}")
        raise typer.Exit(code=1)
    for cert in matches:
        show(cert)


if __name__ == "__main__":
    app()
