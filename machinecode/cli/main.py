"""MachineCode CLI: device-bound machine codes.

Entry point for the ``machinecode`` command-line tool.

Commands:
    print      : Collect and display the current machine's components.
    issue      : Print an encrypted machine code for this machine.
    check      : Verify this machine against a machine code.
    fingerprint: Print a one-way HMAC fingerprint of the components.
    keygen     : Print a fresh random key for ENCRYPTION_KEY.

Exit Codes:
    0: Success.
    1: Machine code does not match this machine.
    2: Machine code is malformed, tampered with or sealed with another key.
    3: Environment error (collection failed, no usable key).

Usage::

    export ENCRYPTION_KEY="$(machinecode keygen)"
    machinecode print --format json
    CODE="$(machinecode issue)"
    machinecode check "$CODE"
"""

from __future__ import annotations

import json
import os
import sys
from typing import NoReturn, Optional

import click

from machinecode import __version__
from machinecode.core.builder import collect_components
from machinecode.core.components.keys import key_to_str
from machinecode.core.components.registry import DeviceComponents
from machinecode.core.components.serialization import to_document, to_text
from machinecode.core.config import MachineCodeConfig
from machinecode.core.crypto.aes_gcm import AesGcmCipher
from machinecode.core.crypto.digest import DigestAlgorithm, fingerprint
from machinecode.core.crypto.envelope import ENCRYPTION_KEY_ENV, generate_key_text
from machinecode.core.device.device_lock import DeviceLock, VerificationMismatch
from machinecode.core.exceptions import (
    AuthenticationError,
    CollectionError,
    DecodeError,
    KeyMaterialError,
    UnknownKeyError,
)
from machinecode.core.logging import get_secure_logger
from machinecode.plugins.command import CommandRunner
from machinecode.plugins.host import HostProbe

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_MALFORMED = 2
EXIT_ENVIRONMENT = 3

_FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)

_KEY_OPTION = click.option(
    "--key",
    default=None,
    help=f"Encryption key (defaults to ${ENCRYPTION_KEY_ENV}).",
)


def _collect(config: MachineCodeConfig) -> DeviceComponents:
    """Run the default collection pass with configured probe timeouts."""
    timeout = config.probes.command_timeout_seconds
    return collect_components(
        host=HostProbe(runner=CommandRunner(timeout)),
        command_runner=lambda: CommandRunner(timeout),
    )


def _fail(message: str, exit_code: int) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(exit_code)


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """MachineCode: bind encrypted machine codes to the machine that issued them."""
    try:
        config = MachineCodeConfig.load()
    except ValueError as e:
        _fail(f"Invalid configuration: {e}", EXIT_ENVIRONMENT)
    if config.logging.enable_file:
        try:
            config.ensure_log_directory()
        except OSError as e:
            _fail(f"Cannot create log directory: {e}", EXIT_ENVIRONMENT)
    logger = get_secure_logger(
        "machinecode",
        log_dir=config.paths.log_dir,
        level=config.logging.level,
        enable_console=config.logging.enable_console,
        enable_file=config.logging.enable_file,
        enable_json=config.logging.json_format,
        max_file_size=config.logging.max_file_size_bytes,
        backup_count=config.logging.backup_count,
    )
    ctx.obj = {"config": config, "logger": logger}


@cli.command("print")
@_FORMAT_OPTION
@click.pass_context
def print_command(ctx: click.Context, output_format: str) -> None:
    """Collect and display this machine's components."""
    try:
        components = _collect(ctx.obj["config"])
    except CollectionError as e:
        _fail(str(e), EXIT_ENVIRONMENT)

    if output_format == "json":
        click.echo(json.dumps(to_document(components), indent=2, ensure_ascii=False))
    else:
        click.echo(to_text(components))


@cli.command("issue")
@_KEY_OPTION
@click.option(
    "--ephemeral",
    is_flag=True,
    help="Generate a throwaway key if none is configured (printed to stderr).",
)
@click.pass_context
def issue_command(ctx: click.Context, key: Optional[str], ephemeral: bool) -> None:
    """Print an encrypted machine code for this machine."""
    config: MachineCodeConfig = ctx.obj["config"]
    logger = ctx.obj["logger"]
    allow_ephemeral = ephemeral or config.envelope.allow_ephemeral

    generated: Optional[str] = None
    if allow_ephemeral and key is None and not os.environ.get(ENCRYPTION_KEY_ENV):
        generated = generate_key_text()
        key = generated

    try:
        lock = DeviceLock.from_environment(key=key, collect=lambda: _collect(config))
        code = lock.issue()
    except (CollectionError, KeyMaterialError) as e:
        _fail(str(e), EXIT_ENVIRONMENT)

    if generated is not None:
        click.echo(
            f"Generated ephemeral key (set {ENCRYPTION_KEY_ENV} to check this code): {generated}",
            err=True,
        )
    logger.info("Issued machine code")
    click.echo(code)


@cli.command("check")
@click.argument("code")
@_KEY_OPTION
@_FORMAT_OPTION
@click.pass_context
def check_command(
    ctx: click.Context,
    code: str,
    key: Optional[str],
    output_format: str,
) -> None:
    """Verify this machine against CODE."""
    config: MachineCodeConfig = ctx.obj["config"]
    logger = ctx.obj["logger"]

    try:
        lock = DeviceLock.from_environment(key=key, collect=lambda: _collect(config))
        verified = lock.check(code)
    except VerificationMismatch as e:
        logger.warning("Machine code check failed for %d component(s)", len(e.mismatches))
        if output_format == "json":
            click.echo(json.dumps({
                "verified": False,
                "mismatches": [
                    {"component": key_to_str(m.key), "reason": m.reason.value}
                    for m in e.mismatches
                ],
            }, indent=2))
        else:
            click.echo("MISMATCH")
            for mismatch in e.mismatches:
                click.echo(f"  {mismatch}")
        sys.exit(EXIT_MISMATCH)
    except (DecodeError, UnknownKeyError, AuthenticationError) as e:
        _fail(str(e), EXIT_MALFORMED)
    except (CollectionError, KeyMaterialError) as e:
        _fail(str(e), EXIT_ENVIRONMENT)

    logger.info("Machine code verified")
    if output_format == "json":
        click.echo(json.dumps({
            "verified": True,
            "components": [key_to_str(k) for k in verified.issued],
        }, indent=2))
    else:
        click.echo(f"VERIFIED ({len(verified.issued)} components)")


@cli.command("fingerprint")
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in DigestAlgorithm]),
    default=DigestAlgorithm.SHA256.value,
    show_default=True,
    help="HMAC digest algorithm.",
)
@click.pass_context
def fingerprint_command(ctx: click.Context, algorithm: str) -> None:
    """Print a one-way HMAC fingerprint of this machine's components."""
    try:
        components = _collect(ctx.obj["config"])
    except CollectionError as e:
        _fail(str(e), EXIT_ENVIRONMENT)
    click.echo(fingerprint(components, DigestAlgorithm(algorithm)))


@cli.command("keygen")
def keygen_command() -> None:
    """Print a fresh random key suitable for ENCRYPTION_KEY."""
    key = generate_key_text()
    AesGcmCipher.validate_key_size(len(key.encode("utf-8")))
    click.echo(key)
