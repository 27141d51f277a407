"""kubedrift command-line entry point.

Exit codes for ``kubedrift diff``:
    0 -- nothing would change
    1 -- objects would be created or drifted
    2 -- one or more errors were collected (the partial report is still printed)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TextIO

import click

from kubedrift import __version__
from kubedrift.config import load_config
from kubedrift.diff.orchestrator import run_diff
from kubedrift.errors import KubeDriftError
from kubedrift.inventory.store import load_inventory
from kubedrift.manager.base import ResourceManager
from kubedrift.manager.kubernetes import KubernetesResourceManager
from kubedrift.manifests.reader import read_objects
from kubedrift.models.inventory import Inventory
from kubedrift.models.objects import DesiredObject
from kubedrift.observability.logging import bind_run, get_logger, setup_logging

EXIT_CHANGES = 1
EXIT_ERRORS = 2


async def _diff(
    objects: Sequence[DesiredObject],
    manager: ResourceManager,
    old_inventory: Inventory | None,
    prune: bool,
    timeout: float,
    color: bool,
) -> tuple[str, bool, list[KubeDriftError]]:
    try:
        return await run_diff(
            objects,
            manager,
            old_inventory=old_inventory,
            prune=prune,
            timeout=timeout,
            color=color,
        )
    finally:
        await manager.close()


@click.group()
@click.version_option(__version__, prog_name="kubedrift")
def cli() -> None:
    """Preview what applying rendered manifests would change in a cluster."""


@cli.command()
@click.argument("manifests", type=click.File("r", encoding="utf-8"))
@click.option(
    "--inventory",
    "inventory_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Kustomization YAML (or bare entries file) holding the last applied inventory.",
)
@click.option("--prune/--no-prune", default=None, help="Report objects that would be garbage collected.")
@click.option("--timeout", type=click.FloatRange(min=1.0), default=None, help="Deadline for the whole pass, in seconds.")
@click.option("--color/--no-color", default=None, help="Colorize action lines.")
@click.option("--kubeconfig", default=None, help="Path to a kubeconfig file.")
@click.option("--context", "kube_context", default=None, help="Kubeconfig context to use.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
)
@click.pass_context
def diff(
    ctx: click.Context,
    manifests: TextIO,
    inventory_path: str | None,
    prune: bool | None,
    timeout: float | None,
    color: bool | None,
    kubeconfig: str | None,
    kube_context: str | None,
    log_level: str | None,
) -> None:
    """Diff rendered MANIFESTS (a file, or - for stdin) against the cluster."""
    config = load_config()
    if prune is not None:
        config.diff.prune = prune
    if timeout is not None:
        config.diff.timeout_seconds = timeout
    if color is not None:
        config.diff.color = color
    if kubeconfig is not None:
        config.kubernetes.kubeconfig = kubeconfig
    if kube_context is not None:
        config.kubernetes.context = kube_context
    if log_level is not None:
        config.log.level = log_level.lower()

    setup_logging(config.log.level)
    log = get_logger("cli")

    try:
        objects = read_objects(manifests)
        old_inventory = load_inventory(inventory_path) if inventory_path else None
    except (KubeDriftError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    bind_run(objects=len(objects), timeout=config.diff.timeout_seconds, prune=config.diff.prune)
    log.info("diff_started")

    manager = KubernetesResourceManager(config.kubernetes)
    text, changed, errors = asyncio.run(
        _diff(
            objects,
            manager,
            old_inventory,
            config.diff.prune,
            config.diff.timeout_seconds,
            config.diff.color,
        )
    )

    click.echo(text, nl=False)
    for error in errors:
        click.echo(f"✗ {error}", err=True)

    log.info("diff_finished", changed=changed, errors=len(errors))
    if errors:
        ctx.exit(EXIT_ERRORS)
    if changed:
        ctx.exit(EXIT_CHANGES)
