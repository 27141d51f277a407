"""Change classification for a dry-run diff pass.

DiffOrchestrator walks the desired objects in rendered order, asks the
resource manager for a dry-run comparison of each, applies the encrypted
Secret override, and builds the new inventory. A failing object never stops
the pass: its error is collected and the next object is compared. Pruning
is only evaluated when every comparison succeeded.

One deadline bounds the whole pass. Once it is spent, the in-flight and
all remaining comparisons fail with DeadlineExceeded; records produced
before that point are kept.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import TextIO

import structlog

from kubedrift.errors import (
    DeadlineExceeded,
    IdentityParseError,
    KubeDriftError,
    ObjectComparisonError,
)
from kubedrift.inventory.differ import diff_inventory
from kubedrift.manager.base import DiffOptions, ManagerChange, ResourceManager
from kubedrift.models.inventory import Inventory, InventoryBuilder
from kubedrift.models.objects import Action, ChangeRecord, DesiredObject
from kubedrift.redaction.sops import SECRET_KIND, compare_secret
from kubedrift.report.renderer import render_report, write_report

_log = structlog.get_logger(component="diff.orchestrator")

DEFAULT_TIMEOUT = 80.0


@dataclass(frozen=True)
class DiffResult:
    """Immutable outcome of one diff pass."""

    records: tuple[ChangeRecord, ...] = ()
    deletions: tuple[DesiredObject, ...] = ()
    inventory: Inventory = field(default_factory=Inventory)
    errors: tuple[KubeDriftError, ...] = ()

    @property
    def created_or_drifted(self) -> bool:
        return any(r.action in (Action.CREATED, Action.CONFIGURED) for r in self.records)

    @property
    def ok(self) -> bool:
        return not self.errors


def apply_secret_override(obj: DesiredObject, record: ChangeRecord) -> ChangeRecord:
    """Reclassify a configured Secret whose payload is encrypted.

    The record keeps its action when no override applies. Otherwise its
    live/merged documents are replaced by masked copies and the action is
    downgraded to unchanged if the key sets match.
    """
    if obj.kind != SECRET_KIND or record.action is not Action.CONFIGURED:
        return record

    verdict = compare_secret(obj.payload, record.live, record.merged)
    if verdict is None:
        return record

    masked = replace(record, live=verdict.live, merged=verdict.merged)
    _log.info(
        "secret_override_applied",
        subject=record.subject,
        changed=verdict.changed,
        live_keys=len(verdict.live_keys),
        merged_keys=len(verdict.merged_keys),
    )
    return masked if verdict.changed else masked.downgraded()


class DiffOrchestrator:
    """Runs one sequential comparison pass over the desired objects.

    Args:
        manager: the resource manager that computes dry-run comparisons.
        timeout: seconds allowed for the whole pass.
        options: diff options; defaults exclude reconcile-disabled objects.
        clock:   monotonic clock, replaceable in tests.
    """

    def __init__(
        self,
        manager: ResourceManager,
        timeout: float = DEFAULT_TIMEOUT,
        options: DiffOptions | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._manager = manager
        self._timeout = timeout
        self._options = options or DiffOptions()
        self._clock = clock

    async def _compare(self, obj: DesiredObject, deadline: float) -> ManagerChange:
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise DeadlineExceeded(obj.subject, self._timeout)
        try:
            return await asyncio.wait_for(self._manager.diff(obj, self._options), timeout=remaining)
        except TimeoutError as exc:
            if self._clock() >= deadline:
                raise DeadlineExceeded(obj.subject, self._timeout) from exc
            raise ObjectComparisonError(obj.subject, exc) from exc
        except Exception as exc:  # noqa: BLE001
            raise ObjectComparisonError(obj.subject, exc) from exc

    async def run(
        self,
        objects: Sequence[DesiredObject],
        old_inventory: Inventory | None = None,
        prune: bool = False,
    ) -> DiffResult:
        deadline = self._clock() + self._timeout
        records: list[ChangeRecord] = []
        errors: list[KubeDriftError] = []
        inventory = InventoryBuilder()

        for obj in objects:
            try:
                change = await self._compare(obj, deadline)
            except ObjectComparisonError as exc:
                _log.warning("comparison_failed", subject=obj.subject, error=str(exc.cause))
                errors.append(exc)
                continue

            record = ChangeRecord(
                subject=change.subject,
                action=Action.from_manager(change.action),
                object_id=change.object_id,
                applied_version=change.version,
                live=change.live,
                merged=change.merged,
            )
            record = apply_secret_override(obj, record)

            if record.action is not Action.UNCHANGED:
                _log.info("object_compared", subject=record.subject, action=record.action.value)
            records.append(record)
            inventory.add(record)

        new_inventory = inventory.build()
        deletions = self._prune(old_inventory, new_inventory, prune, errors)

        return DiffResult(
            records=tuple(records),
            deletions=tuple(deletions),
            inventory=new_inventory,
            errors=tuple(errors),
        )

    def _prune(
        self,
        old_inventory: Inventory | None,
        new_inventory: Inventory,
        prune: bool,
        errors: list[KubeDriftError],
    ) -> list[DesiredObject]:
        if not prune:
            return []
        if errors:
            _log.info("prune_skipped", reason="comparison_errors", errors=len(errors))
            return []
        if old_inventory is None:
            _log.debug("prune_skipped", reason="no_previous_inventory")
            return []

        try:
            deletions = diff_inventory(old_inventory, new_inventory)
        except IdentityParseError as exc:
            _log.warning("inventory_parse_failed", value=exc.value)
            errors.append(exc)
            return []

        for obj in deletions:
            _log.info("object_compared", subject=obj.subject, action=Action.DELETED.value)
        return deletions


async def run_diff(
    objects: Sequence[DesiredObject],
    manager: ResourceManager,
    sink: TextIO | None = None,
    old_inventory: Inventory | None = None,
    prune: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    color: bool = False,
) -> tuple[str, bool, list[KubeDriftError]]:
    """Compare, render and optionally write the report for one run.

    Returns the report text, whether anything was created or drifted, and
    every error collected along the way (comparison, inventory and render
    errors, in that order).
    """
    result = await DiffOrchestrator(manager, timeout=timeout).run(objects, old_inventory=old_inventory, prune=prune)
    text, render_errors = render_report(result.records, result.deletions, color=color)
    if sink is not None:
        write_report(sink, text)
    return text, result.created_or_drifted, [*result.errors, *render_errors]
