"""Sync service: change-set resolution between a tree listing and the sync state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection

    from repoloader.services.path_service import MappedEntry, Selection
    from repoloader.services.state_service import StateSnapshot


class ChangeType(StrEnum):
    """Type of change detected for a logical id."""

    NO_CHANGE = "no_change"
    REMOTE_ADD = "remote_add"
    REMOTE_MODIFY = "remote_modify"
    REMOTE_DELETE = "remote_delete"


@dataclass
class SyncChange:
    """A single change in the sync plan."""

    record_id: str
    change_type: ChangeType
    action: str  # "fetch", "skip", "delete"


@dataclass
class SyncPlan:
    """The computed change set for one run.

    ``target_ids`` and ``to_delete`` are frozen before any fetch is dispatched;
    the deletion pass must use them rather than re-reading the store.
    """

    tree_sha: str
    short_circuit: bool = False
    target_ids: frozenset[str] = frozenset()
    to_fetch: list[MappedEntry] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)
    superseded: dict[str, list[str]] = field(default_factory=dict)
    changes: list[SyncChange] = field(default_factory=list)
    collisions: list[str] = field(default_factory=list)

    @property
    def has_work(self) -> bool:
        return bool(self.to_fetch or self.to_delete)


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    tree_sha: str
    short_circuited: bool = False
    fetched: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    collisions: list[str] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        """True when the store now mirrors the listed tree exactly."""
        return not self.failed


def compute_sync_plan(
    tree_sha: str,
    state: StateSnapshot,
    selection: Selection,
    existing_ids: Collection[str],
) -> SyncPlan:
    """Compute the change set for a listing against the recorded sync state.

    An entry is unchanged only when its sha is recorded for its own id and
    the store still holds that id. When the recorded root equals tree_sha the
    whole tree is unchanged and nothing is fetched, but ids missing from the
    selection are still scheduled for deletion.
    """
    existing = set(existing_ids)
    shas_by_id: dict[str, list[str]] = {}
    for sha, record_id in state.fingerprints.items():
        shas_by_id.setdefault(record_id, []).append(sha)

    plan = SyncPlan(
        tree_sha=tree_sha,
        target_ids=selection.ids,
        collisions=list(selection.collisions),
    )
    plan.to_delete = sorted(existing - selection.ids)

    if state.root == tree_sha:
        plan.short_circuit = True
        plan.unchanged = [mapped.id for mapped in selection.files]
    else:
        for mapped in selection.files:
            if state.fingerprints.get(mapped.sha) == mapped.id and mapped.id in existing:
                plan.unchanged.append(mapped.id)
                plan.changes.append(SyncChange(mapped.id, ChangeType.NO_CHANGE, "skip"))
                continue
            plan.to_fetch.append(mapped)
            if mapped.id in existing:
                change_type = ChangeType.REMOTE_MODIFY
            else:
                change_type = ChangeType.REMOTE_ADD
            plan.changes.append(SyncChange(mapped.id, change_type, "fetch"))
            stale = sorted(sha for sha in shas_by_id.get(mapped.id, []) if sha != mapped.sha)
            if stale:
                plan.superseded[mapped.id] = stale

    for record_id in plan.to_delete:
        plan.changes.append(SyncChange(record_id, ChangeType.REMOTE_DELETE, "delete"))

    return plan
