"""Tests for the sync service."""

from __future__ import annotations

from repoloader.services.path_service import MappedEntry, Selection
from repoloader.services.state_service import StateSnapshot
from repoloader.services.sync_service import ChangeType, SyncResult, compute_sync_plan


def _selection(*pairs: tuple[str, str]) -> Selection:
    files = [MappedEntry(id=rid, path=f"posts/{rid}.md", sha=sha, size=1) for rid, sha in pairs]
    return Selection(files=files, ids=frozenset(rid for rid, _ in pairs))


def _state(root: str | None = None, **fingerprints: str) -> StateSnapshot:
    return StateSnapshot(root=root, fingerprints=dict(fingerprints))


class TestComputeSyncPlan:
    def test_empty_state_fetches_everything(self) -> None:
        plan = compute_sync_plan("abc", _state(), _selection(("a", "f1"), ("b", "f2")), [])
        assert [e.id for e in plan.to_fetch] == ["a", "b"]
        assert plan.unchanged == []
        assert plan.to_delete == []
        assert not plan.short_circuit
        assert {c.change_type for c in plan.changes} == {ChangeType.REMOTE_ADD}

    def test_root_match_short_circuits(self) -> None:
        state = _state("abc", f1="a", f2="b")
        plan = compute_sync_plan("abc", state, _selection(("a", "f1"), ("b", "f2")), ["a", "b"])
        assert plan.short_circuit
        assert plan.to_fetch == []
        assert plan.unchanged == ["a", "b"]
        assert not plan.has_work

    def test_short_circuit_still_schedules_deletions(self) -> None:
        state = _state("abc", f1="a")
        plan = compute_sync_plan("abc", state, _selection(("a", "f1")), ["a", "leftover"])
        assert plan.short_circuit
        assert plan.to_fetch == []
        assert plan.to_delete == ["leftover"]

    def test_unchanged_when_sha_recorded_for_same_id(self) -> None:
        state = _state("old", f1="a", f2="b")
        plan = compute_sync_plan("new", state, _selection(("a", "f1"), ("b", "f9")), ["a", "b"])
        assert plan.unchanged == ["a"]
        assert [e.id for e in plan.to_fetch] == ["b"]
        fetch_change = next(c for c in plan.changes if c.record_id == "b")
        assert fetch_change.change_type == ChangeType.REMOTE_MODIFY
        assert fetch_change.action == "fetch"

    def test_same_sha_under_new_id_is_fetched(self) -> None:
        """A rename without content change must not reuse the old id's bookkeeping."""
        state = _state("old", f1="old-name")
        plan = compute_sync_plan("new", state, _selection(("new-name", "f1")), ["old-name"])
        assert [e.id for e in plan.to_fetch] == ["new-name"]
        assert plan.to_delete == ["old-name"]

    def test_recorded_sha_without_record_is_fetched(self) -> None:
        state = _state("old", f1="a")
        plan = compute_sync_plan("new", state, _selection(("a", "f1")), [])
        assert [e.id for e in plan.to_fetch] == ["a"]

    def test_deletion_set_is_existing_minus_target(self) -> None:
        plan = compute_sync_plan("t", _state(), _selection(("a", "f1")), ["a", "b", "c"])
        assert plan.to_delete == ["b", "c"]
        deleted = [c for c in plan.changes if c.change_type == ChangeType.REMOTE_DELETE]
        assert [c.record_id for c in deleted] == ["b", "c"]

    def test_superseded_shas_are_collected_for_fetched_ids(self) -> None:
        state = _state("old", f1="a", f0="a", f5="z")
        plan = compute_sync_plan("new", state, _selection(("a", "f2")), ["a"])
        assert plan.superseded == {"a": ["f0", "f1"]}

    def test_collisions_are_carried_into_plan(self) -> None:
        selection = _selection(("a", "f1"))
        selection.collisions.append("posts/a.txt")
        plan = compute_sync_plan("t", _state(), selection, [])
        assert plan.collisions == ["posts/a.txt"]

    def test_target_ids_frozen_from_selection(self) -> None:
        selection = _selection(("a", "f1"), ("b", "f2"))
        plan = compute_sync_plan("t", _state(), selection, [])
        assert plan.target_ids == frozenset({"a", "b"})


class TestSyncResult:
    def test_converged_without_failures(self) -> None:
        assert SyncResult(tree_sha="t", fetched=["a"]).converged

    def test_not_converged_with_failures(self) -> None:
        assert not SyncResult(tree_sha="t", failed={"a": "boom"}).converged
