# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import pytest

from dhcp2static.core.exceptions import BackupError, RollbackError
from dhcp2static.transition.backup import BackupManager
from fakes.fake_store import MemoryFileStore

A = "/etc/netplan/01-netcfg.yaml"
B = "/etc/netplan/50-cloud-init.yaml"
NEW = "/etc/netplan/99-dhcp2static.yaml"


@pytest.fixture
def store():
    return MemoryFileStore(
        files={
            A: (b"network:\n  version: 2\n", 0o644),
            B: (b"network:\n  ethernets: {eth0: {dhcp4: true}}\n", 0o600),
        },
        dir_mode=0o775,
    )


@pytest.mark.unit
class TestSnapshot:
    def test_saves_content_and_mode(self, store, logger):
        snap = BackupManager(store, logger).snapshot([A, B, NEW])

        assert snap.directory == "/etc/netplan"
        assert snap.directory_mode == 0o775
        assert snap.paths() == [A, B, NEW]
        assert store.files[A + ".bak"] == store.files[A]
        assert store.files[B + ".bak"] == (store.files[B][0], 0o600)
        assert snap.get(NEW).existed is False
        assert snap.get(A).sha256

    def test_duplicates_collapsed(self, store, logger):
        assert BackupManager(store, logger).snapshot([A, A]).paths() == [A]

    def test_custom_suffix(self, store, logger):
        BackupManager(store, logger, suffix=".orig").snapshot([A])
        assert A + ".orig" in store.files

    def test_failure_is_backup_error(self, store, logger):
        store.fail_write.add(B + ".bak")
        with pytest.raises(BackupError) as ei:
            BackupManager(store, logger).snapshot([A, B])
        assert ei.value.context["path"] == B

    def test_empty_suffix_rejected(self, store, logger):
        with pytest.raises(ValueError):
            BackupManager(store, logger, suffix="")

    def test_earlier_backup_kept_once(self, store, logger):
        mgr = BackupManager(store, logger)
        first = store.files[A]
        mgr.snapshot([A])

        store.files[A] = (b"network:\n  version: 2\n  renderer: networkd\n", 0o600)
        mgr.snapshot([A])
        assert store.files[A + ".bak.orig"] == first
        assert store.files[A + ".bak"] == store.files[A]

        store.files[A] = (b"network: {version: 2}\n", 0o600)
        mgr.snapshot([A])
        assert store.files[A + ".bak.orig"] == first

    def test_unchanged_rerun_adds_nothing(self, store, logger):
        mgr = BackupManager(store, logger)
        mgr.snapshot([A])
        mgr.snapshot([A])
        assert A + ".bak.orig" not in store.files


@pytest.mark.unit
class TestRestore:
    def test_restores_exact_pre_state(self, store, logger):
        before = {p: store.files[p] for p in (A, B)}
        mgr = BackupManager(store, logger)
        snap = mgr.snapshot([A, B, NEW])

        store.files[A] = (b"garbage", 0o666)
        store.files.pop(B)
        store.files[NEW] = (b"new", 0o600)
        store.dir_mode = 0o700

        mgr.restore(snap)

        assert {p: store.files[p] for p in (A, B)} == before
        assert NEW not in store.files
        assert store.dir_mode == 0o770

    def test_collects_every_failure(self, store, logger):
        mgr = BackupManager(store, logger)
        snap = mgr.snapshot([A, B])
        store.files[B] = (b"changed", 0o644)
        store.fail_write.add(A)

        with pytest.raises(RollbackError) as ei:
            mgr.restore(snap)

        assert ei.value.context["unrestored"] == [A]
        # B was still attempted and restored
        assert store.text(B).startswith("network:")

    def test_tampered_backup_is_not_restored(self, store, logger):
        mgr = BackupManager(store, logger)
        snap = mgr.snapshot([A])
        store.files[A + ".bak"] = (b"tampered", 0o644)
        with pytest.raises(RollbackError):
            mgr.restore(snap)

    def test_discard_only_touches_named_paths(self, store, logger):
        mgr = BackupManager(store, logger)
        snap = mgr.snapshot([A, NEW])
        store.files[NEW] = (b"generated", 0o600)
        store.files[A] = (b"edited", 0o644)

        mgr.discard(snap, [NEW])

        assert NEW not in store.files
        assert store.text(A) == "edited"

    def test_discard_unknown_path(self, store, logger):
        mgr = BackupManager(store, logger)
        snap = mgr.snapshot([A])
        with pytest.raises(RollbackError):
            mgr.discard(snap, [NEW])
