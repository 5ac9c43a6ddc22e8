"""Tests for committing staged edits to storage."""

from uuid import UUID

import pytest

from conductor.apply import (
    AddColumnAction,
    CommitError,
    CreateTableAction,
    Stage,
    commit,
)
from conductor.catalog import Catalog, Column, DataType, Namespace, Table
from conductor.diff import diff
from conductor.ensemble import CatalogStore, StorageBackend

ORDERS = UUID("1b4e28ba-2fa1-11d2-883f-0016d3cca427")


class RecordingStorage(StorageBackend):
    """Records every call; optionally fails on one method."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, method, *args):
        if method == self.fail_on:
            raise RuntimeError(f"{method} failed")
        self.calls.append((method,) + args)

    def create_table(self, table):
        self._record("create_table", table.reference)

    def drop_table(self, ref):
        self._record("drop_table", ref)

    def open_table(self, ref):
        raise KeyError(ref)

    def add_column(self, ref, column):
        self._record("add_column", ref, column.uid)

    def drop_column(self, ref, column):
        self._record("drop_column", ref, column.uid)

    def alter_column_type(self, ref, column):
        self._record("alter_column_type", ref, column.uid, column.data_type)

    def drop_namespace(self, name):
        self._record("drop_namespace", name)


class MemoryCatalogStore(CatalogStore):
    def __init__(self, catalog=None):
        self.catalog = catalog or Catalog()
        self.saves = 0

    def load(self):
        return self.catalog.copy()

    def save(self, catalog):
        self.catalog = catalog.copy()
        self.saves += 1


def _target():
    namespace = Namespace(name="shop")
    namespace.tables["orders"] = Table(
        namespace="shop",
        uuid=ORDERS,
        name="orders",
        columns=[
            Column(uid=1, name="id", data_type=DataType.BIGINT),
            Column(uid=2, name="total", data_type=DataType.DOUBLE),
        ],
    )
    catalog = Catalog()
    catalog.add_namespace(namespace)
    return catalog


def _staged(current, target):
    stage = Stage(current)
    stage.apply_all(diff(current, target))
    return stage


def test_commit_runs_actions_then_saves():
    target = _target()
    stage = _staged(Catalog(), target)
    storage = RecordingStorage()
    store = MemoryCatalogStore()

    executed = commit(stage, storage, store)

    assert executed == 1
    orders = target.get_namespace("shop").tables["orders"]
    assert storage.calls == [("create_table", orders.reference)]
    assert store.catalog == target
    assert store.saves == 1
    assert stage.pending == []


def test_commit_runs_actions_in_order():
    current = _target()
    target = _target()
    orders = target.get_namespace("shop").tables["orders"]
    target.get_namespace("shop").tables["orders"] = orders.with_columns(
        [
            Column(uid=1, name="id", data_type=DataType.TEXT),
            Column(uid=3, name="note", data_type=DataType.TEXT),
        ]
    )
    storage = RecordingStorage()

    commit(_staged(current, target), storage, MemoryCatalogStore())

    ref = orders.reference
    assert storage.calls == [
        ("drop_column", ref, 2),
        ("add_column", ref, 3),
        ("alter_column_type", ref, 1, DataType.TEXT),
    ]


def test_dropped_namespace_reaches_storage():
    current = _target()
    storage = RecordingStorage()

    commit(_staged(current, Catalog()), storage, MemoryCatalogStore())

    orders = current.get_namespace("shop").tables["orders"]
    assert storage.calls == [
        ("drop_table", orders.reference),
        ("drop_namespace", "shop"),
    ]


def test_catalog_only_changes_still_save():
    current = _target()
    target = _target()
    orders = target.get_namespace("shop").tables.pop("orders")
    target.get_namespace("shop").tables["purchases"] = orders.with_name("purchases")
    storage = RecordingStorage()
    store = MemoryCatalogStore(current)

    assert commit(_staged(current, target), storage, store) == 0
    assert storage.calls == []
    assert store.catalog == target


def test_failing_action_stops_commit():
    current = _target()
    target = _target()
    orders = target.get_namespace("shop").tables["orders"]
    target.get_namespace("shop").tables["orders"] = orders.with_columns(
        [
            Column(uid=1, name="id", data_type=DataType.TEXT),
            Column(uid=3, name="note", data_type=DataType.TEXT),
        ]
    )
    storage = RecordingStorage(fail_on="add_column")
    store = MemoryCatalogStore(current)
    stage = _staged(current, target)

    with pytest.raises(CommitError) as exc_info:
        commit(stage, storage, store)

    error = exc_info.value
    assert isinstance(error.action, AddColumnAction)
    assert error.completed == 1
    assert isinstance(error.__cause__, RuntimeError)
    assert "add_column failed" in str(error)
    assert storage.calls == [("drop_column", orders.reference, 2)]
    assert store.saves == 0
    assert store.catalog == current
    assert len(stage.pending) == 3


def test_commit_error_message():
    table = _target().get_namespace("shop").tables["orders"]
    error = CommitError(CreateTableAction(table=table), 0, RuntimeError("disk full"))
    assert str(error) == (
        f"commit failed at 'create table shop/{ORDERS}' after 0 actions: disk full"
    )
