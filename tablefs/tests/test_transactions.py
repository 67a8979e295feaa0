from __future__ import annotations

import io
import itertools

import pytest

from tablefs.infrastructure import SqlAlchemyUnitOfWork, transaction_scope
from tablefs.shared.errors import PartialOperationError, StorageError


@pytest.fixture
def fail_on(engine):
    """Make statements touching ``path`` fail inside the database."""

    def _simulate_failure():
        raise RuntimeError("disk I/O error")

    raw = engine.raw_connection()
    try:
        raw.driver_connection.create_function("simulate_failure", 0, _simulate_failure)
    finally:
        raw.close()

    triggers = itertools.count()

    def _install(path: str, verb: str) -> None:
        name = f"fail_{verb.lower()}_{next(triggers)}"
        with engine.begin() as connection:
            connection.exec_driver_sql(
                f"CREATE TRIGGER {name} BEFORE {verb} ON files "
                f"WHEN OLD.path = '{path}' BEGIN SELECT simulate_failure(); END"
            )

    return _install


def _seed(adapter) -> None:
    adapter.create_dir("foo")
    adapter.write("foo/bar.txt", b"abc")
    adapter.create_dir("foo/baz")
    adapter.write("foo/baz/buzz.txt", b"def")


def test_failed_descendant_rename_rolls_back(adapter, table_rows, fail_on) -> None:
    _seed(adapter)
    before = table_rows()
    fail_on("foo/baz/buzz.txt", "UPDATE")

    with pytest.raises(PartialOperationError) as info:
        adapter.rename("foo", "renamed")

    assert info.value.code == "partial_operation"
    assert info.value.context == {"operation": "rename", "path": "foo", "completed": 2}
    assert table_rows() == before


def test_failed_descendant_delete_rolls_back(adapter, table_rows, fail_on) -> None:
    _seed(adapter)
    before = table_rows()
    fail_on("foo/baz", "DELETE")

    with pytest.raises(PartialOperationError) as info:
        adapter.delete_dir("foo")

    assert info.value.context["completed"] == 1
    assert table_rows() == before


def test_failed_first_statement_is_plain_storage_error(adapter, fail_on) -> None:
    _seed(adapter)
    fail_on("foo/bar.txt", "UPDATE")

    with pytest.raises(StorageError) as info:
        adapter.rename("foo", "renamed")

    assert not isinstance(info.value, PartialOperationError)
    assert adapter.has("foo") is True


def test_failed_size_correction_rolls_back_write(adapter, table_rows, fail_on) -> None:
    fail_on("foo.txt", "UPDATE")

    with pytest.raises(StorageError):
        adapter.write_stream("foo.txt", io.BytesIO(b"abc"))

    assert table_rows() == []


def test_unit_of_work_rejects_access_outside_context(engine) -> None:
    uow = SqlAlchemyUnitOfWork(engine)

    with pytest.raises(RuntimeError):
        _ = uow.connection


def test_transaction_scope_joins_open_transaction(engine) -> None:
    with engine.connect() as connection:
        outer = connection.begin()
        with transaction_scope(connection) as joined:
            assert joined is connection
        assert outer.is_active
        outer.rollback()
