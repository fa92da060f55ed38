from __future__ import annotations

import pytest

from hr_backoffice.database.connection import DatabaseConnection, DBConfig
from hr_backoffice.database.mysql_base import db_cursor


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False

    def execute(self, sql, params=None):
        self.conn.executed.append(sql)

    def close(self):
        self.closed = True


class FakeMySQLConnection:
    def __init__(self):
        self.executed = []
        self.started = 0
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def start_transaction(self):
        self.started += 1

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeDatabase(DatabaseConnection):
    def __init__(self):
        super().__init__(DBConfig(host="localhost", port=3306, user="hr", password="", database="hr_test"))
        self.opened = []

    def connect(self):
        conn = FakeMySQLConnection()
        self.opened.append(conn)
        return conn


def test_transaction_commits_once_on_success():
    db = FakeDatabase()

    with db.transaction():
        assert db.in_transaction()

    conn = db.opened[0]
    assert (conn.started, conn.commits, conn.rollbacks, conn.closed) == (1, 1, 0, True)
    assert not db.in_transaction()


def test_transaction_rolls_back_and_reraises():
    db = FakeDatabase()

    with pytest.raises(RuntimeError):
        with db.transaction():
            raise RuntimeError("boom")

    conn = db.opened[0]
    assert (conn.commits, conn.rollbacks, conn.closed) == (0, 1, True)
    assert not db.in_transaction()


def test_nested_transaction_joins_the_outer_one():
    db = FakeDatabase()

    with db.transaction():
        with db.transaction():
            pass
        # the inner block must not commit on its own
        assert db.opened[0].commits == 0

    assert len(db.opened) == 1
    assert db.opened[0].commits == 1


def test_error_in_nested_block_rolls_back_everything():
    db = FakeDatabase()

    with pytest.raises(ValueError):
        with db.transaction():
            with db.transaction():
                raise ValueError("inner")

    conn = db.opened[0]
    assert (conn.commits, conn.rollbacks) == (0, 1)


def test_cursor_inside_transaction_reuses_connection_without_commit():
    db = FakeDatabase()

    with db.transaction():
        with db_cursor(db) as (conn, cur):
            cur.execute("UPDATE leave_years SET used = used + 1")
        with db_cursor(db) as (other, _):
            assert other is conn
        assert conn.commits == 0
        assert not conn.closed

    assert len(db.opened) == 1
    assert conn.executed == ["UPDATE leave_years SET used = used + 1"]
    assert conn.commits == 1


def test_cursor_outside_transaction_commits_and_closes():
    db = FakeDatabase()

    with db_cursor(db) as (conn, cur):
        cur.execute("DELETE FROM purchases WHERE purchase_id=%s", (1,))

    assert (conn.commits, conn.rollbacks, conn.closed) == (1, 0, True)
    assert cur.closed


def test_cursor_outside_transaction_rolls_back_on_error():
    db = FakeDatabase()

    with pytest.raises(KeyError):
        with db_cursor(db) as (conn, _):
            raise KeyError("missing")

    assert (conn.commits, conn.rollbacks, conn.closed) == (0, 1, True)
