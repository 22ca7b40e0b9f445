"""Integration tests running the helper against SQLite files."""
import datetime
import sqlite3
from decimal import Decimal

import pandas as pd
import pytest
from dbhelper import AsyncCursor, DbHelper, RawValue
from dbhelper.exceptions import TypeConversionError, ValidationError

from tests.fixtures.models import Employee, Item


def test_execute_non_query_returns_rowcount(sqlite_helper):
    count = sqlite_helper.execute_non_query(
        'UPDATE employee SET active = {0} WHERE salary > {1}', False, 100000)
    assert count == 2
    assert sqlite_helper.execute_scalar('SELECT count(*) FROM employee WHERE active = 1') == 1


def test_execute_non_query_rolls_back_on_error(sqlite_helper):
    with pytest.raises(sqlite3.IntegrityError):
        sqlite_helper.execute_non_query(
            'INSERT INTO employee (id, name) VALUES ({0}, {1})', 1, 'Duplicate')
    assert sqlite_helper.execute_scalar('SELECT count(*) FROM employee') == 5


def test_execute_scalar(sqlite_helper):
    assert sqlite_helper.execute_scalar('SELECT name FROM employee WHERE id = {0}', 2) == 'Bob'
    assert sqlite_helper.execute_scalar('SELECT name FROM employee WHERE id = {0}', 99) is None
    assert sqlite_helper.execute_scalar(
        'SELECT salary FROM employee WHERE id = {0}', 1, target=Decimal) == Decimal(120000)


def test_execute_list_materialises_objects(sqlite_helper):
    employees = sqlite_helper.execute_list(
        Employee, 'SELECT * FROM employee WHERE active = {0} ORDER BY id', True)
    assert [e.name for e in employees] == ['Alice', 'Bob', 'Dana']
    alice = employees[0]
    assert alice.salary == Decimal(120000)
    assert alice.hired == datetime.date(2019, 3, 1)
    assert alice.active is True


def test_execute_list_null_columns(sqlite_helper):
    [charlie] = sqlite_helper.execute_list(Employee, 'SELECT * FROM employee WHERE id = {0}', 3)
    assert charlie.salary is None
    assert charlie.hired is None
    assert charlie.active is False


def test_execute_list_paging(sqlite_helper):
    page = sqlite_helper.execute_list(
        Item, 'SELECT id, name FROM employee ORDER BY id', skip=1, limit=2)
    assert [item.id for item in page] == [2, 3]
    assert all(item.extra is False for item in page)


def test_execute_list_skip_past_end(sqlite_helper):
    assert sqlite_helper.execute_list(Item, 'SELECT id, name FROM employee', skip=10) == []


def test_execute_list_negative_skip(sqlite_helper):
    with pytest.raises(ValidationError):
        sqlite_helper.execute_list(Item, 'SELECT id, name FROM employee', skip=-1)


def test_execute_list_conversion_error(sqlite_helper):
    with pytest.raises(TypeConversionError):
        sqlite_helper.execute_list(Item, "SELECT 'not a number' AS id")


def test_raw_value_identifiers(sqlite_helper):
    names = sqlite_helper.execute_scalar_list(
        str, 'SELECT name FROM {0} WHERE id <= {1} ORDER BY {2}',
        RawValue('employee'), 3, RawValue('name DESC'))
    assert names == ['Charlie', 'Bob', 'Alice']


def test_execute_scalar_list_conversion(sqlite_helper):
    ids = sqlite_helper.execute_scalar_list(str, 'SELECT id FROM employee ORDER BY id', limit=3)
    assert ids == ['1', '2', '3']


def test_literal_braces_without_arguments(sqlite_helper):
    assert sqlite_helper.execute_scalar("SELECT '{0}'") == '{0}'


def test_execute_dicts(sqlite_helper):
    rows = sqlite_helper.execute_dicts('SELECT id, name FROM employee WHERE id = {0}', 4)
    assert rows == [{'id': 4, 'name': 'Dana'}]
    assert rows[0].name == 'Dana'


def test_execute_dataframe(sqlite_helper):
    df = sqlite_helper.execute_dataframe('SELECT id, name FROM employee ORDER BY id', limit=2)
    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ['id', 'name']
    assert df['name'].tolist() == ['Alice', 'Bob']


def test_execute_dataframe_empty_keeps_columns(sqlite_helper):
    df = sqlite_helper.execute_dataframe('SELECT id, name FROM employee WHERE id < {0}', 0)
    assert df.empty
    assert list(df.columns) == ['id', 'name']


def test_execute_reader_with_fill(sqlite_helper):
    names = []
    with sqlite_helper.execute_reader('SELECT name FROM employee ORDER BY id') as cursor:
        count = sqlite_helper.fill(cursor, 3, 0, lambda row: names.append(row['name']))
    assert count == 2
    assert names == ['Dana', 'Eve']


@pytest.mark.asyncio
async def test_fill_async_over_blocking_cursor(sqlite_helper):
    names = []
    with sqlite_helper.execute_reader('SELECT name FROM employee ORDER BY id') as cursor:
        count = await sqlite_helper.fill_async(AsyncCursor(cursor), 1, 2,
                                               lambda row: names.append(row['name']))
    assert count == 2
    assert names == ['Bob', 'Charlie']


def test_each_call_uses_fresh_connection(sqlite_path):
    helper = DbHelper(sqlite3, sqlite_path)
    helper.execute_non_query('CREATE TABLE t (x INTEGER)')
    helper.execute_non_query('INSERT INTO t VALUES ({0})', 1)
    assert helper.execute_scalar('SELECT x FROM t') == 1


def test_on_execute_command_hook(sqlite_helper):
    seen = []

    class Recording(DbHelper):
        def on_execute_command(self, command):
            seen.append((command.text, command.args))

    helper = Recording(sqlite_helper.factory, sqlite_helper.connection_string)
    helper.execute_scalar('SELECT name FROM employee WHERE id = {0}', 5)
    assert seen == [('SELECT name FROM employee WHERE id = ?', (5,))]


def test_driver_errors_propagate(sqlite_helper):
    with pytest.raises(sqlite3.OperationalError):
        sqlite_helper.execute_scalar('SELECT * FROM missing_table')
