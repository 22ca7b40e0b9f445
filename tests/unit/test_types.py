"""Unit tests for parameter normalisation and row adaptation."""
import datetime
import math
from collections import namedtuple
from decimal import Decimal

import numpy as np
import pandas as pd
import pytest
from dbhelper.types import RowAdapter, TypeConverter, column_names, convert_date
from dbhelper.types import convert_datetime, unwrap_value


class TestTypeConverter:

    @pytest.mark.parametrize(('value', 'expected'), [
        (None, None),
        (1, 1),
        ('text', 'text'),
        ('', ''),
        ('null', 'null'),
        (Decimal('1.5'), Decimal('1.5')),
        (math.nan, None),
        (math.inf, None),
        (np.int32(4), 4),
        (np.bool_(True), True),
        (np.float32(0.5), 0.5),
        (pd.NA, None),
        (pd.NaT, None),
        (np.datetime64('NaT'), None),
    ])
    def test_convert_value(self, value, expected):
        assert TypeConverter.convert_value(value) == expected

    def test_numpy_datetime(self):
        value = TypeConverter.convert_value(np.datetime64('2024-01-31T08:30:00'))
        assert value == datetime.datetime(2024, 1, 31, 8, 30)
        assert type(value) is datetime.datetime

    def test_pandas_timestamp(self):
        value = unwrap_value(pd.Timestamp('2024-01-31'))
        assert type(value) is datetime.datetime

    def test_strings_are_not_nulled(self):
        """Only real nulls become NULL; string content is the caller's."""
        assert TypeConverter.convert_value('none') == 'none'


class TestRowAdapter:

    def test_dict_row(self):
        row = {'id': 1, 'name': 'a'}
        assert RowAdapter(row).to_dict() == row
        assert RowAdapter(row).get_value() == 1
        assert RowAdapter(row).get_value('name') == 'a'

    def test_tuple_row_needs_columns(self):
        adapter = RowAdapter((1, 'a'), ['id', 'name'])
        assert adapter.to_dict() == {'id': 1, 'name': 'a'}
        assert adapter.get_value() == 1
        with pytest.raises(ValueError):
            RowAdapter((1, 'a')).to_dict()

    def test_namedtuple_row(self):
        Row = namedtuple('Row', 'id name')
        assert RowAdapter(Row(1, 'a')).to_dict() == {'id': 1, 'name': 'a'}

    def test_to_attrdict(self):
        row = RowAdapter({'id': 1}).to_attrdict()
        assert row.id == 1


def test_column_names():
    class Described:
        description = (('id', None), ('name', None))

    class NoResult:
        description = None

    assert column_names(Described()) == ['id', 'name']
    assert column_names(NoResult()) == []


def test_sqlite_converters():
    assert convert_date(b'2024-01-31') == datetime.date(2024, 1, 31)
    assert convert_datetime(b'2024-01-31T08:30:00') == datetime.datetime(2024, 1, 31, 8, 30)
