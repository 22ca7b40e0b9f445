"""
Row conversion targets shared by converter and helper tests.
"""
import datetime
import enum
from dataclasses import dataclass, field
from decimal import Decimal


class Status(enum.Enum):
    ACTIVE = 'active'
    RETIRED = 'retired'


@dataclass
class Item:
    id: int = 0
    name: str = ''
    extra: bool = False


@dataclass
class Employee:
    id: int = 0
    name: str = ''
    salary: Decimal | None = None
    hired: datetime.date | None = None
    active: bool = False
    status: Status = Status.ACTIVE
    tags: list = field(default_factory=list)


@dataclass(frozen=True)
class FrozenItem:
    id: int = 0
    name: str = ''


class PlainItem:
    id: int
    name: str = 'unnamed'
    _secret: str = 'hidden'

    def __init__(self):
        self._label = None

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value):
        self._label = value


@dataclass
class NeedsArgs:
    id: int



class PlainUser:
    """No annotations; fields come from `__init__`."""

    def __init__(self):
        self.id = 0
        self.name = ''
        self._cache = None

    def display(self):
        return f'{self.id}: {self.name}'


class ClassAttrUser:
    """No annotations; fields are class attributes."""
    id = 0
    name = ''
    kind = 'user'
    _registry = {}

    @classmethod
    def build(cls):
        return cls()

    @staticmethod
    def describe():
        return 'user'
