import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest

from eventhorizon.command_check import (
    CommandFieldError,
    IsZeroer,
    MissingAggregateIDError,
    MissingCommandError,
    check_command,
)

NIL = uuid.UUID(int=0)


class _TestCommand:
    def aggregate_id(self):
        return self.test_id

    def aggregate_type(self):
        return "Test"

    def command_type(self):
        return type(self).__name__


@dataclass
class FieldsCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: str = ""


@dataclass
class UUIDValueCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: uuid.UUID = NIL


@dataclass
class StringValueCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: str = ""


@dataclass
class IntValueCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: int = 0


@dataclass
class FloatValueCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: float = 0.0


@dataclass
class BoolValueCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: bool = False


@dataclass
class SliceCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    slice: list | None = None


@dataclass
class MapCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    map: dict | None = None


@dataclass
class Inner:
    test: str = ""


@dataclass
class StructCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    struct: Inner = field(default_factory=Inner)


@dataclass
class TimeCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    time: datetime = datetime.min


@dataclass
class OptionalCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    content: str = field(default="", metadata={"eh": "optional"})


@dataclass
class PrivateCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    _private: str = ""


@dataclass
class ArrayCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    string_array: tuple = ("",)
    int_array: tuple = (0,)
    struct_array: tuple = (Inner(),)


class ZeroableInt(int):
    def is_zero(self):
        return self == 0


@dataclass
class ZeroableIntCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    test_zeroable_int: ZeroableInt = ZeroableInt(0)
    test_int: int = 0


@dataclass
class CallableCommand(_TestCommand):
    test_id: uuid.UUID = NIL
    callback: object = None


class PlainCommand(_TestCommand):
    def __init__(self, test_id, content):
        self.test_id = test_id
        self.content = content


def test_check_all_fields():
    assert check_command(FieldsCommand(uuid.uuid4(), "command1")) is None


def test_missing_command():
    with pytest.raises(MissingCommandError, match="missing command"):
        check_command(None)


def test_missing_aggregate_id():
    with pytest.raises(MissingAggregateIDError, match="missing aggregate ID"):
        check_command(UUIDValueCommand())


@pytest.mark.parametrize(
    "cmd, field_name",
    [
        (UUIDValueCommand(test_id=uuid.uuid4()), "content"),
        (StringValueCommand(test_id=uuid.uuid4()), "content"),
        (SliceCommand(test_id=uuid.uuid4()), "slice"),
        (MapCommand(test_id=uuid.uuid4()), "map"),
        (StructCommand(test_id=uuid.uuid4()), "struct"),
        (TimeCommand(test_id=uuid.uuid4()), "time"),
        (TimeCommand(test_id=uuid.uuid4(), time=datetime.min.replace(tzinfo=timezone.utc)), "time"),
        (CallableCommand(test_id=uuid.uuid4(), callback=lambda: None), "callback"),
        (PlainCommand(uuid.uuid4(), ""), "content"),
    ],
)
def test_missing_required_field(cmd, field_name):
    with pytest.raises(CommandFieldError) as info:
        check_command(cmd)
    assert str(info.value) == f"missing field: {field_name}"
    assert info.value.field == field_name


@pytest.mark.parametrize(
    "cmd",
    [
        IntValueCommand(test_id=uuid.uuid4()),
        FloatValueCommand(test_id=uuid.uuid4()),
        BoolValueCommand(test_id=uuid.uuid4()),
        SliceCommand(test_id=uuid.uuid4(), slice=[]),
        MapCommand(test_id=uuid.uuid4(), map={}),
        StructCommand(test_id=uuid.uuid4(), struct=Inner("struct")),
        TimeCommand(test_id=uuid.uuid4(), time=datetime(2009, 11, 10, 23, tzinfo=timezone.utc)),
        OptionalCommand(test_id=uuid.uuid4()),
        PrivateCommand(test_id=uuid.uuid4()),
        PlainCommand(uuid.uuid4(), "content"),
    ],
)
def test_fields_that_pass(cmd):
    assert check_command(cmd) is None


def test_check_all_array_fields():
    cmd = ArrayCommand(uuid.uuid4(), ("string",), (0,), (Inner("struct"),))
    assert check_command(cmd) is None


def test_empty_array_field():
    cmd = ArrayCommand(uuid.uuid4(), ("",), (0,), (Inner("struct"),))
    with pytest.raises(CommandFieldError) as info:
        check_command(cmd)
    assert str(info.value) == "missing field: string_array"


def test_is_zero_fails_on_zeroable_int():
    cmd = ZeroableIntCommand(uuid.uuid4(), ZeroableInt(0), 0)
    assert isinstance(cmd.test_zeroable_int, IsZeroer)
    with pytest.raises(CommandFieldError) as info:
        check_command(cmd)
    assert str(info.value) == "missing field: test_zeroable_int"


def test_is_zero_passes_on_plain_int():
    cmd = ZeroableIntCommand(uuid.uuid4(), ZeroableInt(1), 0)
    assert check_command(cmd) is None