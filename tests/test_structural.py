"""
Structural projection of values that have no projector.
"""

import datetime
import decimal
import enum
import uuid
from dataclasses import dataclass

import pytest

from rapid.projection import ProjectionFault, is_collection, to_primitive


class Color(enum.Enum):
    RED = "red"


@dataclass
class Point:
    x: int
    y: int


class Box:
    def __init__(self):
        self.width = 3
        self._secret = "hidden"


class Exportable:
    def to_dict(self):
        return {"kind": "exportable", "at": datetime.date(2020, 1, 2)}


class TestIsCollection:

    @pytest.mark.parametrize("value", [[1], (1,), {1}, frozenset(), iter([1]), (x for x in ())])
    def test_collections(self, value):
        assert is_collection(value)

    @pytest.mark.parametrize("value", ["abc", b"abc", {"a": 1}, Point(1, 2), list, 5, None])
    def test_not_collections(self, value):
        assert not is_collection(value)


class TestToPrimitive:

    def test_primitives_pass_through(self):
        assert to_primitive(None) is None
        assert to_primitive(True) is True
        assert to_primitive(1.5) == 1.5

    def test_scalar_conversions(self):
        assert to_primitive(Color.RED) == "red"
        assert to_primitive(datetime.datetime(2024, 1, 1, 8, 30)) == "2024-01-01T08:30:00"
        assert to_primitive(datetime.timedelta(minutes=2)) == 120.0
        assert to_primitive(decimal.Decimal("1.10")) == "1.10"
        assert to_primitive(uuid.UUID(int=0)) == "00000000-0000-0000-0000-000000000000"
        assert to_primitive(b"raw") == "raw"

    def test_containers(self):
        value = {"points": [Point(1, 2)], 3: {"b", "a"}}
        assert to_primitive(value) == {"points": [{"x": 1, "y": 2}], "3": ["a", "b"]}

    def test_to_dict_shape(self):
        assert to_primitive(Exportable()) == {"kind": "exportable", "at": "2020-01-02"}

    def test_public_attributes(self):
        assert to_primitive(Box()) == {"width": 3}

    def test_shared_reference_is_not_circular(self):
        point = Point(0, 0)
        assert to_primitive([point, point]) == [{"x": 0, "y": 0}, {"x": 0, "y": 0}]

    def test_circular_reference(self):
        loop = {}
        loop["self"] = loop
        with pytest.raises(ProjectionFault) as exc_info:
            to_primitive(loop)
        assert exc_info.value.code == "CIRCULAR_REFERENCE"
