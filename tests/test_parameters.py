"""Unit tests for SubmissionParameters."""

from datetime import date

import pytest

from formharness.clinical import Concept, Location
from formharness.errors import UnsupportedValueType
from formharness.parameters import SubmissionParameters


class TestSetAndGet:
    """Test single-valued access."""

    def test_set_serializes_value(self):
        params = SubmissionParameters()
        params.set("w1", date(2012, 1, 30))
        params.set("w2", Location(location_id=2))
        params.set("w3", Concept(concept_id=1065))
        assert params.to_dict() == {"w1": "2012-01-30", "w2": "2", "w3": "1065"}

    def test_set_replaces(self):
        params = SubmissionParameters()
        params.add("w1", "a")
        params.add("w1", "b")
        params.set("w1", "c")
        assert params.get_all("w1") == ["c"]

    def test_get_default(self):
        assert SubmissionParameters().get("w1") is None
        assert SubmissionParameters().get("w1", "") == ""

    def test_initial_values(self):
        params = SubmissionParameters({"w4": 70, "w5": None})
        assert params.to_dict() == {"w4": "70", "w5": ""}

    def test_unsupported_value_raises(self):
        with pytest.raises(UnsupportedValueType):
            SubmissionParameters().set("w1", object())


class TestMultipleValues:
    """Test multi-valued names and ordering."""

    def test_add_appends(self):
        params = SubmissionParameters()
        params.add("w6", "1065")
        params.add("w6", "1066")
        assert params.get("w6") == "1065"
        assert params.get_all("w6") == ["1065", "1066"]
        assert len(params) == 1

    def test_insertion_order_kept(self):
        params = SubmissionParameters()
        for name in ("w3", "w1", "w2"):
            params.set(name, name)
        assert params.names() == ["w3", "w1", "w2"]
        assert list(params) == ["w3", "w1", "w2"]

    def test_items(self):
        params = SubmissionParameters()
        params.add("w1", "a")
        params.add("w1", "b")
        assert list(params.items()) == [("w1", ["a", "b"])]


class TestRemoveAndCompare:
    """Test removal, membership and equality."""

    def test_remove(self):
        params = SubmissionParameters({"w1": "x"})
        params.remove("w1")
        params.remove("w99")
        assert "w1" not in params
        assert len(params) == 0

    def test_equality(self):
        assert SubmissionParameters({"w1": 1}) == SubmissionParameters({"w1": "1"})
        assert SubmissionParameters({"w1": 1}) != SubmissionParameters({"w1": 2})
        assert SubmissionParameters() != {}
