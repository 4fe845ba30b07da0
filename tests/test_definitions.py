"""Unit tests for form definition loading."""

import pytest

from formharness.definitions import DefinitionLoader
from formharness.errors import DefinitionNotFound


class TestResolve:
    """Test the resolution order."""

    def test_direct_path(self, tmp_path):
        (tmp_path / "vitals.xml").write_text("<htmlform/>", encoding="utf-8")
        loader = DefinitionLoader(root=f"{tmp_path}/", search_path=[])
        assert loader.resolve("vitals") == tmp_path / "vitals.xml"

    def test_search_path_fallback(self, tmp_path):
        forms = tmp_path / "suite" / "forms"
        forms.mkdir(parents=True)
        (forms / "vitals.html").write_text("<htmlform/>", encoding="utf-8")
        loader = DefinitionLoader(root="forms/", suffix=".html", search_path=[tmp_path / "missing", tmp_path / "suite"])
        assert loader.resolve("vitals") == forms / "vitals.html"

    def test_not_found_lists_candidates(self, tmp_path):
        loader = DefinitionLoader(root="nowhere/", search_path=[tmp_path])
        with pytest.raises(DefinitionNotFound) as exc_info:
            loader.resolve("vitals")
        error = exc_info.value
        assert error.form_name == "vitals"
        assert error.candidates == ["nowhere/vitals.xml", str(tmp_path / "nowhere" / "vitals.xml")]
        assert isinstance(error, FileNotFoundError)

    def test_relative_path(self):
        assert DefinitionLoader(root="tests/forms/", suffix=".xml").relative_path("vitals") == "tests/forms/vitals.xml"


class TestLoad:
    """Test reading definition payloads."""

    def test_line_endings_normalized(self, tmp_path):
        (tmp_path / "vitals.xml").write_bytes(b"<htmlform>\r\n  Weight: <obs/>\r\n</htmlform>")
        definition = DefinitionLoader(root=f"{tmp_path}/").load("vitals")
        assert definition.name == "vitals"
        assert definition.path == tmp_path / "vitals.xml"
        assert definition.payload == "<htmlform>\n  Weight: <obs/>\n</htmlform>\n"

    def test_utf8(self, tmp_path):
        (tmp_path / "f.xml").write_text("Température: <obs/>", encoding="utf-8")
        assert "Température" in DefinitionLoader(root=f"{tmp_path}/").load("f").payload
