"""Tests for NameDatabase — identifier allocation within one pass."""

from __future__ import annotations

from blockgen.names import NameDatabase, NameType, safe_name


class TestSafeName:
    def test_replaces_unsafe_characters(self):
        assert safe_name("my var") == "my_var"
        assert safe_name("héllo-there") == "h_llo_there"

    def test_leading_digit_gets_prefix(self):
        assert safe_name("1st") == "my_1st"

    def test_empty_name(self):
        assert safe_name("") == "unnamed"


class TestNameDatabase:
    def test_same_logical_name_is_stable(self):
        db = NameDatabase()
        assert db.get_name("total", NameType.VARIABLE) == "total"
        assert db.get_name("total", NameType.VARIABLE) == "total"

    def test_lookup_is_case_insensitive(self):
        db = NameDatabase()
        first = db.get_name("Score", NameType.VARIABLE)
        assert db.get_name("SCORE", NameType.VARIABLE) == first

    def test_reserved_words_are_avoided(self):
        db = NameDatabase(reserved_words={"for"})
        assert db.get_name("for", NameType.VARIABLE) == "for2"

    def test_types_share_one_pool(self):
        db = NameDatabase()
        assert db.get_name("x", NameType.VARIABLE) == "x"
        assert db.get_name("x", NameType.PROCEDURE) == "x2"

    def test_distinct_names_never_repeat(self):
        db = NameDatabase()
        db.populate(["count"], NameType.VARIABLE)
        assert db.get_distinct_name("count", NameType.VARIABLE) == "count2"
        assert db.get_distinct_name("count", NameType.VARIABLE) == "count3"

    def test_case_insensitive_type_avoids_reserved_words_in_any_case(self):
        db = NameDatabase(reserved_words={"abs"}, case_insensitive_types={NameType.PROCEDURE})
        assert db.get_name("Abs", NameType.PROCEDURE) == "Abs2"
        assert db.get_name("ABS", NameType.VARIABLE) == "ABS"

    def test_case_insensitive_type_avoids_taken_names_in_any_case(self):
        db = NameDatabase(case_insensitive_types={NameType.PROCEDURE})
        db.get_name("helper", NameType.PROCEDURE)
        assert db.get_distinct_name("Helper", NameType.PROCEDURE) == "Helper2"

    def test_case_sensitive_by_default(self):
        db = NameDatabase(reserved_words={"abs"})
        assert db.get_name("Abs", NameType.PROCEDURE) == "Abs"

    def test_variable_prefix_applies_to_variables_only(self):
        db = NameDatabase(variable_prefix="$")
        assert db.get_name("a", NameType.VARIABLE) == "$a"
        assert db.get_name("dev", NameType.DEVELOPER_VARIABLE) == "$dev"
        assert db.get_name("f", NameType.PROCEDURE) == "f"
        assert db.get_distinct_name("i", NameType.VARIABLE) == "$i"

    def test_reset_forgets_everything(self):
        db = NameDatabase()
        db.get_name("x", NameType.VARIABLE)
        db.reset()
        assert db.get_distinct_name("x", NameType.VARIABLE) == "x"
