"""Tests for RuleTable — the block-type dispatch table."""

from __future__ import annotations

import pytest

from blockgen.errors import DuplicateRuleError, GenerationError, UnknownBlockTypeError
from blockgen.rules import RuleKind, RuleTable


def _value_rule(block, ctx):
    return "1", 0


def _statement_rule(block, ctx):
    return "pass\n"


class TestRuleTable:
    def test_register_and_lookup(self):
        table = RuleTable("python")
        table.value("math_number", _value_rule)
        rule = table.lookup("math_number")
        assert rule.kind == RuleKind.VALUE
        assert rule.is_value
        assert "math_number" in table

    def test_duplicate_registration_is_rejected(self):
        table = RuleTable("python")
        table.statement("controls_if", _statement_rule)
        with pytest.raises(DuplicateRuleError, match="controls_if"):
            table.statement("controls_if", _statement_rule)

    def test_alias_shares_the_rule(self):
        table = RuleTable("python")
        table.statement("controls_if", _statement_rule, suppress_prefix_suffix=True)
        table.alias("controls_ifelse", "controls_if")
        assert table.lookup("controls_ifelse") is table.lookup("controls_if")
        assert table.alias_target("controls_ifelse") == "controls_if"
        assert table.lookup("controls_ifelse").suppress_prefix_suffix

    def test_alias_of_unknown_target_fails(self):
        with pytest.raises(UnknownBlockTypeError):
            RuleTable("lua").alias("math_round", "math_single")

    def test_unknown_block_type(self):
        with pytest.raises(UnknownBlockTypeError, match="No lua rule for block type 'nope'") as info:
            RuleTable("lua").lookup("nope")
        assert isinstance(info.value, GenerationError)
        assert isinstance(info.value, ValueError)

    def test_block_types_sorted(self):
        table = RuleTable("php")
        table.value("text", _value_rule)
        table.value("logic_null", _value_rule)
        assert table.block_types() == ["logic_null", "text"]
        assert len(table) == 2
