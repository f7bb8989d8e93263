"""Terse constructors for block trees used across the generator tests."""

from __future__ import annotations

from typing import Any, Optional

from blockgen.blocks import Block


def block(
    type_: str,
    fields: Optional[dict[str, Any]] = None,
    values: Optional[dict[str, Optional[Block]]] = None,
    statements: Optional[dict[str, Optional[Block]]] = None,
    next_block: Optional[Block] = None,
    **kwargs: Any,
) -> Block:
    return Block(
        type=type_,
        fields=fields or {},
        values=values or {},
        statements=statements or {},
        next_block=next_block,
        **kwargs,
    )


def num(value: Any) -> Block:
    return block("math_number", {"NUM": value})


def var(name: str) -> Block:
    return block("variables_get", {"VAR": name})


def boolean(value: bool) -> Block:
    return block("logic_boolean", {"BOOL": "TRUE" if value else "FALSE"})


def text(value: str) -> Block:
    return block("text", {"TEXT": value})


def set_var(name: str, value: Optional[Block], next_block: Optional[Block] = None, **kwargs: Any) -> Block:
    return block("variables_set", {"VAR": name}, {"VALUE": value}, next_block=next_block, **kwargs)


def arith(op: str, a: Optional[Block], b: Optional[Block]) -> Block:
    return block("math_arithmetic", {"OP": op}, {"A": a, "B": b})


def compare(op: str, a: Optional[Block], b: Optional[Block]) -> Block:
    return block("logic_compare", {"OP": op}, {"A": a, "B": b})


def logic(op: str, a: Optional[Block] = None, b: Optional[Block] = None) -> Block:
    return block("logic_operation", {"OP": op}, {"A": a, "B": b})


def ternary(cond: Optional[Block], then: Optional[Block], otherwise: Optional[Block]) -> Block:
    return block("logic_ternary", values={"IF": cond, "THEN": then, "ELSE": otherwise})


def negate_number(arg: Optional[Block]) -> Block:
    return block("math_single", {"OP": "NEG"}, {"NUM": arg})


def if_block(*branches: tuple[Optional[Block], Optional[Block]], else_body: Any = False, **kwargs: Any) -> Block:
    """``controls_if`` with one ``(condition, body)`` pair per IFn/DOn socket.

    Pass ``else_body=None`` for a declared but empty ELSE socket.
    """
    values = {f"IF{n}": cond for n, (cond, _) in enumerate(branches)}
    statements = {f"DO{n}": body for n, (_, body) in enumerate(branches)}
    if else_body is not False:
        statements["ELSE"] = else_body
    return block("controls_if", values=values, statements=statements, **kwargs)


def while_loop(cond: Optional[Block], body: Optional[Block] = None, mode: str = "WHILE", **kwargs: Any) -> Block:
    return block("controls_whileUntil", {"MODE": mode}, {"BOOL": cond}, {"DO": body}, **kwargs)


def repeat(times: Any, body: Optional[Block] = None) -> Block:
    times_block = times if isinstance(times, Block) else num(times)
    return block("controls_repeat_ext", values={"TIMES": times_block}, statements={"DO": body})


def flow(kind: str, **kwargs: Any) -> Block:
    return block("controls_flow_statements", {"FLOW": kind}, **kwargs)


def procedure(
    name: str,
    params: tuple[str, ...] = (),
    body: Optional[Block] = None,
    returns: Optional[Block] = None,
    **kwargs: Any,
) -> Block:
    values = {"RETURN": returns} if returns is not None else {}
    return block(
        "procedures_defreturn" if returns is not None else "procedures_defnoreturn",
        {"NAME": name},
        values,
        {"STACK": body},
        extra_state={"params": list(params)},
        **kwargs,
    )


def call(name: str, *args: Block, returns: bool = True, next_block: Optional[Block] = None) -> Block:
    return block(
        "procedures_callreturn" if returns else "procedures_callnoreturn",
        {"NAME": name},
        {f"ARG{i}": arg for i, arg in enumerate(args)},
        extra_state={"params": [f"arg{i}" for i in range(len(args))]},
        next_block=next_block,
    )
