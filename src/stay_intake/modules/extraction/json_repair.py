"""Heuristic completion of JSON objects cut short by the model's output limit.

This is not a parser: it closes whatever the truncation left open so that
``json.loads`` accepts the result, dropping at most the trailing member that
cannot be salvaged.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

_LITERALS = ("true", "false", "null")
_SCALAR_TAIL_RE = re.compile(r"([:\[,])\s*([^\s\"\[\]{},:]+)$")
_PARTIAL_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9a-fA-F]{0,3}$")


@dataclass
class _ScanState:
    stack: list[str] = field(default_factory=list)
    in_string: bool = False
    escaped: bool = False
    string_start: int = -1
    commas: list[int] = field(default_factory=list)


def repair_json(text: str) -> str:
    """Return `text` completed into parseable JSON where possible.

    Well-formed input is returned untouched. If nothing can be salvaged the
    best attempt is returned and the caller's ``json.loads`` reports the error.
    """
    if _parses(text):
        return text

    candidate = (text or "").strip()
    while True:
        repaired = _complete(candidate)
        if _parses(repaired):
            return repaired
        commas = _scan(candidate).commas
        if not commas:
            return repaired
        # Drop the last member and try again.
        candidate = candidate[: commas[-1]]


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def _scan(text: str) -> _ScanState:
    state = _ScanState()
    for i, ch in enumerate(text):
        if state.in_string:
            if state.escaped:
                state.escaped = False
            elif ch == "\\":
                state.escaped = True
            elif ch == '"':
                state.in_string = False
            continue
        if ch == '"':
            state.in_string = True
            state.string_start = i
        elif ch in "{[":
            state.stack.append(ch)
        elif ch in "}]":
            if state.stack:
                state.stack.pop()
        elif ch == ",":
            state.commas.append(i)
    return state


def _complete(text: str) -> str:
    s = text.rstrip()
    if s.endswith(","):
        s = s[:-1].rstrip()

    state = _scan(s)
    if state.in_string:
        if state.escaped:
            s = s[:-1]
        s = _PARTIAL_UNICODE_ESCAPE_RE.sub("", s)
        s += '"'
        state = _scan(s)

    if s.endswith('"') and _is_dangling_key(s, state):
        s = s[: state.string_start].rstrip()
        if s.endswith(","):
            s = s[:-1].rstrip()
    elif s.endswith(":"):
        s += '""'
    else:
        s = _complete_scalar_tail(s)

    closers = "".join("}" if opener == "{" else "]" for opener in reversed(state.stack))
    return s + closers


def _is_dangling_key(s: str, state: _ScanState) -> bool:
    if state.string_start < 0 or not state.stack or state.stack[-1] != "{":
        return False
    before = s[: state.string_start].rstrip()
    return before.endswith(("{", ","))


def _complete_scalar_tail(s: str) -> str:
    m = _SCALAR_TAIL_RE.search(s)
    if not m:
        return s
    token = m.group(2)
    for literal in _LITERALS:
        if literal.startswith(token):
            return s[: m.start(2)] + literal
    trimmed = token.rstrip(".eE+-")
    if not trimmed:
        return s[: m.start(2)] + "null"
    return s[: m.start(2)] + trimmed
