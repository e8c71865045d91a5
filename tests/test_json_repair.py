from __future__ import annotations

import json

from stay_intake.modules.extraction.json_repair import repair_json

_SAMPLE = (
    '{"propertyName":"Casa X","guestName":"Ana Lima","numGuests":2,'
    '"totalAmount":"1000.00","paid":true,"tags":["a","b"],'
    '"extra":{"ok":false,"v":null,"ratio":-1.5e3},"note":"say \\"hi\\" \\u00e9"}'
)


def test_repair_json_returns_valid_json_unchanged():
    text = '{"a": 1, "b": [1, 2], "c": {"d": "x"}}'
    assert repair_json(text) == text
    assert repair_json(repair_json(text)) == text


def test_repair_json_closes_string_cut_mid_value():
    repaired = repair_json('{"propertyName":"Casa X","guestName":"Ana')
    assert repaired == '{"propertyName":"Casa X","guestName":"Ana"}'
    assert json.loads(repaired)["guestName"] == "Ana"


def test_repair_json_fills_value_after_colon():
    obj = json.loads(repair_json('{"guestName":"Ana","checkInDate":'))
    assert obj == {"guestName": "Ana", "checkInDate": ""}


def test_repair_json_drops_dangling_key_and_trailing_comma():
    assert json.loads(repair_json('{"a":"x","gue')) == {"a": "x"}
    assert json.loads(repair_json('{"a":"x","guestName"')) == {"a": "x"}
    assert json.loads(repair_json('{"a":"x",')) == {"a": "x"}


def test_repair_json_completes_literals_and_numbers():
    assert json.loads(repair_json('{"paid":tr')) == {"paid": True}
    assert json.loads(repair_json('{"v":nu')) == {"v": None}
    assert json.loads(repair_json('{"n":12.')) == {"n": 12}
    assert json.loads(repair_json('{"n":-')) == {"n": None}


def test_repair_json_closes_nested_containers_in_order():
    obj = json.loads(repair_json('{"tags":["a","b"],"extra":{"ok":[1,2'))
    assert obj == {"tags": ["a", "b"], "extra": {"ok": [1, 2]}}


def test_repair_json_drops_partial_escape():
    obj = json.loads(repair_json('{"note":"caf\\u00'))
    assert obj == {"note": "caf"}
    obj = json.loads(repair_json('{"note":"a\\'))
    assert obj == {"note": "a"}


def test_repair_json_every_truncation_parses():
    for cut in range(10, len(_SAMPLE) + 1):
        prefix = _SAMPLE[:cut]
        repaired = repair_json(prefix)
        try:
            obj = json.loads(repaired)
        except ValueError as e:
            raise AssertionError(f"cut={cut} prefix={prefix!r} repaired={repaired!r}") from e
        assert isinstance(obj, dict)
