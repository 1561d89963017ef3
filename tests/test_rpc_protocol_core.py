import json

import pytest

from caiide_memory.rpc.errors import TransportDecodeError
from caiide_memory.rpc.protocol import ErrorCode, RequestEnvelope
from caiide_memory.rpc.serialization import (
    decode_response_line,
    decode_response_payload,
    encode_request_line,
    normalize_rpc_error,
)


def test_encode_request_line_shape():
    line = encode_request_line(RequestEnvelope(id=7, method="memory_search", params={"query": "foo", "limit": 20}))
    assert line.endswith("\n")
    assert line.count("\n") == 1
    assert json.loads(line) == {
        "protocol": "2.0",
        "method": "memory_search",
        "params": {"query": "foo", "limit": 20},
        "id": 7,
    }


def test_encode_request_line_defaults_params_to_empty_object():
    line = encode_request_line(RequestEnvelope(id=1, method="memory_stats"))
    assert json.loads(line)["params"] == {}


def test_encode_keeps_newlines_inside_strings_escaped():
    line = encode_request_line(RequestEnvelope(id=2, method="memory_store", params={"content": "a\nb"}))
    assert line.count("\n") == 1


def test_decode_result_envelope():
    response = decode_response_line('{"protocol":"2.0","id":3,"result":{"ok":true}}')
    assert response.id == 3
    assert response.ok
    assert response.result == {"ok": True}


def test_decode_null_result_is_a_result():
    response = decode_response_line('{"protocol":"2.0","id":3,"result":null}')
    assert response.ok
    assert response.result is None


def test_decode_error_envelope():
    response = decode_response_line('{"protocol":"2.0","id":4,"error":{"code":-32000,"message":"boom","data":{"x":1}}}')
    assert not response.ok
    assert response.error.code == -32000
    assert response.error.message == "boom"
    assert response.error.data == {"x": 1}


def test_error_is_authoritative_when_both_present():
    response = decode_response_payload(
        {"protocol": "2.0", "id": 5, "result": "ignored", "error": {"code": 1, "message": "bad"}}
    )
    assert not response.ok
    assert response.result is None
    assert response.error.message == "bad"


def test_jsonrpc_tag_is_accepted():
    response = decode_response_payload({"jsonrpc": "2.0", "id": 6, "result": 1})
    assert response.result == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"protocol": "2.0", "id": 1},
        {"protocol": "1.0", "id": 1, "result": 1},
        {"protocol": "2.0", "id": "1", "result": 1},
        {"protocol": "2.0", "id": True, "result": 1},
        {"protocol": "2.0", "result": 1},
        ["not", "an", "object"],
    ],
)
def test_invalid_envelopes_are_rejected(payload):
    with pytest.raises(TransportDecodeError):
        decode_response_payload(payload)


def test_invalid_json_line_reports_the_line():
    with pytest.raises(TransportDecodeError) as excinfo:
        decode_response_line("{nope")
    assert excinfo.value.line == "{nope"
    assert excinfo.value.code == "DECODE_ERROR"


def test_normalize_rpc_error_with_non_dict_payload():
    err = normalize_rpc_error("boom")
    assert err.code == ErrorCode.INTERNAL_ERROR
    assert err.message == "rpc failed"


def test_normalize_rpc_error_coerces_numeric_string_code():
    err = normalize_rpc_error({"code": "-32601", "message": "missing"})
    assert err.code == -32601
    assert err.message == "missing"


def test_normalize_rpc_error_with_infinite_code_falls_back():
    payload = normalize_rpc_error(json.loads('{"code": Infinity, "message": "x"}'))
    assert payload.code == ErrorCode.INTERNAL_ERROR
    assert payload.message == "x"


def test_deeply_nested_line_is_a_decode_error():
    line = "[" * 100000 + "]" * 100000
    with pytest.raises(TransportDecodeError) as excinfo:
        decode_response_line(line)
    assert excinfo.value.line == line


def test_oversized_integer_is_a_decode_error():
    line = '{"protocol":"2.0","id":' + "9" * 5000 + ',"result":1}'
    with pytest.raises(TransportDecodeError):
        decode_response_line(line)
