import json

import pytest


def test_request_envelope_wire_format():
    from shared.envelope import RequestEnvelope

    envelope = RequestEnvelope(method="LitRPC.Push", payload={"ChanIdx": 1, "Amt": 10}, id=7)

    assert json.loads(envelope.to_json()) == {"method": "LitRPC.Push", "params": [{"ChanIdx": 1, "Amt": 10}], "id": 7}
    assert RequestEnvelope.from_json(envelope.to_json()) == envelope


def test_response_envelope_defaults_missing_fields_to_null():
    from shared.envelope import ResponseEnvelope

    response = ResponseEnvelope.from_json('{"id": 3, "result": {"Status": "OK closed"}}')

    assert response == ResponseEnvelope(id=3, error=None, result={"Status": "OK closed"})
    assert not response.is_error
    assert ResponseEnvelope.from_json(b'{"id": 4, "error": "boom", "result": null}').is_error


@pytest.mark.parametrize("frame", ["[]", '{"id": true}', '{"id": null}', "{", '"text"'])
def test_response_envelope_rejects_unusable_frames(frame):
    from shared.envelope import ResponseEnvelope
    from shared.errors import MalformedEnvelopeError

    with pytest.raises(MalformedEnvelopeError):
        ResponseEnvelope.from_json(frame)


def test_pad_bytes_and_hex_helpers():
    from shared.utils import pad_bytes, split_hostport, to_hex

    assert pad_bytes(b"\x05", 4) == [5, 0, 0, 0]
    assert pad_bytes(bytes(range(5)), 4) == [0, 1, 2, 3, 4]
    assert pad_bytes([], 2) == [0, 0]
    assert to_hex([1, 254]) == "01fe"
    assert to_hex(None) == ""
    assert split_hostport("10.0.0.2:2449") == ("10.0.0.2", 2449)
    assert split_hostport("10.0.0.2") is None
    assert split_hostport("host:0") is None
