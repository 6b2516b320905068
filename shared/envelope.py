from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict
import json

from shared.errors import MalformedEnvelopeError


@dataclass
class RequestEnvelope:
    """
    Outbound JSON-RPC frame:
    {
    "method": "LitRPC.<Verb>",
    "params": [ { ...payload... } ],
    "id":     INT
    }

    The node takes exactly one positional parameter, so `params` always
    wraps a single payload object.
    """
    method: str
    payload: Any
    id: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert RequestEnvelope to the wire dictionary"""
        return {
            'method': self.method,
            'params': [self.payload],
            'id': self.id,
        }

    def to_json(self) -> str:
        """Convert RequestEnvelope to JSON string"""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RequestEnvelope':
        """Parse a request frame (used by test doubles standing in for the node)"""
        params = data.get('params')
        if not isinstance(data.get('method'), str):
            raise MalformedEnvelopeError("'method' must be a string")
        if not isinstance(params, list) or len(params) != 1:
            raise MalformedEnvelopeError("'params' must be a one-element list")
        return cls(method=data['method'], payload=params[0], id=data.get('id'))

    @classmethod
    def from_json(cls, json_str: str | bytes) -> 'RequestEnvelope':
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise MalformedEnvelopeError(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedEnvelopeError("Request frame must be a JSON object")
        return cls.from_dict(data)


@dataclass
class ResponseEnvelope:
    """
    Inbound JSON-RPC frame:
    {
    "id":     INT,
    "error":  ANY | null,
    "result": ANY | null
    }

    A non-null `error` means the call failed; otherwise `result` is the reply.
    """
    id: int
    error: Any = None
    result: Any = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_json(cls, json_str: str | bytes) -> 'ResponseEnvelope':
        """Parse JSON string into ResponseEnvelope, validating structure"""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise MalformedEnvelopeError(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedEnvelopeError("Response frame must be a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResponseEnvelope':
        """Create ResponseEnvelope from dictionary, validating the id"""
        if 'id' not in data:
            raise MalformedEnvelopeError("Missing required field: 'id'")
        # bool is an int subclass; it never identifies a request
        if not isinstance(data['id'], int) or isinstance(data['id'], bool):
            raise MalformedEnvelopeError(f"'id' must be an integer, got {data['id']!r}")
        return cls(id=data['id'], error=data.get('error'), result=data.get('result'))

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'error': self.error, 'result': self.result}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))
