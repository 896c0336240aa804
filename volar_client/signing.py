"""
Request canonicalization and signing for the Volar client API.

Every request carries an ``api_key`` and a ``signature`` query parameter.
The signature is a truncated, base64-encoded SHA-256 digest over the shared
secret, the HTTP method, the route, the sorted request parameters and the raw
request body. The server recomputes it from what it receives, so the
parameters signed here must be exactly the parameters transmitted.
"""

import base64
import hashlib
from typing import Any, Dict, Mapping, Optional, Union

from .constants import RESERVED_PARAMS, SIGNATURE_LENGTH
from .exceptions import ParameterError, SigningError


def scalar_to_str(value: Any) -> str:
    """Convert a scalar parameter value to its transmitted string form."""
    if isinstance(value, bool):
        return '1' if value else '0'
    return str(value)


def canonicalize(params: Optional[Mapping[str, Any]],
                 legacy_nested: bool = False) -> Dict[str, str]:
    """
    Flatten a parameter mapping into string keys and string values.

    Nested mappings become bracketed keys, one per terminal scalar
    (``{"a": {"b": 1}}`` -> ``{"a[b]": "1"}``); lists and tuples use
    positional indices (``{"ids": [4, 5]}`` -> ``{"ids[0]": "4", "ids[1]": "5"}``).
    Booleans become ``"1"``/``"0"`` and ``None`` values are dropped.

    Args:
        params: Caller parameters
        legacy_nested: Reproduce the flattening of older deployed
            clients, where every entry of a nested mapping produced a
            ``key[subkey[`` key holding the whole nested mapping

    Returns:
        Flat mapping of canonical parameters

    Raises:
        ParameterError: If a reserved key is supplied or two values
            flatten to the same key
    """
    if not params:
        return {}

    canonical = {}
    for key, value in params.items():
        key = str(key)
        if key in RESERVED_PARAMS:
            raise ParameterError(f"'{key}' is a reserved parameter")

        if legacy_nested:
            _add(canonical, _legacy_items(key, value))
        else:
            _add(canonical, _flatten(key, value))
    return canonical


def _add(canonical: Dict[str, str], items):
    for key, value in items:
        if key in canonical:
            raise ParameterError(f"parameter '{key}' is given more than once")
        canonical[key] = value


def _flatten(prefix: str, value: Any):
    if value is None:
        return
    if isinstance(value, Mapping):
        for subkey, subvalue in value.items():
            yield from _flatten(f"{prefix}[{subkey}]", subvalue)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _flatten(f"{prefix}[{index}]", item)
    else:
        yield prefix, scalar_to_str(value)


def _legacy_items(key: str, value: Any):
    if isinstance(value, Mapping):
        rendered = _legacy_inspect(value)
        for subkey in value:
            yield f"{key}[{_legacy_scalar(subkey)}[", rendered
    elif value is None:
        yield key, ''
    else:
        yield key, _legacy_scalar(value)


def _legacy_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _legacy_inspect(value: Any) -> str:
    # Textual form older clients signed for a nested mapping
    if isinstance(value, Mapping):
        pairs = (f"{_legacy_inspect(k)}=>{_legacy_inspect(v)}" for k, v in value.items())
        return '{' + ', '.join(pairs) + '}'
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(_legacy_inspect(v) for v in value) + ']'
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def normalize_route(route: str) -> str:
    """Strip one trailing and then one leading path separator."""
    route = route or ''
    if route.endswith('/'):
        route = route[:-1]
    if route.startswith('/'):
        route = route[1:]
    return route


def normalize_method(method: Optional[str]) -> str:
    """Default an empty method to GET and uppercase it."""
    return (method or 'GET').upper()


def _encode_ascii(text: str, what: str) -> bytes:
    try:
        return text.encode('ascii')
    except UnicodeEncodeError as e:
        raise SigningError(f"{what} contains non-ASCII characters: {e}") from e


def signing_input(secret: str, method: Optional[str], route: str,
                  params: Mapping[str, Any],
                  body: Optional[Union[str, bytes]] = None) -> bytes:
    """
    Build the exact byte string that is hashed for a request.

    Format: secret + METHOD + route + k1=v1k2=v2... + body

    Raises:
        SigningError: If any component is not representable as ASCII
    """
    parts = [
        _encode_ascii(str(secret), 'secret'),
        _encode_ascii(normalize_method(method), 'method'),
        _encode_ascii(normalize_route(route), 'route'),
    ]
    for key in sorted(params, key=str):
        pair = f"{key}={params[key]}"
        parts.append(_encode_ascii(pair, f"parameter '{key}'"))

    if isinstance(body, bytes):
        try:
            body.decode('ascii')
        except UnicodeDecodeError as e:
            raise SigningError(f"body contains non-ASCII bytes: {e}") from e
        parts.append(body)
    elif isinstance(body, str) and body:
        parts.append(_encode_ascii(body, 'body'))

    return b''.join(parts)


def build_signature(secret: str, method: Optional[str], route: str,
                    params: Mapping[str, Any],
                    body: Optional[Union[str, bytes]] = None) -> str:
    """
    Compute the request signature.

    Args:
        secret: Shared secret of the api user
        method: HTTP method, GET when empty
        route: API route, leading/trailing separator optional
        params: Canonical parameters including ``api_key``
        body: Raw request body, signed only when non-empty

    Returns:
        Signature string of at most 43 characters, without ``=`` padding

    Raises:
        SigningError: If the signing input is not ASCII
    """
    digest = hashlib.sha256(signing_input(secret, method, route, params, body)).digest()
    encoded = base64.b64encode(digest).decode('ascii')
    return encoded[:SIGNATURE_LENGTH].rstrip('=')
