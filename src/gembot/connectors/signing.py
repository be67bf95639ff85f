"""Request envelope construction and HMAC signing for the Gemini private API.

Private requests carry their parameters in headers rather than the body::

    X-GEMINI-APIKEY     the API key
    X-GEMINI-PAYLOAD    base64(JSON(envelope))
    X-GEMINI-SIGNATURE  hex(HMAC-SHA384(secret, X-GEMINI-PAYLOAD))

where the envelope is the JSON object ``{"request": "/v1/<path>", "nonce": <int>, ...params}``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import math
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass

from gembot.errors import RequestBuildError
from gembot.logging import get_logger

API_VERSION = "1"

# Values the exchange accepts inside the payload object
ParamValue = str | int | float | bool

_RESERVED_KEYS = ("request", "nonce")

logger = get_logger("signing")


class NonceGenerator:
    """Hands out strictly increasing nonces derived from ``time.time_ns()``.

    Two calls within the same clock tick, or a wall clock stepping backwards,
    still produce increasing values: the next nonce is never lower than the
    previous one plus one. Safe to share between threads.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(time.time_ns(), self._last + 1)
            return self._last


def versioned_path(path: str) -> str:
    """Prefix an endpoint path with the API version (``order/new`` -> ``/v1/order/new``)."""
    return f"/v{API_VERSION}/{path.lstrip('/')}"


def _check_value(key: str, value: object) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise RequestBuildError(f"Parameter {key!r} must be a finite number, got {value!r}")
    if not isinstance(value, (str, int, float, bool)):
        raise RequestBuildError(
            f"Parameter {key!r} must be str, int, float or bool, got {type(value).__name__}"
        )


def build_envelope(
    path: str,
    params: Mapping[str, ParamValue] | None = None,
    nonce: int | None = None,
) -> dict[str, ParamValue]:
    """Build the pre-signature payload object for a private endpoint.

    Args:
        path: Endpoint path without the version prefix (e.g. "order/new").
        params: Extra request parameters. ``request`` and ``nonce`` are
            reserved; caller values for them are dropped.
        nonce: Nonce to use. Defaults to ``time.time_ns()``; connectors pass
            values from their own ``NonceGenerator``.

    Returns:
        The envelope mapping.

    Raises:
        RequestBuildError: If a parameter value is not a JSON primitive.
    """
    envelope: dict[str, ParamValue] = {}
    for key, value in (params or {}).items():
        if key in _RESERVED_KEYS:
            logger.warning("reserved_param_dropped", param=key, path=path)
            continue
        _check_value(key, value)
        envelope[key] = value

    envelope["request"] = versioned_path(path)
    envelope["nonce"] = time.time_ns() if nonce is None else nonce
    return envelope


@dataclass(frozen=True, slots=True)
class SignedHeaders:
    """The three authentication header values of a private request."""

    api_key: str
    payload: str
    signature: str

    def as_headers(self) -> dict[str, str]:
        return {
            "X-GEMINI-APIKEY": self.api_key,
            "X-GEMINI-PAYLOAD": self.payload,
            "X-GEMINI-SIGNATURE": self.signature,
        }


def encode_payload(envelope: Mapping[str, ParamValue]) -> str:
    """Serialize an envelope to JSON and base64-encode it.

    Raises:
        RequestBuildError: If the envelope is not JSON-serializable.
    """
    try:
        payload_json = json.dumps(envelope, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise RequestBuildError(f"Unable to JSON encode request: {e}") from e
    return base64.b64encode(payload_json.encode("utf-8")).decode("ascii")


def compute_signature(payload: str, api_secret: str) -> str:
    """Hex HMAC-SHA384 of the base64 payload keyed by the API secret."""
    return hmac.new(
        api_secret.encode("utf-8"), payload.encode("ascii"), hashlib.sha384
    ).hexdigest()


def sign_envelope(
    envelope: Mapping[str, ParamValue], api_key: str, api_secret: str
) -> SignedHeaders:
    """Encode and sign an envelope.

    Pure function of its inputs: the same envelope and secret always give the
    same payload and signature.

    Args:
        envelope: Output of ``build_envelope``.
        api_key: Public API key, sent as-is.
        api_secret: API secret, used only as the HMAC key.

    Raises:
        RequestBuildError: If the envelope cannot be encoded.
    """
    payload = encode_payload(envelope)
    return SignedHeaders(
        api_key=api_key,
        payload=payload,
        signature=compute_signature(payload, api_secret),
    )
