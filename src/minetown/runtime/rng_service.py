from __future__ import annotations

import json
import random
from hashlib import sha256
from typing import Dict

STREAM_DAILY_PRICE = "price.daily"
STREAM_WEEKLY_PRICE = "price.weekly"


def _to_jsonable(value: object) -> object:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    raise TypeError(f"Unsupported scope value type: {type(value)!r}")


def _canonical_scope(scope: Dict[str, object] | None) -> str:
    if not scope:
        return "{}"
    return json.dumps(_to_jsonable(scope), sort_keys=True, separators=(",", ":"))


def derive_seed(seed: int, stream_key: str, *, scope: Dict[str, object] | None = None, salt: str = "") -> int:
    blob = f"{salt}|{seed}|{stream_key}|{_canonical_scope(scope)}"
    digest = sha256(blob.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def stream(seed: int, stream_key: str, *, scope: Dict[str, object] | None = None, salt: str = "") -> random.Random:
    """Return a fresh generator for ``(seed, stream_key, scope)``.

    The same arguments always yield the same sequence, so callers stay pure:
    nothing is consumed from a shared generator.
    """

    return random.Random(derive_seed(seed, stream_key, scope=scope, salt=salt))


def uniform_shift(
    seed: int,
    stream_key: str,
    band: float,
    *,
    scope: Dict[str, object] | None = None,
    salt: str = "",
) -> float:
    """Draw from ``U(-band, band)``; a non-positive band yields ``0.0``."""

    if band <= 0:
        return 0.0
    rng = stream(seed, stream_key, scope=scope, salt=salt)
    return rng.uniform(-band, band)


__all__ = ["STREAM_DAILY_PRICE", "STREAM_WEEKLY_PRICE", "derive_seed", "stream", "uniform_shift"]
