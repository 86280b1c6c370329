"""Codecs: encode/decode values for the mirror's text column."""

from __future__ import annotations

import base64
import json
import pickle
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class Codec:
    """Turns stored values into text and back.

    Mirrors only ever see the encoded text; the store applies
    ``encode`` on every write and ``decode`` when replaying rows.
    """

    encode: Callable[[Any], str]
    decode: Callable[[str], Any]


def json_codec(
    sort_keys: bool = False,
    default: Callable[[Any], Any] | None = None,
) -> Codec:
    """JSON text codec (the default).

    Args:
        sort_keys: Emit mapping keys in sorted order.
        default: Fallback for objects ``json`` cannot serialize,
            passed through to ``json.dumps``.
    """

    def encode(val: Any) -> str:
        return json.dumps(val, sort_keys=sort_keys, default=default)

    return Codec(encode=encode, decode=json.loads)


def pickle_codec() -> Codec:
    """Pickle codec, base64-wrapped so it fits a text column.

    Only decode data you wrote yourself: unpickling runs arbitrary code.
    """

    def encode(val: Any) -> str:
        return base64.b64encode(pickle.dumps(val)).decode("ascii")

    def decode(raw: str) -> Any:
        return pickle.loads(base64.b64decode(raw.encode("ascii")))

    return Codec(encode=encode, decode=decode)
