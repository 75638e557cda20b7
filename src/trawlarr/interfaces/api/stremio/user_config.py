"""Base64 JSON user config carried as the first URL path segment."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from trawlarr.domain.entities import UserConfig


class InvalidUserConfig(ValueError):
    """The path segment is not base64-encoded JSON."""


def decode_user_config(raw: str) -> UserConfig:
    """Decode ``raw`` (standard or url-safe base64, padding optional).

    Accepts the add-on's camelCase keys (``debridId``, ``debridApiKey``)
    as well as snake_case.

    Raises:
        InvalidUserConfig: Undecodable segment or non-object payload.
    """
    padded = raw + "=" * (-len(raw) % 4)
    try:
        data: Any = json.loads(base64.b64decode(padded, altchars=b"-_"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidUserConfig("User config is not base64 JSON") from e
    if not isinstance(data, dict):
        raise InvalidUserConfig("User config must be a JSON object")

    defaults = UserConfig()
    indexers = data.get("indexers") or defaults.indexers
    qualities = data.get("qualities") or defaults.qualities
    try:
        return UserConfig(
            debrid_id=str(data.get("debridId") or data.get("debrid_id") or ""),
            debrid_api_key=str(
                data.get("debridApiKey") or data.get("debrid_api_key") or ""
            ),
            indexers=[str(i) for i in indexers],
            qualities=[int(q) for q in qualities],
        )
    except (TypeError, ValueError) as e:
        raise InvalidUserConfig("User config has malformed fields") from e


def encode_user_config(config: UserConfig) -> str:
    payload = {
        "debridId": config.debrid_id,
        "debridApiKey": config.debrid_api_key,
        "indexers": config.indexers,
        "qualities": config.qualities,
    }
    # url-safe alphabet: the result is a single path segment
    return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
