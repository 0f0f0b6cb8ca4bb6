"""Protocol for the runtime configuration source."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol


class ConfigSource(Protocol):
    async def get_config(self, keys: Sequence[str]) -> dict[str, Any]:
        """Returns {key: value} for the keys that exist."""
        ...
