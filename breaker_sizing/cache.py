import hashlib
import json
import threading
from collections import OrderedDict
from typing import Optional

from breaker_sizing.config import CalculatorConfig
from breaker_sizing.models import BreakerCalculationInput, CalculationResults, to_plain


def cache_key(data: BreakerCalculationInput, config: CalculatorConfig) -> str:
    """SHA-256 of the canonical JSON form of input and config."""
    payload = json.dumps(
        {"input": to_plain(data), "config": to_plain(config)},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CalculationCache:
    """Bounded LRU cache of calculation results, owned and passed in by the caller."""

    def __init__(self, max_size: int = 128):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, CalculationResults]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CalculationResults]:
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def put(self, key: str, result: CalculationResults) -> None:
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
