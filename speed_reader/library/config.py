from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CORRUPT_POLICY_EMPTY = "empty"
CORRUPT_POLICY_RAISE = "raise"


@dataclass
class EngineConfig:
    data_dir: Path
    # "empty" treats an unparseable document as an empty collection, "raise" refuses to touch it.
    corrupt_policy: str = CORRUPT_POLICY_EMPTY
    default_buffer_size: int = 1000

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.corrupt_policy not in (CORRUPT_POLICY_EMPTY, CORRUPT_POLICY_RAISE):
            raise ValueError(
                f"corrupt_policy must be '{CORRUPT_POLICY_EMPTY}' or '{CORRUPT_POLICY_RAISE}', "
                f"got {self.corrupt_policy!r}"
            )
        if self.default_buffer_size < 0:
            raise ValueError(f"default_buffer_size must be non-negative, got {self.default_buffer_size}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            data_dir=Path(os.getenv("SPEED_READER_DATA_DIR", "./data")),
            corrupt_policy=os.getenv("SPEED_READER_CORRUPT_POLICY", CORRUPT_POLICY_EMPTY).strip().lower(),
            default_buffer_size=int(os.getenv("SPEED_READER_BUFFER_SIZE", "1000")),
        )
