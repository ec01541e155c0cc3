"""Farm configuration — the constants fixed when a farm is constructed.

The reference deployment distributes 5,000,000 reward tokens (18 decimals)
over 14 periods of 44,800 blocks each, funded by a single transfer from the
funding authority that carries a 3-byte start block.

Configuration can come from three places:
- the dataclass defaults (the reference deployment);
- ``farm_params.json`` in a config directory (``from_config_dir``);
- ``LPFARM_*`` environment variables, optionally loaded from a ``.env``
  file (``from_env``).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from lpfarm.models.farm import FinalPeriodPolicy


PARAMS_FILENAME = "farm_params.json"

TOKEN_DECIMALS = 18
REFERENCE_TOTAL_FUNDING = 5_000_000 * 10**TOKEN_DECIMALS
REFERENCE_PERIOD_COUNT = 14
REFERENCE_PERIOD_LENGTH = 44_800


@dataclass(frozen=True)
class FarmConfig:
    """Immutable farm parameters.

    Attributes:
        total_funding: Exact reward amount the funding transfer must carry.
        period_count: Number of reward periods.
        period_length: Blocks per period.
        funding_authority: Only sender allowed to fund the farm.
        start_time_bytes: Width of the big-endian start block payload.
        final_period_policy: What the clock reports after the last period.
        replay_lookback: How many consumed nonces are checked when telling
            a replayed permit apart from a forged one.
    """

    total_funding: int = REFERENCE_TOTAL_FUNDING
    period_count: int = REFERENCE_PERIOD_COUNT
    period_length: int = REFERENCE_PERIOD_LENGTH
    funding_authority: str = "0x0000000000000000000000000000000000000000"
    start_time_bytes: int = 3
    final_period_policy: FinalPeriodPolicy = FinalPeriodPolicy.CLAMP
    replay_lookback: int = 32

    def __post_init__(self) -> None:
        if self.total_funding <= 0:
            raise ValueError("total_funding must be positive")
        if self.period_count <= 0:
            raise ValueError("period_count must be positive")
        if self.period_length <= 0:
            raise ValueError("period_length must be positive")
        if self.total_funding < self.period_count:
            raise ValueError("total_funding must cover at least one unit per period")
        if self.start_time_bytes <= 0:
            raise ValueError("start_time_bytes must be positive")
        if self.replay_lookback < 0:
            raise ValueError("replay_lookback must be >= 0")
        if not self.funding_authority:
            raise ValueError("funding_authority is required")
        if not isinstance(self.final_period_policy, FinalPeriodPolicy):
            object.__setattr__(
                self, "final_period_policy", FinalPeriodPolicy(self.final_period_policy),
            )

    @property
    def weekly_incentive(self) -> int:
        """Reward pot per period. The remainder of the division stays in custody."""
        return self.total_funding // self.period_count

    @property
    def undistributed_remainder(self) -> int:
        return self.total_funding - self.weekly_incentive * self.period_count

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FarmConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for key in ("total_funding", "period_count", "period_length",
                    "start_time_bytes", "replay_lookback"):
            if key in kwargs:
                kwargs[key] = int(kwargs[key])
        if "final_period_policy" in kwargs:
            kwargs["final_period_policy"] = FinalPeriodPolicy(kwargs["final_period_policy"])
        return cls(**kwargs)

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> FarmConfig:
        """Load ``farm_params.json`` from a config directory."""
        path = Path(config_dir) / PARAMS_FILENAME
        with path.open("r", encoding="utf-8") as handle:
            return cls.from_mapping(json.load(handle))

    @classmethod
    def from_env(
        cls,
        dotenv_path: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> FarmConfig:
        """Load overrides from ``LPFARM_*`` variables.

        When ``env`` is omitted, ``os.environ`` is used after loading
        ``dotenv_path`` (or a ``.env`` found from the working directory).
        Existing environment variables win over the file.
        """
        if env is None:
            if dotenv_path is not None:
                load_dotenv(dotenv_path)
            else:
                load_dotenv()
            env = os.environ

        data: dict[str, Any] = {}
        for f in fields(cls):
            value = env.get(f"LPFARM_{f.name.upper()}")
            if value not in (None, ""):
                data[f.name] = value
        return cls.from_mapping(data)
