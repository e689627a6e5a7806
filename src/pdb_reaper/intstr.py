"""
Int-or-percentage values as used by PodDisruptionBudget bounds.

The Kubernetes client hands ``maxUnavailable``/``minAvailable`` back as
either an ``int`` or a ``str`` such as ``"25%"``. ``IntOrPercent`` makes
the two cases explicit so callers never guess which one they hold.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

from pdb_reaper.exceptions import IntOrPercentError


@dataclass(frozen=True)
class IntOrPercent:
    """Either an absolute count or a percentage of a total"""

    value: int
    is_percent: bool = False

    @classmethod
    def absolute(cls, value: int) -> "IntOrPercent":
        return cls(value=value, is_percent=False)

    @classmethod
    def percentage(cls, value: int) -> "IntOrPercent":
        return cls(value=value, is_percent=True)

    @classmethod
    def parse(cls, raw: Union[int, str, None]) -> Optional["IntOrPercent"]:
        """Build from the raw API value; None stays None.

        Strings must carry a trailing ``%``. A bare numeric string is
        rejected, matching how the API server treats a string-typed value.
        """
        if raw is None:
            return None
        if isinstance(raw, bool):
            raise IntOrPercentError(f"invalid value for IntOrString: {raw!r}")
        if isinstance(raw, int):
            return cls.absolute(raw)
        if isinstance(raw, str):
            if not raw.endswith("%"):
                raise IntOrPercentError(
                    f"invalid value for IntOrString: invalid type: string is not a percentage: {raw!r}"
                )
            try:
                return cls.percentage(int(raw[:-1]))
            except ValueError:
                raise IntOrPercentError(f"invalid value for IntOrString: {raw!r}") from None
        raise IntOrPercentError(f"invalid type for IntOrString: {type(raw).__name__}")

    def resolve(self, total: int, round_up: bool = True) -> int:
        """Resolve against ``total``.

        Absolute values are returned as-is. Percentages are scaled by
        ``total`` and rounded up (ceiling) unless ``round_up`` is False,
        in which case they are rounded down.
        """
        if not self.is_percent:
            return self.value
        scaled = self.value * total / 100
        return math.ceil(scaled) if round_up else math.floor(scaled)

    def __str__(self) -> str:
        return f"{self.value}%" if self.is_percent else str(self.value)
