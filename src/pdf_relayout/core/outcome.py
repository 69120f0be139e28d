# SPDX-License-Identifier: Apache-2.0
"""Tagged results for operations that never raise.

Operations that recover locally from malformed input return an
``Outcome`` instead of silently substituting a default, so call sites
can tell a computed value from a fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """A value plus whether it is the documented default.

    Attributes:
        value: The computed value, or the default when degraded.
        degraded: True when the default replaced a computed value.
        reason: Short description of why the default was used.
    """

    value: T
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> Outcome[T]:
        """Wrap a successfully computed value."""
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> Outcome[T]:
        """Wrap a default value used in place of a computed one."""
        return cls(value=value, degraded=True, reason=reason)

    def unwrap(self) -> T:
        """Return the value, degraded or not."""
        return self.value
