"""
Port allocation for debug and monitoring agents.
"""

from __future__ import annotations

from noderunner.core.launch.models import PortCategory, PortLease

DEFAULT_DEBUG_BASE = 5005
DEFAULT_MONITORING_BASE = 7005


class PortAllocator:
    """
    Two independent monotonic port counters owned by a single run.

    Each call returns the current value and then increments. Ports are never
    released, so a value is never handed out twice even if the spawn that
    used it failed. Not thread-safe; the launcher drives it from one thread.
    """

    def __init__(
        self,
        debug_base: int = DEFAULT_DEBUG_BASE,
        monitoring_base: int = DEFAULT_MONITORING_BASE,
    ) -> None:
        self._next = {
            PortCategory.DEBUG: debug_base,
            PortCategory.MONITORING: monitoring_base,
        }

    def lease(self, category: PortCategory) -> PortLease:
        value = self._next[category]
        self._next[category] = value + 1
        return PortLease(category=category, value=value)

    def next_debug_port(self) -> int:
        return self.lease(PortCategory.DEBUG).value

    def next_monitoring_port(self) -> int:
        return self.lease(PortCategory.MONITORING).value


__all__ = ["DEFAULT_DEBUG_BASE", "DEFAULT_MONITORING_BASE", "PortAllocator"]
