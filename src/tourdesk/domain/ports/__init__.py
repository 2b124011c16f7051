"""Domain port definitions for adapters."""

from __future__ import annotations

from .host_sdk import HostCallback, HostCallResult, HostSdk, PlacementInfo, SdkProbe

__all__ = [
    "HostCallResult",
    "HostCallback",
    "HostSdk",
    "PlacementInfo",
    "SdkProbe",
]
