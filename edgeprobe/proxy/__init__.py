"""Egress pool package: node rotation with failure-triggered cooldown."""

from edgeprobe.proxy.manager import EgressPool
from edgeprobe.proxy.types import EgressNode

__all__ = ["EgressNode", "EgressPool"]
