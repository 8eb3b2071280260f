"""Access control package."""

from confidential_accumulator.services.access.interface import AccessControlLedger
from confidential_accumulator.services.access.memory import InMemoryAccessControlLedger

__all__ = ["AccessControlLedger", "InMemoryAccessControlLedger"]
