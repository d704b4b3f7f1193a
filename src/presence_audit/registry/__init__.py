"""Remote presence registry access."""

from presence_audit.registry.client import RegistryClient, StorePresence

__all__ = ["RegistryClient", "StorePresence"]
