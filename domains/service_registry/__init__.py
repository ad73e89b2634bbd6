"""
Service Registry Domain

Directory-based registry of services:
- Store → YAML service files under unsorted/, tag links under tagged/<tag>/
- Watchers → translate file system changes into registry domain events
- Signatures → verify clearsigned messages against a service's public keys
"""

__all__ = ["errors", "signatures", "store", "watchers"]
