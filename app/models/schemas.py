"""
Pydantic models for the service registry.

Shared data models across the application.
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# =====================================================
# Registry Models
# =====================================================

class PublicKey(BaseModel):
    """PGP public key attached to a service."""
    id: str = ""
    user_id: str = ""
    fingerprint: str = ""
    value: str = ""


class Service(BaseModel):
    """
    Service record.

    The ID is not part of the persisted document; it is derived from
    the file name.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(exclude=True)
    name: str = ""
    description: str = ""
    urls: List[str] = Field(default_factory=list)
    public_keys: List[PublicKey] = Field(default_factory=list)

    def set_urls(self, urls: List[str]) -> None:
        """Replace URLs, dropping duplicates while keeping order."""
        self.urls = list(dict.fromkeys(urls))

    def add_urls(self, urls: List[str]) -> None:
        """Append URLs that are not present yet."""
        self.set_urls(self.urls + list(urls))

    def set_public_keys(self, keys: List[PublicKey]) -> None:
        """Replace public keys, dropping duplicates by ID."""
        unique: Dict[str, PublicKey] = {}
        for key in keys:
            unique.setdefault(key.id, key)
        self.public_keys = list(unique.values())

    def add_public_keys(self, keys: List[PublicKey]) -> None:
        """Append public keys whose IDs are not present yet."""
        self.set_public_keys(self.public_keys + list(keys))

    def to_document(self) -> Dict[str, Any]:
        """Return the mapping persisted to YAML."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, service_id: str, data: Optional[Dict[str, Any]]) -> "Service":
        """Build a service from a parsed YAML mapping."""
        fields = dict(data or {})
        fields["id"] = service_id
        return cls.model_validate(fields)


# =====================================================
# API Response Models
# =====================================================

class ServiceList(BaseModel):
    """List of service IDs."""
    services: List[str]
    total: int


class TagList(BaseModel):
    """List of tags."""
    tags: List[str]
    total: int


class ServiceDetail(BaseModel):
    """Service with its tags."""
    id: str
    name: str
    description: str
    urls: List[str]
    public_keys: List[PublicKey]
    tags: List[str]
