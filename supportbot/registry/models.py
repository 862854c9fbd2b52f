"""Channel registration records."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from supportbot.content.catalog import parse_product


def _unique(values: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v.strip() for v in values if v and v.strip()))


@dataclass(frozen=True)
class ChannelRegistration:
    """One channel a tenant has put in scope for support."""

    channel_id: str
    display_name: str = ""
    allowed_products: tuple[str, ...] = ()
    supplemental_links: tuple[str, ...] = ()
    added_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    added_by: str = "admin"
    active: bool = True

    @classmethod
    def create(cls, channel_id: str, metadata: dict[str, Any] | None = None) -> "ChannelRegistration":
        """Build a new registration, validating products.

        Raises:
            UnknownSelectionError: If a product key is not declared
        """
        metadata = metadata or {}
        return cls(
            channel_id=channel_id,
            display_name=metadata.get("display_name") or "",
            allowed_products=_validated_products(metadata.get("allowed_products") or ()),
            supplemental_links=_unique(metadata.get("supplemental_links") or ()),
            added_by=metadata.get("added_by") or "admin",
            active=bool(metadata.get("active", True)),
        )

    def with_changes(self, changes: dict[str, Any]) -> "ChannelRegistration":
        """Copy with edited name, products, links or active flag."""
        updates: dict[str, Any] = {}
        if changes.get("display_name") is not None:
            updates["display_name"] = changes["display_name"]
        if changes.get("allowed_products") is not None:
            updates["allowed_products"] = _validated_products(changes["allowed_products"])
        if changes.get("supplemental_links") is not None:
            updates["supplemental_links"] = _unique(changes["supplemental_links"])
        if changes.get("active") is not None:
            updates["active"] = bool(changes["active"])
        return replace(self, **updates)

    def to_record(self) -> dict[str, Any]:
        """Stored JSON shape."""
        return {
            "channelId": self.channel_id,
            "addedAt": self.added_at.isoformat(),
            "addedBy": self.added_by,
            "name": self.display_name,
            "active": self.active,
            "products": list(self.allowed_products),
            "googleDocLinks": list(self.supplemental_links),
        }

    @classmethod
    def from_record(cls, channel_id: str, record: dict[str, Any]) -> "ChannelRegistration":
        """Parse a stored record.

        Raises:
            ValueError: If the record is not a valid registration
        """
        if not isinstance(record, dict):
            raise ValueError("registration record must be an object")
        added_at = record.get("addedAt")
        products = record.get("products") or []
        links = record.get("googleDocLinks") or []
        if not isinstance(products, list) or not isinstance(links, list):
            raise ValueError("products and googleDocLinks must be lists")
        return cls(
            channel_id=str(record.get("channelId") or channel_id),
            display_name=str(record.get("name") or ""),
            allowed_products=_unique([str(p) for p in products]),
            supplemental_links=_unique([str(link) for link in links]),
            added_at=datetime.fromisoformat(added_at) if added_at else datetime.fromtimestamp(0, UTC),
            added_by=str(record.get("addedBy") or "admin"),
            active=record.get("active") is not False,
        )


def _validated_products(products: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    return _unique([parse_product(p).value for p in products])
