from .content import (
    CatalogService,
    serialize_concert,
    serialize_live,
    serialize_rewards_config,
    serialize_store_item,
)

__all__ = [
    "CatalogService",
    "serialize_concert",
    "serialize_live",
    "serialize_rewards_config",
    "serialize_store_item",
]
