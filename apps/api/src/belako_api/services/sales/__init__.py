"""Sales ledger services."""

from .overview import SalesOverviewService, SalesSummary, serialize_registration, serialize_sale
from .reconciler import (
    ReconcileResult,
    SaleEvent,
    SaleReconciler,
    concert_id_from_product_id,
    item_type_from_product_id,
    map_provider_status,
)
from .stripe_mapping import sale_event_from_checkout_session, sale_event_from_payment_intent

__all__ = [
    "ReconcileResult",
    "SaleEvent",
    "SaleReconciler",
    "SalesOverviewService",
    "SalesSummary",
    "concert_id_from_product_id",
    "item_type_from_product_id",
    "map_provider_status",
    "sale_event_from_checkout_session",
    "sale_event_from_payment_intent",
    "serialize_registration",
    "serialize_sale",
]
