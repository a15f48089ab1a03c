"""Dashboard read model over sales and concert registrations."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from belako_api.core.clock import isoformat
from belako_api.models.sales import ConcertRegistration, Sale, SaleItemType, SaleStatus


@dataclass
class SalesSummary:
    total_sales_count: int
    paid_sales_count: int
    pending_sales_count: int
    merch_sales_count: int
    ticket_sales_count: int
    total_revenue_eur: Decimal
    total_concert_registrations: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalSalesCount": self.total_sales_count,
            "paidSalesCount": self.paid_sales_count,
            "pendingSalesCount": self.pending_sales_count,
            "merchSalesCount": self.merch_sales_count,
            "ticketSalesCount": self.ticket_sales_count,
            "totalRevenueEur": float(self.total_revenue_eur),
            "totalConcertRegistrations": self.total_concert_registrations,
        }


def serialize_sale(sale: Sale) -> dict[str, Any]:
    return {
        "id": str(sale.id),
        "createdAt": isoformat(sale.created_at),
        "paidAt": isoformat(sale.paid_at),
        "userEmail": sale.user_email,
        "customerEmail": sale.customer_email,
        "customerName": sale.customer_name or "",
        "productId": sale.product_id,
        "productName": sale.product_name,
        "itemType": sale.item_type.value,
        "amountEur": float(sale.amount_eur),
        "status": sale.status.value,
        "stripeSessionId": sale.stripe_session_id or "",
        "paymentIntentId": sale.payment_intent_id or "",
    }


def serialize_registration(registration: ConcertRegistration) -> dict[str, Any]:
    concert = registration.concert
    return {
        "id": str(registration.id),
        "createdAt": isoformat(registration.created_at),
        "userEmail": registration.user_email,
        "userName": registration.user_name or "",
        "status": registration.status.value,
        "source": registration.source.value,
        "concertId": registration.concert_id,
        "concertTitle": concert.title if concert is not None else "",
        "saleId": str(registration.sale_id) if registration.sale_id else None,
    }


class SalesOverviewService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def build_overview(self) -> dict[str, Any]:
        sales = (
            await self._db.execute(select(Sale).order_by(Sale.created_at.desc()))
        ).scalars().all()
        registrations = (
            await self._db.execute(
                select(ConcertRegistration)
                .options(selectinload(ConcertRegistration.concert))
                .order_by(ConcertRegistration.created_at.desc())
            )
        ).scalars().all()

        paid = [sale for sale in sales if sale.status is SaleStatus.PAID]
        revenue = sum((Decimal(sale.amount_eur) for sale in paid), Decimal("0"))
        summary = SalesSummary(
            total_sales_count=len(sales),
            paid_sales_count=len(paid),
            pending_sales_count=sum(1 for sale in sales if sale.status is SaleStatus.PENDING),
            merch_sales_count=sum(1 for sale in paid if sale.item_type is SaleItemType.MERCH),
            ticket_sales_count=sum(1 for sale in paid if sale.item_type is SaleItemType.TICKET),
            total_revenue_eur=revenue.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            total_concert_registrations=len(registrations),
        )

        return {
            "summary": summary.as_dict(),
            "sales": [serialize_sale(sale) for sale in sales],
            "concertRegistrations": [serialize_registration(item) for item in registrations],
        }


__all__ = ["SalesOverviewService", "SalesSummary", "serialize_registration", "serialize_sale"]
