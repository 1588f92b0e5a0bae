"""
Stripe response adapter.

Every assumption about the shape of Stripe objects lives here. Other code
works with ExternalSubscription and InvoicePreview only.

Billing period compatibility shim
---------------------------------
Stripe API versions before 2025-03-31 expose ``current_period_start`` /
``current_period_end`` on the subscription. Later versions moved them to
each subscription item. Some objects (e.g. freshly created subscriptions
returned by older test fixtures) carry neither; for those the period is
computed from ``billing_cycle_anchor`` and the price's recurring interval.
Lookup order: subscription fields, then first item fields, then computed.

Invoice line proration flags moved the same way: top-level ``proration``
on older versions, ``parent.subscription_item_details.proration`` on newer.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from dateutil.relativedelta import relativedelta

from .models import (
    ExternalSubscription,
    InvoiceLine,
    InvoicePreview,
    PeriodSource,
)

PERIOD_FIELDS_MOVED_IN = "2025-03-31"

_INTERVAL_STEPS = {
    "day": lambda n: relativedelta(days=n),
    "week": lambda n: relativedelta(weeks=n),
    "month": lambda n: relativedelta(months=n),
    "year": lambda n: relativedelta(years=n),
}


def _ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _id_of(value: Any) -> Optional[str]:
    """Expandable fields are either an id string or an object with an id."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.get("id")


def first_item(subscription: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    items = subscription.get("items") or {}
    data = items.get("data") or []
    return data[0] if data else None


def _recurring(subscription: Mapping[str, Any], item: Optional[Mapping[str, Any]]) -> tuple[str, int]:
    price = (item or {}).get("price") or {}
    recurring = price.get("recurring") or subscription.get("plan") or {}
    interval = recurring.get("interval") or "month"
    count = recurring.get("interval_count") or 1
    return interval, int(count)


def extract_billing_period(
    subscription: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime, PeriodSource]:
    """
    Get the current billing period of a Stripe subscription.

    Args:
        subscription: Stripe subscription object (or dict of the same shape)
        now: Reference time for the computed fallback

    Returns:
        (period_start, period_end, where the values came from)

    Raises:
        ValueError: If neither period fields nor a billing_cycle_anchor exist
    """
    start = _ts(subscription.get("current_period_start"))
    end = _ts(subscription.get("current_period_end"))
    if start and end:
        return start, end, PeriodSource.SUBSCRIPTION

    item = first_item(subscription)
    if item is not None:
        start = _ts(item.get("current_period_start"))
        end = _ts(item.get("current_period_end"))
        if start and end:
            return start, end, PeriodSource.ITEM

    anchor = _ts(subscription.get("billing_cycle_anchor"))
    if anchor is None:
        raise ValueError(
            f"Subscription {subscription.get('id')} has no billing period or cycle anchor"
        )

    interval, count = _recurring(subscription, item)
    step = _INTERVAL_STEPS.get(interval, _INTERVAL_STEPS["month"])(count)
    now = now or datetime.now(timezone.utc)

    # Walk forward from the anchor to the period containing now
    start = anchor
    end = anchor + step
    while end <= now:
        start = end
        end = start + step
    return start, end, PeriodSource.COMPUTED


def subscription_from_stripe(
    subscription: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> ExternalSubscription:
    """
    Normalize a Stripe subscription.

    Raises:
        ValueError: If the subscription has no items or no usable period
    """
    item = first_item(subscription)
    if item is None:
        raise ValueError(f"Subscription {subscription.get('id')} has no items")

    price = item.get("price") or {}
    start, end, source = extract_billing_period(subscription, now)

    return ExternalSubscription(
        id=subscription["id"],
        status=subscription.get("status") or "active",
        customer_id=_id_of(subscription.get("customer")),
        price_id=_id_of(price) or "",
        item_id=item["id"],
        schedule_id=_id_of(subscription.get("schedule")),
        current_period_start=start,
        current_period_end=end,
        period_source=source,
    )


def _line_is_proration(line: Mapping[str, Any]) -> bool:
    if line.get("proration") is not None:
        return bool(line.get("proration"))
    parent = line.get("parent") or {}
    details = parent.get("subscription_item_details") or {}
    return bool(details.get("proration"))


def invoice_preview_from_stripe(invoice: Mapping[str, Any]) -> InvoicePreview:
    """Normalize a Stripe preview invoice."""
    lines_obj = invoice.get("lines") or {}
    lines = [
        InvoiceLine(
            amount=int(line.get("amount") or 0),
            description=line.get("description"),
            proration=_line_is_proration(line),
        )
        for line in (lines_obj.get("data") or [])
    ]
    return InvoicePreview(
        amount_due=int(invoice.get("amount_due") or 0),
        currency=invoice.get("currency") or "usd",
        lines=lines,
        period_start=_ts(invoice.get("period_start")),
        period_end=_ts(invoice.get("period_end")),
    )
