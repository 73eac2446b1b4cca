# Overview: Service-layer operations for reporting; sales reports and role dashboards.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Restaurant, Sale, SaleItem, User
from ..models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_SUPER_ADMIN, ROLE_WAITER
from .subscription_service import LIMIT_KEYS, get_current_subscription, get_limitations, current_usage
from restopos.currency import ZERO, money_str, quantize_money
from restopos.time_utils import period_bounds, previous_period_bounds, to_utc_z, utcnow


REPORT_PERIODS = ("day", "week", "month", "year")
TOP_PRODUCTS_LIMIT = 10
LOW_STOCK_LIMIT = 10
RECENT_SALES_LIMIT = 5


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _window(query, start: datetime, end: datetime):
    return query.filter(
        Sale.deleted_at.is_(None),
        Sale.created_at >= start,
        Sale.created_at < end,
    )


def _totals(restaurant_id: int, start: datetime, end: datetime, user_id: int | None = None) -> dict:
    query = db.session.query(
        func.coalesce(func.sum(Sale.total_fc), 0),
        func.coalesce(func.sum(Sale.total_usd), 0),
        func.count(Sale.id),
    ).filter(Sale.restaurant_id == restaurant_id)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    total_fc, total_usd, count = _window(query, start, end).one()
    return {
        "total_fc": quantize_money(total_fc),
        "total_usd": quantize_money(total_usd),
        "count": int(count or 0),
    }


def variation_percent(current: Decimal, previous: Decimal) -> Decimal:
    """
    Change against the previous period, in percent, 2 places.

    100 when there was nothing before but something now; 0 when both are empty.
    """
    if previous > 0:
        return quantize_money((current - previous) / previous * 100)
    if current > 0:
        return Decimal("100.00")
    return Decimal("0.00")


def _top_products(restaurant_id: int, start: datetime, end: datetime, limit: int) -> list[dict]:
    rows = (
        db.session.query(
            SaleItem.product_id,
            Product.name,
            func.sum(SaleItem.quantity).label("quantity"),
            func.sum(SaleItem.subtotal_fc).label("total_fc"),
            func.sum(SaleItem.subtotal_usd).label("total_usd"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .outerjoin(Product, Product.id == SaleItem.product_id)
        .filter(Sale.restaurant_id == restaurant_id)
    )
    rows = (
        _window(rows, start, end)
        .group_by(SaleItem.product_id, Product.name)
        .order_by(func.sum(SaleItem.quantity).desc(), SaleItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.product_id,
            "product_name": row.name or "Produit supprimé",
            "quantity": int(row.quantity or 0),
            "total_fc": money_str(row.total_fc or 0),
            "total_usd": money_str(row.total_usd or 0),
        }
        for row in rows
    ]


def _grouped(restaurant_id: int, start: datetime, end: datetime, key_expr) -> list:
    query = db.session.query(
        key_expr.label("key"),
        func.coalesce(func.sum(Sale.total_fc), 0).label("total_fc"),
        func.coalesce(func.sum(Sale.total_usd), 0).label("total_usd"),
        func.count(Sale.id).label("count"),
    ).filter(Sale.restaurant_id == restaurant_id)
    return _window(query, start, end).group_by("key").order_by("key").all()


def sales_report(*, restaurant_id: int, period: str = "day", now: datetime | None = None) -> dict:
    """
    Sales statistics for the current day/week/month/year.

    Includes the top products by quantity, sales per day, per hour and per
    payment mode, and the variation of FC revenue against the previous
    period of the same kind.
    """
    if period not in REPORT_PERIODS:
        raise ReportError(f"period must be one of {', '.join(REPORT_PERIODS)}")

    now = now or utcnow()
    start, end = period_bounds(period, now)
    prev_start, prev_end = previous_period_bounds(period, now)

    totals = _totals(restaurant_id, start, end)
    previous = _totals(restaurant_id, prev_start, prev_end)

    average_fc = (
        quantize_money(totals["total_fc"] / totals["count"]) if totals["count"] else ZERO
    )

    per_day = _grouped(restaurant_id, start, end, func.strftime("%Y-%m-%d", Sale.created_at))
    per_hour = _grouped(restaurant_id, start, end, func.strftime("%H", Sale.created_at))
    per_mode = _grouped(restaurant_id, start, end, Sale.payment_mode)

    return {
        "period": period,
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "statistics": {
            "total_sales_fc": money_str(totals["total_fc"]),
            "total_sales_usd": money_str(totals["total_usd"]),
            "sales_count": totals["count"],
            "average_basket_fc": money_str(average_fc),
            "previous_total_sales_fc": money_str(previous["total_fc"]),
            "variation": f"{variation_percent(totals['total_fc'], previous['total_fc']):.2f}",
        },
        "top_products": _top_products(restaurant_id, start, end, TOP_PRODUCTS_LIMIT),
        "sales_per_day": [
            {"date": row.key, "total_fc": money_str(row.total_fc), "total_usd": money_str(row.total_usd), "count": int(row.count)}
            for row in per_day
        ],
        "sales_per_hour": [
            {"hour": f"{row.key}:00", "total_fc": money_str(row.total_fc), "count": int(row.count)}
            for row in per_hour
        ],
        "sales_per_payment_mode": [
            {"mode": row.key, "total_fc": money_str(row.total_fc), "count": int(row.count)}
            for row in per_mode
        ],
    }


def _serialize_totals(totals: dict) -> dict:
    return {
        "total_fc": money_str(totals["total_fc"]),
        "total_usd": money_str(totals["total_usd"]),
        "count": totals["count"],
    }


def _low_stock_products(restaurant_id: int):
    return (
        db.session.query(Product)
        .filter(
            Product.restaurant_id == restaurant_id,
            Product.deleted_at.is_(None),
            Product.is_active.is_(True),
            Product.quantity_crates * Product.bottles_per_crate + Product.quantity_bottles
            <= Product.stock_minimum * Product.bottles_per_crate,
        )
        .order_by(Product.name.asc())
    )


def _product_count(restaurant_id: int) -> int:
    return db.session.query(Product).filter(
        Product.restaurant_id == restaurant_id,
        Product.deleted_at.is_(None),
        Product.is_active.is_(True),
    ).count()


def _recent_sales(restaurant_id: int, user_id: int | None, limit: int) -> list[dict]:
    query = db.session.query(Sale).filter(
        Sale.restaurant_id == restaurant_id,
        Sale.deleted_at.is_(None),
    )
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
    return [s.to_dict() for s in sales]


def subscription_usage(restaurant_id: int) -> dict | None:
    """Current plan with usage against each limit (None = unlimited)."""
    subscription = get_current_subscription(restaurant_id)
    limitations = get_limitations(restaurant_id)
    if subscription is None or limitations is None:
        return None

    usage = {}
    for limit, key in LIMIT_KEYS.items():
        current = current_usage(restaurant_id, limit)
        maximum = limitations.get(key)
        usage[limit] = {
            "current": current,
            "max": maximum,
            "percent": round(current / maximum * 100) if maximum else 0,
        }

    return {
        "plan": subscription.plan,
        "ends_on": subscription.ends_on.isoformat() if subscription.ends_on else None,
        "limitations": limitations,
        "usage": usage,
    }


def dashboard(user: User, now: datetime | None = None) -> dict:
    """
    Per-role dashboard.

    admin    - today, week and month revenue, stock summary, top products,
               latest sales, subscription usage
    caisse   - the user's own sales today and latest sales
    stock    - low-stock list and active product count
    serveur  - the user's own sales today
    super-admin - installation counters
    """
    now = now or utcnow()
    role = user.role or ROLE_CASHIER
    data: dict = {"role": role}

    if role == ROLE_SUPER_ADMIN:
        data["is_super_admin"] = True
        data["statistics"] = {
            "restaurants": db.session.query(Restaurant).filter(Restaurant.deleted_at.is_(None)).count(),
            "active_restaurants": db.session.query(Restaurant).filter(
                Restaurant.deleted_at.is_(None),
                Restaurant.is_active.is_(True),
            ).count(),
            "users": db.session.query(User).filter(User.role != ROLE_SUPER_ADMIN).count(),
        }
        return data

    restaurant_id = user.restaurant_id
    if restaurant_id is None:
        raise ReportError("User is not attached to a restaurant")

    day_start, day_end = period_bounds("day", now)

    if role == ROLE_ADMIN:
        week_start, week_end = period_bounds("week", now)
        month_start, month_end = period_bounds("month", now)
        data["statistics"] = {
            "sales_today": _serialize_totals(_totals(restaurant_id, day_start, day_end)),
            "sales_week": _serialize_totals(_totals(restaurant_id, week_start, week_end)),
            "sales_month": _serialize_totals(_totals(restaurant_id, month_start, month_end)),
            "stock": {
                "total_products": _product_count(restaurant_id),
                "low_stock_products": _low_stock_products(restaurant_id).count(),
            },
            "users": db.session.query(User).filter(
                User.restaurant_id == restaurant_id,
                User.role != ROLE_SUPER_ADMIN,
            ).count(),
        }
        data["top_products"] = _top_products(restaurant_id, day_start, day_end, RECENT_SALES_LIMIT)
        data["recent_sales"] = _recent_sales(restaurant_id, None, RECENT_SALES_LIMIT)
        data["subscription"] = subscription_usage(restaurant_id)

    elif role in (ROLE_CASHIER, ROLE_WAITER):
        data["statistics"] = {
            "sales_today": _serialize_totals(_totals(restaurant_id, day_start, day_end, user_id=user.id)),
        }
        data["recent_sales"] = _recent_sales(restaurant_id, user.id, 10)

    elif role == ROLE_STOCK:
        data["statistics"] = {
            "total_products": _product_count(restaurant_id),
        }
        data["low_stock_products"] = [
            p.to_dict() for p in _low_stock_products(restaurant_id).limit(LOW_STOCK_LIMIT).all()
        ]

    return data
