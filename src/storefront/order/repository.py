"""Order queries for the shopper's order list and the back-office."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus
from storefront.shared.pagination import SCAN_LIMIT, Page, paginate


@dataclass(frozen=True)
class OrderStats:
    total_orders: int = 0
    total_revenue: int = 0
    pending_orders: int = 0
    processing_orders: int = 0
    shipped_orders: int = 0
    delivered_orders: int = 0
    cancelled_orders: int = 0
    average_order_value: int = 0


def _as_bound(value, end=False):
    """Datetime bound for a date range; a bare date covers the whole day."""
    if value is None:
        return None
    if not isinstance(value, datetime) and isinstance(value, date):
        value = datetime.combine(value, time.max if end else time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _created_at(order):
    created = order.created_at
    if created is not None and created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created


def _in_range(order, date_from, date_to):
    created = _created_at(order)
    if date_from is not None and (created is None or created < date_from):
        return False
    if date_to is not None and (created is None or created > date_to):
        return False
    return True


def _newest_first(orders):
    return sorted(orders, key=lambda o: _created_at(o) or datetime.min.replace(tzinfo=UTC), reverse=True)


@storefront.repository(part_of=Order)
class OrderRepository:
    def _scan(self, **criteria):
        return self._dao.query.filter(**criteria).limit(SCAN_LIMIT).all().items

    def get_by_code(self, order_code):
        return next(iter(self._scan(order_code=order_code)), None)

    def by_user(self, user_id):
        return _newest_first(self._scan(user_id=str(user_id)))

    def by_status(self, status: OrderStatus):
        return _newest_first(self._scan(status=status.value))

    def filter(
        self,
        status: OrderStatus | None = None,
        user_id=None,
        date_from=None,
        date_to=None,
        search=None,
        page=1,
        limit=20,
    ) -> Page:
        """Back-office listing, newest first.

        ``search`` matches a substring of the order code, the customer's name
        (case-insensitive) or the customer's phone number.
        """
        criteria = {}
        if status is not None:
            criteria["status"] = status.value
        if user_id:
            criteria["user_id"] = str(user_id)
        orders = self._scan(**criteria)

        date_from, date_to = _as_bound(date_from), _as_bound(date_to, end=True)
        orders = [o for o in orders if _in_range(o, date_from, date_to)]

        if search:
            needle = search.strip()
            lowered = needle.lower()
            orders = [
                o
                for o in orders
                if lowered in o.order_code.lower()
                or lowered in (o.customer.full_name or "").lower()
                or needle in (o.customer.phone or "")
            ]

        return paginate(_newest_first(orders), page, limit)

    def stats(self, date_from=None, date_to=None) -> OrderStats:
        """Counts per status and revenue over orders created in the range.

        Cancelled orders count towards ``total_orders`` but neither towards
        revenue nor the average's denominator.
        """
        date_from, date_to = _as_bound(date_from), _as_bound(date_to, end=True)
        orders = [o for o in self._scan() if _in_range(o, date_from, date_to)]

        counts = {status: 0 for status in OrderStatus}
        revenue = 0
        for order in orders:
            status = OrderStatus(order.status)
            counts[status] += 1
            if status != OrderStatus.CANCELLED:
                revenue += order.total

        billable = len(orders) - counts[OrderStatus.CANCELLED]
        return OrderStats(
            total_orders=len(orders),
            total_revenue=revenue,
            pending_orders=counts[OrderStatus.PENDING],
            processing_orders=counts[OrderStatus.PROCESSING],
            shipped_orders=counts[OrderStatus.SHIPPED],
            delivered_orders=counts[OrderStatus.DELIVERED],
            cancelled_orders=counts[OrderStatus.CANCELLED],
            average_order_value=round(revenue / billable) if billable else 0,
        )
