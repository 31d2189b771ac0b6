"""Order code issuance: ``PREFIX-<year>-<4-digit sequence>``.

The sequence restarts every calendar year and lives in its own small aggregate,
one record per year, bumped under that year's lock. Callers issuing a code
inside a UnitOfWork hold ``sequence_locks`` for the year until the unit of work
commits, so two checkouts can never read the same last number.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from storefront.config import settings
from storefront.domain import storefront
from storefront.shared.locks import sequence_locks

logger = structlog.get_logger(__name__)


@storefront.aggregate
class OrderCodeSequence:
    year = String(identifier=True, required=True, max_length=4)
    last_number = Integer(default=0, min_value=0)

    def next_number(self) -> int:
        self.last_number = (self.last_number or 0) + 1
        return self.last_number


def current_year() -> str:
    return str(datetime.now(UTC).year)


def format_order_code(year, number: int, prefix: str | None = None) -> str:
    return f"{prefix or settings.ORDER_CODE_PREFIX}-{year}-{number:04d}"


def _get_or_create(year):
    repo = current_domain.repository_for(OrderCodeSequence)
    try:
        return repo.get(year)
    except ObjectNotFoundError:
        return OrderCodeSequence(year=year, last_number=0)


def next_order_code(year: str | None = None) -> str:
    """Issue the next code for ``year`` (the current year by default)."""
    year = year or current_year()
    with sequence_locks.hold(year):
        sequence = _get_or_create(year)
        number = sequence.next_number()
        current_domain.repository_for(OrderCodeSequence).add(sequence)

    code = format_order_code(year, number)
    logger.debug("order_code_issued", order_code=code)
    return code
