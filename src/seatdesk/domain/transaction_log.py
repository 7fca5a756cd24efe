from __future__ import annotations

from collections.abc import Sequence

from seatdesk.domain.models import SaleTransaction, SponsorshipReservation, Transaction


def merge_transactions(
    sales: Sequence[SaleTransaction],
    reservations: Sequence[SponsorshipReservation],
) -> list[Transaction]:
    """Combine sales and reservations into one log, newest first.

    Equal timestamps keep sales ahead of reservations and preserve each
    source's own order.
    """
    combined: list[Transaction] = [*sales, *reservations]
    # sorted() is stable, reverse=True keeps equal keys in input order
    return sorted(combined, key=lambda t: t.timestamp, reverse=True)
