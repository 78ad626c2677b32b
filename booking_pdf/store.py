import asyncio
import datetime
import logging
from typing import Optional, Protocol, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.engine import Engine
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from .models import (
    ACTIVE_BOOKING_STATUSES,
    Asset,
    Booking,
    Organization,
    OrganizationRoles,
    UserOrganization,
)

logger = logging.getLogger(__name__)

Window = tuple[datetime.datetime, datetime.datetime]


def overlap_window(booking: Booking) -> Optional[Window]:
    """Return the booking's ``(from, to)`` window, or None unless both are set."""
    if booking.from_ and booking.to:
        return booking.from_, booking.to
    return None


def bookings_overlap(
    window_from: datetime.datetime,
    window_to: datetime.datetime,
    other_from: Optional[datetime.datetime],
    other_to: Optional[datetime.datetime],
) -> bool:
    """Check whether another booking's period intersects the window.

    Mirrors the SQL criteria used by :meth:`SqlRecordStore.get_assets`.
    Bounds are inclusive. A booking with an open end never matches.
    """
    if other_from is None or other_to is None:
        return False
    return (other_from <= window_to and other_to >= window_from) or (
        other_from >= window_from and other_to <= window_to
    )


def overlap_criteria(window: Window):
    window_from, window_to = window
    return and_(
        col(Booking.status).in_(ACTIVE_BOOKING_STATUSES),
        or_(
            and_(col(Booking.from_) <= window_to, col(Booking.to) >= window_from),
            and_(col(Booking.from_) >= window_from, col(Booking.to) <= window_to),
        ),
    )


class RecordStore(Protocol):
    async def get_booking(
        self, id: str, organization_id: str
    ) -> Optional[Booking]: ...

    async def get_assets(
        self, asset_ids: Sequence[str], window: Optional[Window]
    ) -> list[Asset]: ...

    async def get_organization(self, organization_id: str) -> Optional[Organization]: ...

    async def get_user_role(
        self, user_id: str, organization_id: str
    ) -> Optional[OrganizationRoles]: ...


class SqlRecordStore:
    """Read-only queries against the SQLModel tables.

    Every call opens its own session inside a worker thread, so independent
    calls can be awaited together with ``asyncio.gather``. Relationships the
    PDF needs are loaded eagerly; the returned objects are detached.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    async def get_booking(self, id: str, organization_id: str) -> Optional[Booking]:
        return await asyncio.to_thread(self._get_booking, id, organization_id)

    async def get_assets(
        self, asset_ids: Sequence[str], window: Optional[Window]
    ) -> list[Asset]:
        return await asyncio.to_thread(self._get_assets, list(asset_ids), window)

    async def get_organization(self, organization_id: str) -> Optional[Organization]:
        return await asyncio.to_thread(self._get_organization, organization_id)

    async def get_user_role(
        self, user_id: str, organization_id: str
    ) -> Optional[OrganizationRoles]:
        return await asyncio.to_thread(self._get_user_role, user_id, organization_id)

    def _get_booking(self, id: str, organization_id: str) -> Optional[Booking]:
        statement = (
            select(Booking)
            .where(Booking.id == id)
            .where(Booking.organization_id == organization_id)
            .options(
                selectinload(Booking.assets),  # type: ignore[arg-type]
                selectinload(Booking.custodian_user),  # type: ignore[arg-type]
            )
        )
        with Session(self.engine) as session:
            return session.exec(statement).first()

    def _get_assets(self, asset_ids: list[str], window: Optional[Window]) -> list[Asset]:
        if not asset_ids:
            return []

        bookings = Asset.bookings
        if window is not None:
            bookings = bookings.and_(overlap_criteria(window))  # type: ignore[attr-defined]
        else:
            logger.debug("Booking has no complete window, loading all asset bookings")

        statement = (
            select(Asset)
            .where(col(Asset.id).in_(asset_ids))
            .order_by(Asset.title)
            .options(
                selectinload(Asset.category),  # type: ignore[arg-type]
                selectinload(Asset.location),  # type: ignore[arg-type]
                selectinload(Asset.custody),  # type: ignore[arg-type]
                selectinload(Asset.qr_codes),  # type: ignore[arg-type]
                selectinload(bookings),  # type: ignore[arg-type]
            )
        )
        with Session(self.engine) as session:
            return list(session.exec(statement).all())

    def _get_organization(self, organization_id: str) -> Optional[Organization]:
        statement = (
            select(Organization)
            .where(Organization.id == organization_id)
            .options(selectinload(Organization.image))  # type: ignore[arg-type]
        )
        with Session(self.engine) as session:
            return session.exec(statement).first()

    def _get_user_role(
        self, user_id: str, organization_id: str
    ) -> Optional[OrganizationRoles]:
        statement = (
            select(UserOrganization)
            .where(UserOrganization.user_id == user_id)
            .where(UserOrganization.organization_id == organization_id)
        )
        with Session(self.engine) as session:
            membership = session.exec(statement).first()
            return membership.role if membership else None
