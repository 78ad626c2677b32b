"""Assemble the data for a booking checklist and print it to PDF."""

import asyncio
import base64
import datetime
import html
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ShelfError
from .models import Asset, Booking, Organization, OrganizationRoles
from .qr import QrCodeResolver
from .renderer import DocumentRenderer
from .store import RecordStore, overlap_window

logger = logging.getLogger(__name__)

PDF_FORMAT = "A4"
DEFAULT_PDF_MARGINS = {
    "top": "80px",
    "bottom": "30px",
    "left": "20px",
    "right": "20px",
}


@dataclass
class PdfDbResult:
    booking: Booking
    assets: list[Asset]
    organization: Optional[Organization]
    asset_id_to_qr_code_map: dict[str, str] = field(default_factory=dict)


async def fetch_all_pdf_related_data(
    store: RecordStore,
    qr_resolver: QrCodeResolver,
    booking_id: str,
    organization_id: str,
    user_id: str,
    role: Optional[OrganizationRoles],
) -> PdfDbResult:
    """Load everything the booking checklist shows.

    Raises a 404 ``ShelfError`` when the booking does not exist in the
    organization and a 403 one when a self-service user asks for a booking
    somebody else is the custodian of. Assets carry the other bookings that
    overlap this booking's period, or all of their bookings when the period
    is not fully set.
    """
    booking = await store.get_booking(booking_id, organization_id)
    if not booking:
        raise ShelfError(
            message="Booking not found",
            status=404,
            label="Booking",
            additional_data={
                "booking_id": booking_id,
                "organization_id": organization_id,
            },
        )

    if (
        role == OrganizationRoles.SELF_SERVICE
        and booking.custodian_user_id != user_id
    ):
        raise ShelfError(
            message="You are not authorized to view this booking",
            status=403,
            label="Booking",
            should_be_captured=False,
            additional_data={"booking_id": booking_id, "user_id": user_id},
        )

    assets, organization = await asyncio.gather(
        store.get_assets([asset.id for asset in booking.assets], overlap_window(booking)),
        store.get_organization(organization_id),
    )

    asset_id_to_qr_code_map = await qr_resolver.get_qr_code_maps(
        assets=assets,
        user_id=user_id,
        organization_id=organization_id,
        size="small",
    )
    logger.debug(
        "Fetched booking %s with %s assets", booking_id, len(assets)
    )
    return PdfDbResult(
        booking=booking,
        assets=assets,
        organization=organization,
        asset_id_to_qr_code_map=asset_id_to_qr_code_map,
    )


def organization_logo_src(organization: Optional[Organization]) -> str:
    image = organization.image if organization else None
    if not image or not image.blob:
        return ""
    return f"data:image/png;base64,{base64.b64encode(image.blob).decode()}"


def get_booking_assets_custom_header(result: PdfDbResult) -> str:
    # date, pageNumber and totalPages are filled in by the browser when printing
    logo_src = organization_logo_src(result.organization)
    booking_name = html.escape(result.booking.name or "")
    return f"""
        <style>
            .header {{
                font-size: 10px;
                text-align: right;
                width: 100%;
                padding: 0 20px;
                display: flex;
                justify-content: space-between;
                align-items: center;
                box-sizing: border-box;
                margin-bottom:30px;
            }}
            .header img {{
                height: 40px;
                width: 40px;
                object-fit: cover
            }}
            .header .text {{
                text-align: right;
                color: rgba(0, 0, 0, 0.6);
            }}
        </style>
        <div class="header">
            <img src="{logo_src}" alt="logo">
            <span class="text">{booking_name} | <span class="date"></span> | Page <span class="pageNumber"></span>/<span class="totalPages"></span></span>
        </div>
    """


def format_datetime(value: datetime.datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def get_booking_pdf_template_data(result: PdfDbResult) -> dict[str, Any]:
    booking = result.booking
    custodian = booking.custodian_user
    if custodian:
        custodian_line = (
            f"{custodian.first_name or ''} {custodian.last_name or ''} "
            f"<{custodian.email or ''}>"
        )
    else:
        custodian_line = ""

    booking_period = ""
    if booking.from_ and booking.to:
        booking_period = (
            f"{format_datetime(booking.from_)} - {format_datetime(booking.to)}"
        )

    items = [
        {
            "name": asset.title or "",
            "category": asset.category.name if asset.category else "",
            "location": asset.location.name if asset.location else "",
            "custodian": asset.custody.custodian_name if asset.custody else "",
            "code": result.asset_id_to_qr_code_map.get(asset.id, ""),
            "main_image": asset.main_image or "",
        }
        for asset in result.assets
    ]

    return {
        "booking": f"Booking Checklist for {booking.name}",
        "name": booking.name or "",
        "org_name": result.organization.name if result.organization else "",
        "custodian": custodian_line,
        "booking_period": booking_period,
        "items": items,
        "header_template": get_booking_assets_custom_header(result),
    }


async def generate_pdf_content(
    renderer: DocumentRenderer,
    html_content: str,
    header_template: Optional[str] = None,
    styles: Optional[dict[str, str]] = None,
) -> bytes:
    """Print an HTML document to PDF.

    ``styles`` overrides individual page margins (``top``, ``bottom``,
    ``left``, ``right``). Renderer errors are not handled here.
    """
    options = {
        "format": PDF_FORMAT,
        "display_header_footer": True,
        "header_template": header_template or "",
        "margin": {**DEFAULT_PDF_MARGINS, **(styles or {})},
    }
    pdf_buffer = await renderer.render(html_content, options)
    logger.info("Generated PDF of %s bytes", len(pdf_buffer))
    return pdf_buffer
