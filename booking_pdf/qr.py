import asyncio
import base64
import io
import logging
from typing import Protocol, Sequence

import qrcode

from .models import Asset, QrCode

logger = logging.getLogger(__name__)

# Pixels per QR module for each size token
QR_CODE_BOX_SIZES = {
    "cable": 2,
    "small": 4,
    "medium": 6,
    "large": 10,
}


class QrCodeResolver(Protocol):
    async def get_qr_code_maps(
        self,
        assets: Sequence[Asset],
        user_id: str,
        organization_id: str,
        size: str,
    ) -> dict[str, str]: ...


def qr_code_data_uri(payload: str, box_size: int) -> str:
    qr = qrcode.QRCode(version=1, box_size=box_size, border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    qr_img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    qr_img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{encoded}"


class QrCodeRenderer:
    """Render the QR code of each asset as a PNG data URI.

    The code encodes ``<base_url>/qr/<qr id>``, the same link printed on the
    asset labels. Only codes owned by the requesting organization are used,
    and among those a code registered by the requesting user wins. Assets
    without one are left out of the map.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    async def get_qr_code_maps(
        self,
        assets: Sequence[Asset],
        user_id: str,
        organization_id: str,
        size: str = "medium",
    ) -> dict[str, str]:
        if size not in QR_CODE_BOX_SIZES:
            raise ValueError(f"Unknown QR code size: {size}")
        logger.debug(
            "Rendering %s QR codes of size %s for organization %s",
            len(assets),
            size,
            organization_id,
        )
        return await asyncio.to_thread(
            self._render_all,
            list(assets),
            user_id,
            organization_id,
            QR_CODE_BOX_SIZES[size],
        )

    def _render_all(
        self, assets: list[Asset], user_id: str, organization_id: str, box_size: int
    ) -> dict[str, str]:
        qr_code_map = {}
        for asset in assets:
            qr_code = self._pick_code(asset.qr_codes, user_id, organization_id)
            if qr_code is None:
                continue
            qr_code_map[asset.id] = qr_code_data_uri(
                f"{self.base_url}/qr/{qr_code.id}", box_size
            )
        return qr_code_map

    @staticmethod
    def _pick_code(qr_codes: Sequence[QrCode], user_id: str, organization_id: str):
        owned = [
            qr_code for qr_code in qr_codes if qr_code.organization_id == organization_id
        ]
        for qr_code in owned:
            if qr_code.user_id == user_id:
                return qr_code
        return owned[0] if owned else None
