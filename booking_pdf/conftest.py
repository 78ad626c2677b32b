import datetime
import os

import pytest
from dotenv import load_dotenv
from sqlmodel import SQLModel, Session

os.environ["POSTGRES_URI"] = "sqlite:///./test.db"
load_dotenv(".env")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from .database import engine  # noqa: E402
from .models import (  # noqa: E402
    Asset,
    Booking,
    BookingStatus,
    Category,
    Custody,
    Image,
    Location,
    Organization,
    OrganizationRoles,
    QrCode,
    User,
    UserOrganization,
)
from pwdlib import PasswordHash  # noqa: E402

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"
LOGO_BYTES = b"\x89PNG\r\n\x1a\nfake-logo"

JAN = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)


def day(n: int, month: int = 1) -> datetime.datetime:
    return JAN.replace(month=month, day=n)


@pytest.fixture(scope="session", autouse=True)
def reset_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="session", autouse=True)
def seed_data(reset_database):
    password_hash = PasswordHash.recommended()
    with Session(engine) as session:
        logo = Image(id="img-1", blob=LOGO_BYTES)
        org = Organization(id=ORG_ID, name="Forth Canoe Club", image=logo)
        other_org = Organization(id=OTHER_ORG_ID, name="Other Club")

        owner = User(
            id="user-owner",
            username="johndoe",
            email="john@doe.com",
            first_name="John",
            last_name="Doe",
            hashed_password=password_hash.hash("johnspass"),
        )
        self_service = User(
            id="user-self",
            username="janedoe",
            email="jane@doe.com",
            first_name="Jane",
            last_name="Doe",
            hashed_password=password_hash.hash("janespass"),
        )
        outsider = User(
            id="user-outsider",
            username="outsider",
            email="out@sider.com",
            hashed_password=password_hash.hash("outsiderpass"),
        )
        memberships = [
            UserOrganization(
                user_id="user-owner", organization_id=ORG_ID, role=OrganizationRoles.OWNER
            ),
            UserOrganization(
                user_id="user-self",
                organization_id=ORG_ID,
                role=OrganizationRoles.SELF_SERVICE,
            ),
        ]

        kayaks = Category(id="cat-1", name="Kayaks", organization_id=ORG_ID)
        boathouse = Location(id="loc-1", name="Boathouse", organization_id=ORG_ID)
        kayak = Asset(
            id="a1",
            title="Green mamba kayak",
            organization_id=ORG_ID,
            category=kayaks,
            location=boathouse,
            custody=Custody(id="cust-1", custodian_name="Jane Doe"),
            qr_codes=[QrCode(id="qr-a1", organization_id=ORG_ID)],
        )
        paddle = Asset(id="a2", title="Paddle", organization_id=ORG_ID)

        bookings = [
            Booking(
                id="b1",
                name="Weekend trip",
                status=BookingStatus.RESERVED,
                from_=day(1),
                to=day(5),
                custodian_user_id="user-self",
                organization_id=ORG_ID,
                assets=[kayak, paddle],
            ),
            Booking(
                id="b2",
                name="Overlapping trip",
                status=BookingStatus.RESERVED,
                from_=day(3),
                to=day(10),
                custodian_user_id="user-owner",
                organization_id=ORG_ID,
                assets=[kayak],
            ),
            Booking(
                id="b3",
                name="Finished trip",
                status=BookingStatus.COMPLETE,
                from_=day(2),
                to=day(4),
                organization_id=ORG_ID,
                assets=[kayak],
            ),
            Booking(
                id="b4",
                name="February trip",
                status=BookingStatus.RESERVED,
                from_=day(1, month=2),
                to=day(3, month=2),
                organization_id=ORG_ID,
                assets=[kayak],
            ),
            Booking(
                id="b5",
                name="",
                status=BookingStatus.DRAFT,
                custodian_user_id="user-owner",
                organization_id=ORG_ID,
                assets=[kayak],
            ),
            Booking(
                id="b6",
                name="Open ended",
                status=BookingStatus.ONGOING,
                from_=day(2),
                organization_id=ORG_ID,
                assets=[paddle],
            ),
            Booking(
                id="b7",
                name="Other club trip",
                status=BookingStatus.RESERVED,
                from_=day(1),
                to=day(5),
                organization_id=OTHER_ORG_ID,
            ),
        ]

        session.add_all([org, other_org, owner, self_service, outsider])
        session.add_all(memberships)
        session.add_all(bookings)
        session.commit()


class FakeRenderer:
    def __init__(self, content: bytes = b"%PDF-1.4 fake"):
        self.content = content
        self.calls = []

    async def render(self, html, options):
        self.calls.append((html, options))
        return self.content


class FakeQrResolver:
    def __init__(self):
        self.calls = []

    async def get_qr_code_maps(self, assets, user_id, organization_id, size):
        self.calls.append(
            {
                "asset_ids": [asset.id for asset in assets],
                "user_id": user_id,
                "organization_id": organization_id,
                "size": size,
            }
        )
        return {asset.id: f"qr:{asset.id}" for asset in assets}


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def fake_qr_resolver():
    return FakeQrResolver()
