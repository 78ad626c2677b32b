from sqlmodel import SQLModel, Field, Relationship
import datetime
import enum
import uuid
from typing import Optional


def new_id() -> str:
    return uuid.uuid4().hex


############
# ENUMS
############


class OrganizationRoles(str, enum.Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    BASE = "BASE"
    SELF_SERVICE = "SELF_SERVICE"


class BookingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    RESERVED = "RESERVED"
    ONGOING = "ONGOING"
    OVERDUE = "OVERDUE"
    COMPLETE = "COMPLETE"
    ARCHIVED = "ARCHIVED"
    CANCELLED = "CANCELLED"


# Statuses that hold an asset and therefore count as a scheduling conflict
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.RESERVED,
    BookingStatus.ONGOING,
    BookingStatus.OVERDUE,
)


####################
# ORGANIZATION MODEL
####################


class Image(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    content_type: str = "image/png"
    blob: bytes


class Organization(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    image_id: Optional[str] = Field(default=None, foreign_key="image.id")

    image: Optional[Image] = Relationship()


############
# USER MODEL
############


class UserBase(SQLModel):
    username: str = Field(index=True)
    email: str = Field(index=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class User(UserBase, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    hashed_password: str


class UserRead(UserBase):
    id: str


class UserOrganization(SQLModel, table=True):
    user_id: str = Field(foreign_key="user.id", primary_key=True)
    organization_id: str = Field(foreign_key="organization.id", primary_key=True)
    role: OrganizationRoles = OrganizationRoles.BASE


#############
# ASSET MODEL
#############


class BookingAssetLink(SQLModel, table=True):
    booking_id: str = Field(foreign_key="booking.id", primary_key=True)
    asset_id: str = Field(foreign_key="asset.id", primary_key=True)


class Category(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    organization_id: str = Field(foreign_key="organization.id", index=True)


class Location(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    organization_id: str = Field(foreign_key="organization.id", index=True)


class Custody(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    asset_id: str = Field(foreign_key="asset.id", unique=True)
    custodian_name: str

    asset: Optional["Asset"] = Relationship(back_populates="custody")


class QrCode(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    asset_id: str = Field(foreign_key="asset.id", index=True)
    organization_id: str = Field(foreign_key="organization.id")
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")

    asset: Optional["Asset"] = Relationship(back_populates="qr_codes")


class Asset(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    main_image: Optional[str] = None
    organization_id: str = Field(foreign_key="organization.id", index=True)
    category_id: Optional[str] = Field(default=None, foreign_key="category.id")
    location_id: Optional[str] = Field(default=None, foreign_key="location.id")

    category: Optional[Category] = Relationship()
    location: Optional[Location] = Relationship()
    custody: Optional[Custody] = Relationship(
        back_populates="asset", sa_relationship_kwargs={"uselist": False}
    )
    qr_codes: list[QrCode] = Relationship(back_populates="asset")
    bookings: list["Booking"] = Relationship(
        back_populates="assets", link_model=BookingAssetLink
    )


###############
# BOOKING MODEL
###############


class Booking(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = ""
    status: BookingStatus = BookingStatus.DRAFT
    # "from" is reserved in Python, the column keeps the plain name
    from_: Optional[datetime.datetime] = Field(
        default=None, sa_column_kwargs={"name": "from"}
    )
    to: Optional[datetime.datetime] = None
    custodian_user_id: Optional[str] = Field(default=None, foreign_key="user.id")
    organization_id: str = Field(foreign_key="organization.id", index=True)

    custodian_user: Optional[User] = Relationship()
    assets: list[Asset] = Relationship(
        back_populates="bookings", link_model=BookingAssetLink
    )
