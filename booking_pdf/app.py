from contextlib import asynccontextmanager
from typing import Annotated
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status, Query
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pwdlib import PasswordHash
from pydantic import BaseModel
import jwt
from jwt.exceptions import InvalidTokenError
from datetime import datetime, timedelta, timezone
from sqlmodel import Session, select
import logging
import os
import re
from sqlmodel import SQLModel

from .models import User, UserRead, Booking
from .database import engine, get_session
from .errors import ShelfError
from .pdf_helpers import (
    fetch_all_pdf_related_data,
    generate_pdf_content,
    get_booking_assets_custom_header,
    get_booking_pdf_template_data,
)
from .qr import QrCodeRenderer, QrCodeResolver
from .renderer import DocumentRenderer, PlaywrightRenderer
from .store import RecordStore, SqlRecordStore
from .templating import render_booking_checklist

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
ALGORITHM = os.getenv("ALGORITHM", "HS256")
SERVER_URL = os.getenv("SERVER_URL", "http://localhost:8000")


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    username: str | None = None


password_hash = PasswordHash.recommended()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


@asynccontextmanager
async def lifespan(app: FastAPI):
    SQLModel.metadata.create_all(engine)
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Booking checklist API",
    description="API to print booking checklists with asset QR codes as PDF.",
    version="0.1.0",
)


@app.exception_handler(ShelfError)
async def shelf_error_handler(request: Request, exc: ShelfError):
    if exc.should_be_captured:
        logger.error(
            "%s error on %s: %s", exc.label, request.url.path, exc.message, exc_info=exc
        )
    else:
        logger.info("%s rejected on %s: %s", exc.label, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status, content={"detail": exc.message, "label": exc.label}
    )


# --- Collaborators ---
def get_record_store() -> RecordStore:
    return SqlRecordStore(engine)


def get_qr_resolver() -> QrCodeResolver:
    return QrCodeRenderer(SERVER_URL)


def get_renderer() -> DocumentRenderer:
    return PlaywrightRenderer()


# --- Authentication ---
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return password_hash.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    if not SECRET_KEY or SECRET_KEY == "":
        raise ValueError("SECRET_KEY is missing")
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_user_by_username(session: Session, username: str):
    statement = select(User).where(User.username == username)
    return session.exec(statement).first()


def authenticate_user(session: Session, username: str, password: str):
    user = get_user_by_username(session, username)
    if not user:
        return False
    if not verify_password(password, user.hashed_password):
        return False
    return user


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Session = Depends(get_session),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        username = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except InvalidTokenError:
        raise credentials_exception
    user = get_user_by_username(session, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


@app.post(
    "/token", summary="Log in", response_description="Bearer token", tags=["Users"]
)
def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: Session = Depends(get_session),
) -> Token:
    """Obtain token for login"""
    user = authenticate_user(session, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token, token_type="bearer")


@app.get(
    "/users/me",
    response_model=UserRead,
    summary="Get current user",
    response_description="Current user data",
    tags=["Users"],
)
def read_users_me(current_user: Annotated[User, Depends(get_current_user)]):
    """Get current user data."""
    return current_user


# --- Booking PDF ---
def pdf_filename(booking: Booking) -> str:
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", booking.name or "").strip("-")
    return f"{slug or 'booking'}-checklist.pdf"


@app.get(
    "/bookings/{id}/generate-pdf",
    response_class=Response,
    summary="Print booking checklist",
    response_description="PDF document",
    tags=["Bookings"],
)
async def generate_booking_pdf(
    id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    organization_id: str = Query(
        ..., description="Organization the booking belongs to", min_length=1
    ),
    store: RecordStore = Depends(get_record_store),
    qr_resolver: QrCodeResolver = Depends(get_qr_resolver),
    renderer: DocumentRenderer = Depends(get_renderer),
):
    """
    Print the checklist of a booking with the QR code of every asset.
    - **id**: Booking ID
    - **organization_id**: Organization the booking belongs to
    """
    role = await store.get_user_role(current_user.id, organization_id)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this organization",
        )

    result = await fetch_all_pdf_related_data(
        store, qr_resolver, id, organization_id, current_user.id, role
    )
    html_content = render_booking_checklist(get_booking_pdf_template_data(result))
    pdf = await generate_pdf_content(
        renderer, html_content, get_booking_assets_custom_header(result)
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="{pdf_filename(result.booking)}"'
        },
    )
