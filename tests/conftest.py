"""
Pytest configuration and fixtures for LiveShop tests.
"""
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Dict

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from liveshop.api.v1.payments.razorpay_client import RazorpayClient, get_payment_gateway
from liveshop.client import ShopApiClient
from liveshop.core.database import get_db
from liveshop.core.security import SecurityUtils
from liveshop.main import app as fastapi_app
from liveshop.models import Base, Product, PromoCode, User

API_BASE = "http://testserver/api/v1"

class FakeRazorpayClient(RazorpayClient):
    """Gateway client that never leaves the process"""

    def __init__(self):
        super().__init__(key_id="rzp_test_key", key_secret="rzp_test_secret")
        self.created = []

    def create_order(self, amount, currency="INR", receipt=None, notes=None):
        order = {
            "id": f"order_rzp_{len(self.created) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        self.created.append(order)
        return order

def sign(razorpay_order_id: str, razorpay_payment_id: str, secret: str = "rzp_test_secret") -> str:
    """Signature the hosted checkout would return"""
    return hmac.new(
        secret.encode("utf-8"),
        f"{razorpay_order_id}|{razorpay_payment_id}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()

@pytest_asyncio.fixture
async def engine():
    """In-memory database shared by every session in a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()

@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting test data."""
    async with session_factory() as session:
        yield session

@pytest.fixture
def gateway() -> FakeRazorpayClient:
    return FakeRazorpayClient()

@pytest.fixture
def app(session_factory, gateway):
    """Application wired to the test database and fake gateway."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client calling the app in-process."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

@pytest_asyncio.fixture
async def user(db) -> User:
    user = User(external_id="user_shopper", email="shopper@example.com", name="Shopper")
    db.add(user)
    await db.commit()
    return user

@pytest_asyncio.fixture
async def other_user(db) -> User:
    user = User(external_id="user_other", email="other@example.com", name="Other")
    db.add(user)
    await db.commit()
    return user

@pytest_asyncio.fixture
async def admin(db) -> User:
    user = User(external_id="user_admin", email="admin@example.com", name="Admin", is_admin=True)
    db.add(user)
    await db.commit()
    return user

def token_for(user: User) -> str:
    return SecurityUtils.create_access_token(user.external_id)

def headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}

@pytest.fixture
def auth_headers(user) -> Dict[str, str]:
    return headers_for(user)

@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return headers_for(admin)

@pytest_asyncio.fixture
async def products(db) -> Dict[str, Product]:
    """Catalog used across tests."""
    catalog = {
        "sku-1": Product(
            title="Wireless Earbuds", price=Decimal("29.99"), inventory=10,
            category="electronics", images=["https://cdn.test/earbuds.jpg"],
            attributes={"brand": "Sonique", "color": "black", "finish": "matte"}
        ),
        "sku-2": Product(
            title="Cotton Tee", price=Decimal("12.50"), inventory=40,
            category="fashion", images=["https://cdn.test/tee.jpg"]
        ),
        "sku-3": Product(
            title="Desk Lamp", price=Decimal("45.00"), inventory=3,
            category="home", images=[]
        ),
        "sold-out": Product(
            title="Ceramic Mug", price=Decimal("8.00"), inventory=0,
            category="home", images=[]
        ),
        "inactive": Product(
            title="Retired Speaker", price=Decimal("99.00"), inventory=5,
            category="electronics", images=[], status="inactive"
        ),
    }
    db.add_all(catalog.values())
    await db.commit()
    return catalog

@pytest_asyncio.fixture
async def promo_codes(db) -> Dict[str, PromoCode]:
    now = datetime.now(timezone.utc)
    codes = {
        "WELCOME10": PromoCode(code="WELCOME10", discount_type="percentage", value=Decimal("10"), min_order_amount=Decimal("50")),
        "FLAT5": PromoCode(code="FLAT5", discount_type="fixed", value=Decimal("5")),
        "ONCE": PromoCode(code="ONCE", discount_type="fixed", value=Decimal("2"), max_uses_per_user=1),
        "EXPIRED": PromoCode(code="EXPIRED", discount_type="percentage", value=Decimal("50"), valid_until=now - timedelta(days=1)),
        "FUTURE": PromoCode(code="FUTURE", discount_type="percentage", value=Decimal("50"), valid_from=now + timedelta(days=1)),
        "USEDUP": PromoCode(code="USEDUP", discount_type="fixed", value=Decimal("1"), max_uses=3, used_count=3),
        "OFF": PromoCode(code="OFF", discount_type="fixed", value=Decimal("1"), is_active=False),
        "GADGETS": PromoCode(code="GADGETS", discount_type="percentage", value=Decimal("20"), applicable_categories=["electronics"]),
    }
    db.add_all(codes.values())
    await db.commit()
    return codes

@pytest_asyncio.fixture
async def make_api(app):
    """Build API clients that talk to the in-process app."""
    clients = []

    def factory(user: User = None, **kwargs) -> ShopApiClient:
        api = ShopApiClient(
            API_BASE,
            token=token_for(user) if user is not None else None,
            transport=httpx.ASGITransport(app=app),
            **kwargs
        )
        clients.append(api)
        return api

    yield factory

    for api in clients:
        await api.aclose()

@pytest.fixture
def address() -> Dict[str, str]:
    return {
        "full_name": "Asha Verma",
        "phone": "9876543210",
        "address_line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
    }

@pytest.fixture
def signer():
    return sign

@pytest.fixture
def make_headers():
    return headers_for

@pytest.fixture
def make_token():
    return token_for

@pytest.fixture
def inventory(session_factory):
    """Read stock through a fresh session so bulk updates are visible."""
    async def read(product: Product) -> int:
        async with session_factory() as session:
            fresh = await session.get(Product, product.id)
            return fresh.inventory

    return read

@pytest.fixture
def set_price(session_factory):
    """Change a catalog price behind the API's back."""
    async def change(product: Product, price: str) -> None:
        async with session_factory() as session:
            fresh = await session.get(Product, product.id)
            fresh.price = Decimal(price)
            await session.commit()

    return change

@pytest.fixture
def promo_used_count(session_factory):
    async def read(promo: PromoCode) -> int:
        async with session_factory() as session:
            fresh = await session.get(PromoCode, promo.id)
            return fresh.used_count

    return read
