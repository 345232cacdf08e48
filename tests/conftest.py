# Shared pytest configuration and fixtures for all test types
import pytest
import pytest_asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from common.db.base import Base
from packages.credits.models.database.service_setup import ServiceSetupEntity
from packages.credits.models.domain.enums import ServiceSlug
from packages.credits.models.domain.topup import PackagePrice
from packages.credits.providers.identity import set_identity_provider
from packages.credits.providers.identity.noop_identity import MappingIdentityProvider
from packages.nurture_billing.models.database.monthly_charge import (
    NurtureCampaignMonthlyChargeEntity,
)

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER_ID = "owner_1"
OWNER_EMAIL = "owner@example.com"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so nested transaction()
    calls create savepoints instead of real nested transactions.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch session factories to use test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest.fixture(autouse=True)
def reset_identity_provider():
    """Every test starts with the no-op identity provider."""
    set_identity_provider(None)
    yield
    set_identity_provider(None)


@pytest.fixture
def identity_provider():
    """Identity provider that knows OWNER_ID's email."""
    return MappingIdentityProvider({OWNER_ID: OWNER_EMAIL})


@pytest.fixture
def mock_payment_provider():
    """Create a mocked payment provider (Stripe) with a stored card."""
    provider = AsyncMock()
    provider.is_configured = MagicMock(return_value=True)
    provider.get_or_create_customer = AsyncMock(return_value="cus_test123")
    provider.get_default_payment_method = AsyncMock(return_value="pm_card_visa")
    provider.get_top_up_package_price = AsyncMock(
        return_value=PackagePrice(unit_amount_cents=2500, currency="usd")
    )
    provider.create_off_session_charge = AsyncMock(return_value="pi_test123")
    provider.create_top_up_checkout_session = AsyncMock(
        return_value="https://checkout.stripe.com/mock"
    )
    provider.health_check = AsyncMock(return_value=True)
    return provider


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def seed_ledger(test_db: AsyncSession):
    """Write a credits document directly, bypassing the ledger service."""

    async def _seed(owner_id: str, balance: int, auto_top_up: bool = False):
        entity = ServiceSetupEntity(
            owner_id=owner_id,
            service_slug=ServiceSlug.CREDITS.value,
            status="COMPLETE",
            data_json={"balance": balance, "autoTopUp": auto_top_up},
            version=0,
        )
        test_db.add(entity)
        await test_db.commit()
        await test_db.refresh(entity)
        return entity

    return _seed


@pytest.fixture
def seed_charge(test_db: AsyncSession):
    """Insert a monthly charge claim row in a given state."""

    async def _seed(
        campaign_id: str,
        period_key: str,
        status: str,
        updated_at: datetime,
        owner_id: str = OWNER_ID,
        credits: int = 29,
        last_error=None,
        charged_at=None,
    ):
        entity = NurtureCampaignMonthlyChargeEntity(
            owner_id=owner_id,
            campaign_id=campaign_id,
            period_key=period_key,
            status=status,
            credits=credits,
            last_error=last_error,
            charged_at=charged_at,
            updated_at=updated_at,
        )
        test_db.add(entity)
        await test_db.commit()
        await test_db.refresh(entity)
        return entity

    return _seed
