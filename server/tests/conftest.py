"""Test configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tourdesk.core.config import Settings
from tourdesk.core.security import create_access_token, hash_password
from tourdesk.main import create_app
from tourdesk.models import Booking, BookingStatus, BookingTier, Category, City, Tour, User, UserRole

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        environment="test",
        log_level="WARNING",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        enable_workers=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_app(test_settings):
    """Application wired to a fresh in-memory database (lifespan not run)."""
    app = create_app(test_settings)
    database = app.state.database
    await database.create_all()

    yield app

    await database.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_app):
    """Session on the application's database, for arranging data and service tests."""
    async with test_app.state.database.session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(test_session):
    """Factory persisting a user with ``TEST_PASSWORD``."""
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.CLIENT, **overrides) -> User:
        counter["n"] += 1
        fields = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "password_hash": hash_password(TEST_PASSWORD, rounds=4),
            "phone": "+212600000000",
            "role": role,
        }
        fields.update(overrides)
        user = User(**fields)
        test_session.add(user)
        await test_session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers(test_settings):
    """Bearer header for a persisted user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, user.role, test_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client_user(make_user):
    return await make_user(name="Amina Client", email="amina@example.com")


@pytest_asyncio.fixture
async def other_user(make_user):
    return await make_user(name="Youssef Other", email="youssef@example.com")


@pytest_asyncio.fixture
async def admin_user(make_user):
    return await make_user(UserRole.ADMIN, name="Admin", email="admin@example.com")


@pytest_asyncio.fixture
async def city(test_session):
    city = City(name="Merzouga", description="Gateway to the Erg Chebbi dunes")
    test_session.add(city)
    await test_session.commit()
    return city


@pytest_asyncio.fixture
async def category(test_session):
    category = Category(name="Desert", icon="sun")
    test_session.add(category)
    await test_session.commit()
    return category


@pytest.fixture
def make_tour(test_session, city, category):
    """Factory persisting a tour in the ``city``/``category`` fixtures."""

    async def _make(**overrides) -> Tour:
        fields = {
            "name": "Sahara Desert Adventure",
            "city_id": city.id,
            "category_id": category.id,
            "description": "Camel trek and a night under the stars",
            "duration_days": 3,
            "price_standard": Decimal("1000.00"),
            "price_premium": Decimal("1500.00"),
            "max_guests": 10,
            "is_active": True,
            "images": [],
        }
        fields.update(overrides)
        tour = Tour(**fields)
        test_session.add(tour)
        await test_session.commit()
        return tour

    return _make


@pytest_asyncio.fixture
async def tour(make_tour):
    return await make_tour()


@pytest.fixture
def make_booking(test_session):
    """Factory persisting a booking directly, bypassing pricing rules."""

    async def _make(user: User, tour: Tour, **overrides) -> Booking:
        fields = {
            "user_id": user.id,
            "tour_id": tour.id,
            "start_date": date(2025, 6, 1),
            "end_date": date(2025, 6, 4),
            "guests": 2,
            "tier": BookingTier.STANDARD,
            "total_price": Decimal("2000.00"),
            "status": BookingStatus.PENDING,
        }
        fields.update(overrides)
        booking = Booking(**fields)
        test_session.add(booking)
        await test_session.commit()
        return booking

    return _make


@pytest.fixture
def sample_booking_data():
    """Sample booking request body."""
    return {
        "start_date": "2025-06-01",
        "guests": 2,
        "tier": "standard",
        "special_requests": "Vegetarian meals",
    }
