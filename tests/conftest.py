from __future__ import annotations

import itertools
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from talenthr.core import database
from talenthr.core.security import create_token_pair, get_password_hash
from talenthr.main import app
from talenthr.models.company import Company
from talenthr.models.users import User
from talenthr.services import company_service, employee_service

PASSWORD = "Secret123!"

_db_names = itertools.count()


@pytest_asyncio.fixture(autouse=True)
async def db():
    client = AsyncMongoMockClient()
    await database.init_db(client=client, db_name=f"talenthr_test_{next(_db_names)}")
    yield client
    database.close_db()


@pytest_asyncio.fixture
async def client():
    # unhandled errors are rendered by the 500 handler instead of raised here
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    # requests in a test are independent: cookies are sent explicitly, never from the jar
    async def _drop_cookies(response):
        c.cookies.clear()

    async with AsyncClient(
        transport=transport, base_url="http://testserver", event_hooks={"response": [_drop_cookies]}
    ) as c:
        yield c


def auth_headers(user: User) -> dict:
    access_token, _ = create_token_pair(user)
    return {"Authorization": f"Bearer {access_token}"}


async def create_company(name: str = "Acme Corp", seed: bool = True) -> Company:
    company = Company(name=name, slug=company_service.slugify(name))
    await company.insert()
    if seed:
        await company_service.seed_departments(company.id)
        await company_service.seed_leave_types(company.id)
    return company


async def create_member(
    company: Company,
    role: str,
    email: str,
    name: Optional[str] = None,
    manager: Optional[User] = None,
    with_employee: bool = True,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        name=name or email.split("@")[0].title(),
        role=role,
        company_id=company.id,
    )
    await user.insert()
    if with_employee:
        fields = {"position": role.replace("_", " ").title()}
        if manager is not None:
            fields["manager_id"] = manager.id
        await employee_service.create_employee_record(company, user, fields)
    return user


@pytest_asyncio.fixture
async def company():
    return await create_company()


@pytest_asyncio.fixture
async def admin(company):
    return await create_member(company, "company_admin", "admin@acme.com", "Ada Admin")


@pytest_asyncio.fixture
async def hr(company):
    return await create_member(company, "hr_manager", "hr@acme.com", "Hana HR")


@pytest_asyncio.fixture
async def manager(company):
    return await create_member(company, "manager", "manager@acme.com", "Max Manager")


@pytest_asyncio.fixture
async def employee(company, manager):
    return await create_member(company, "employee", "emma@acme.com", "Emma Employee", manager=manager)


@pytest_asyncio.fixture
async def outsider(company):
    """Same company, not on the manager's team"""
    return await create_member(company, "employee", "olivia@acme.com", "Olivia Other")


@pytest_asyncio.fixture
async def recruiter(company):
    return await create_member(company, "recruiter", "rita@acme.com", "Rita Recruiter")


@pytest_asyncio.fixture
async def other_company_admin():
    other = await create_company("Globex Inc")
    return await create_member(other, "company_admin", "boss@globex.com", "Gus Globex")


@pytest.fixture
def headers():
    return auth_headers
