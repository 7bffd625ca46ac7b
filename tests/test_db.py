from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.roles import Role
from storefront.db.init_db import init_db
from storefront.db.models import Employee, User
from storefront.db.repositories import employees as employees_module
from storefront.db.repositories.employees import EmployeeCodeExhausted, EmployeeRepo
from storefront.db.session import connect_args, create_engine, create_sessionmaker


@pytest_asyncio.fixture
async def session(settings) -> AsyncIterator[AsyncSession]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        async with create_sessionmaker(engine)() as s:
            s.add_all(
                [
                    User(id="u-taken", email="taken@example.com"),
                    User(id="u-new", email="new@example.com"),
                    Employee(user_id="u-taken", role=Role.seller, employee_code="EMP-000001"),
                ]
            )
            await s.commit()
            yield s
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_create_skips_taken_employee_codes(session, monkeypatch) -> None:
    codes = iter(["EMP-000001", "EMP-000001", "EMP-000002"])
    monkeypatch.setattr(employees_module, "new_employee_code", lambda: next(codes))

    emp = await EmployeeRepo(session).create(user_id="u-new", role=Role.manager)

    assert emp.employee_code == "EMP-000002"
    assert await EmployeeRepo(session).role_for_user("u-new") == Role.manager


@pytest.mark.asyncio
async def test_create_gives_up_when_every_code_is_taken(session, monkeypatch) -> None:
    monkeypatch.setattr(employees_module, "new_employee_code", lambda: "EMP-000001")
    with pytest.raises(EmployeeCodeExhausted):
        await EmployeeRepo(session).create(user_id="u-new", role=Role.seller)


@pytest.mark.asyncio
async def test_set_role_promotes_existing_assignment(session) -> None:
    emp = await EmployeeRepo(session).set_role(user_id="u-taken", role=Role.admin)
    assert emp.employee_code == "EMP-000001"
    assert await EmployeeRepo(session).role_for_user("u-taken") == Role.admin


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite+aiosqlite:///./storefront.db", {"timeout": 2.5}),
        ("postgresql+asyncpg://u:p@db/app", {"timeout": 2.5, "command_timeout": 2.5}),
        ("mysql+aiomysql://u:p@db/app", {}),
    ],
)
def test_connect_args_carry_database_timeout(settings, url: str, expected: dict) -> None:
    s = settings.model_copy(update={"database_url": url, "database_timeout_seconds": 2.5})
    assert connect_args(s) == expected
