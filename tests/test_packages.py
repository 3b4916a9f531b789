"""
tests/test_packages.py
Tests for package creation and the public catalogue.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Package, User
from tests.conftest import auth_headers

PACKAGE = {
    "title": "Cox's Bazar Beach Retreat",
    "price": 520,
    "tourType": "Beach",
    "tourPlan": [{"day": 1, "activity": "Arrival"}, {"day": 2, "activity": "Inani beach"}],
}


@pytest.mark.asyncio
async def test_admin_creates_package(client: AsyncClient, admin_user: User):
    response = await client.post("/packages", headers=auth_headers(admin_user), json=PACKAGE)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == PACKAGE["title"]
    assert data["price"] == 520
    assert data["tourPlan"] == PACKAGE["tourPlan"]
    assert "id" in data


@pytest.mark.asyncio
async def test_package_requires_title(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/packages", headers=auth_headers(admin_user), json={"price": 10}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/packages", "/api/packages"])
async def test_list_packages(client: AsyncClient, db: AsyncSession, path: str):
    db.add_all([Package(title="A", details={}), Package(title="B", details={"price": 1})])
    await db.commit()

    response = await client.get(path)
    assert response.status_code == 200
    assert {p["title"] for p in response.json()} == {"A", "B"}


@pytest.mark.asyncio
async def test_random_packages_capped_at_three(client: AsyncClient, db: AsyncSession):
    db.add_all([Package(title=f"P{i}", details={}) for i in range(5)])
    await db.commit()

    response = await client.get("/api/packages/random")
    assert response.status_code == 200
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_random_packages_none_available(client: AsyncClient):
    response = await client.get("/api/packages/random")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_package_detail(client: AsyncClient, db: AsyncSession):
    package = Package(title="Hill Tracts", details={"price": 300})
    db.add(package)
    await db.commit()

    response = await client.get(f"/api/packages/{package.id}")
    assert response.status_code == 200
    assert response.json()["price"] == 300


@pytest.mark.asyncio
async def test_package_detail_missing(client: AsyncClient):
    response = await client.get(f"/api/packages/{uuid.uuid4()}")
    assert response.status_code == 404
