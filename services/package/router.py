"""
services/package/router.py
Travel packages: admin creation and public catalogue reads.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import Principal, require_admin
from shared.models.models import Package
from shared.schemas.schemas import PackageCreateRequest

router = APIRouter(tags=["Packages"])

RANDOM_PACKAGE_COUNT = 3


def _serialize(package: Package) -> dict:
    return {
        **(package.details or {}),
        "id": str(package.id),
        "title": package.title,
        "createdAt": package.created_at.isoformat(),
    }


@router.post("/packages", status_code=status.HTTP_201_CREATED)
async def create_package(
    data: PackageCreateRequest,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    package = Package(title=data.title, details=data.model_extra or {})
    db.add(package)
    await db.commit()
    return _serialize(package)


@router.get("/packages")
@router.get("/api/packages")
async def list_packages(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Package).order_by(Package.created_at.desc()))
    return [_serialize(p) for p in result.scalars()]


@router.get("/api/packages/random")
async def random_packages(db: AsyncSession = Depends(get_db)):
    """A random sample for the home page."""
    result = await db.execute(
        select(Package).order_by(func.random()).limit(RANDOM_PACKAGE_COUNT)
    )
    packages = result.scalars().all()
    if not packages:
        raise HTTPException(status_code=404, detail="No packages available")
    return [_serialize(p) for p in packages]


@router.get("/api/packages/{package_id}")
async def get_package(package_id: UUID, db: AsyncSession = Depends(get_db)):
    package = await db.get(Package, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return _serialize(package)
