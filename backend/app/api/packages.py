"""Package endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.package import Package
from backend.app.models.user import User
from backend.app.schemas.package import PackageCreate, PackageRead, PackageUpdate
from backend.app.services.session_credits import commit_or_raise

router = APIRouter(prefix="/packages", tags=["packages"])


def _get_package(db: Session, package_id: int) -> Package:
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    return package


@router.post("/", response_model=PackageRead, status_code=status.HTTP_201_CREATED)
async def create_package(package_in: PackageCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    if db.query(Package).filter(Package.name == package_in.name).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Package name already exists")
    package = Package(
        name=package_in.name,
        description=package_in.description,
        kind=package_in.kind.value,
        is_active=package_in.is_active,
    )
    db.add(package)
    commit_or_raise(db, "create package")
    db.refresh(package)
    return package


@router.get("/", response_model=list[PackageRead])
async def list_packages(
    active_only: bool = False,
    search: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(Package)
    if active_only:
        query = query.filter(Package.is_active.is_(True))
    if search:
        query = query.filter(Package.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Package.name.asc()).all()


@router.get("/{package_id}", response_model=PackageRead)
async def get_package(package_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return _get_package(db, package_id)


@router.put("/{package_id}", response_model=PackageRead)
async def update_package(
    package_id: int,
    package_in: PackageUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    package = _get_package(db, package_id)
    update_data = package_in.model_dump(exclude_unset=True)
    if "kind" in update_data and update_data["kind"] is not None:
        update_data["kind"] = update_data["kind"].value
    for field, value in update_data.items():
        if value is not None:
            setattr(package, field, value)
    commit_or_raise(db, "update package")
    db.refresh(package)
    return package


@router.delete("/{package_id}")
async def delete_package(package_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    package = _get_package(db, package_id)
    if package.students or package.sessions:
        # Keep history intact; retire instead of removing
        package.is_active = False
        commit_or_raise(db, "deactivate package")
        return {"status": "deactivated", "id": package_id}
    db.delete(package)
    commit_or_raise(db, "delete package")
    return {"status": "deleted", "id": package_id}
