"""Branch endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.branch import Branch
from backend.app.models.user import User
from backend.app.schemas.branch import BranchCreate, BranchRead, BranchUpdate
from backend.app.services.session_credits import commit_or_raise

router = APIRouter(prefix="/branches", tags=["branches"])


def _get_branch(db: Session, branch_id: int) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if not branch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    return branch


@router.post("/", response_model=BranchRead, status_code=status.HTTP_201_CREATED)
async def create_branch(branch_in: BranchCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    branch = Branch(**branch_in.model_dump())
    db.add(branch)
    commit_or_raise(db, "create branch")
    db.refresh(branch)
    return branch


@router.get("/", response_model=list[BranchRead])
async def list_branches(
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(Branch)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(Branch.name.ilike(pattern) | Branch.city.ilike(pattern) | Branch.address.ilike(pattern))
    return query.order_by(Branch.name.asc()).offset(skip).limit(limit).all()


@router.get("/{branch_id}", response_model=BranchRead)
async def get_branch(branch_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return _get_branch(db, branch_id)


@router.put("/{branch_id}", response_model=BranchRead)
async def update_branch(
    branch_id: int,
    branch_in: BranchUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    branch = _get_branch(db, branch_id)
    for field, value in branch_in.model_dump(exclude_unset=True).items():
        setattr(branch, field, value)
    commit_or_raise(db, "update branch")
    db.refresh(branch)
    return branch


@router.delete("/{branch_id}")
async def delete_branch(branch_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    branch = _get_branch(db, branch_id)
    if branch.sessions or branch.students:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Branch still has players or sessions")
    db.delete(branch)
    commit_or_raise(db, "delete branch")
    return {"status": "deleted", "id": branch_id}
