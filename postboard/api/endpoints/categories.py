from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session
from postboard.db.database import get_session
from postboard.models.category import Category
from postboard.models.user import User
from postboard.schemas.category import CategoryCreate, CategoryResponse
from postboard.core.security import get_current_user

router = APIRouter()

@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, summary="Create a new category")
def create_category(
    category: CategoryCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Create a new category"""
    existing = session.execute(
        select(Category).where(Category.name == category.name)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category name already exists"
        )

    db_category = Category(name=category.name)
    session.add(db_category)
    session.commit()
    session.refresh(db_category)
    return db_category

@router.get("", response_model=List[CategoryResponse], summary="List all categories")
def list_categories(
    session: Session = Depends(get_session)
):
    """List all categories"""
    return session.execute(select(Category).order_by(Category.name)).scalars().all()
