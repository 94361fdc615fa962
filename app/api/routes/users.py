"""
Users API Routes
Notification recipients; account management lives in the main platform.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import User
from app.schemas.user import UserCreate, UserSchema

router = APIRouter()


@router.get("/", response_model=List[UserSchema])
async def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.created_at).limit(500).all()


@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )
    user = User(email=email, name=payload.name, role=payload.role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
