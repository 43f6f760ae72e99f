"""User registration endpoints."""

import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.database import User
from app.schemas.responses import UserCreate, UserResponse
from app.services.ledger import AccrualLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/signup", response_model=UserResponse, status_code=201)
async def signup(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    ledger: AccrualLedger = Depends(get_ledger),
):
    """Register a user and open their wallet."""
    email = body.email.strip().lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=409, detail="A user with this email already exists.")

    user = User(
        user_id=str(uuid.uuid4()),
        display_name=body.display_name,
        email=email,
        primary_provider=body.primary_provider.strip().lower(),
        persona_id=body.persona_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    await ledger.get_or_create(db, user.user_id)
    logger.info(f"Registered user {user.user_id} with provider {user.primary_provider}")

    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get a registered user."""
    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return UserResponse.model_validate(user)
