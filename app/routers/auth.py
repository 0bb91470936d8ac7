import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import create_access_token, hash_password, verify_password
from app.database import get_db
from app.dependencies import get_current_user, limiter
from app.models.user import User, UserTier
from app.schemas.auth import AuthResponse, LoginRequest, LoginResponse, RegisterRequest, UserEnvelope, UserOut
from app.services import gamification

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/hour")
async def register_user(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Register a new account on the free tier.

    **Request:** RegisterRequest (email, password)
    **Response:** {user, token}
    **Errors:** 400 (email already registered), 422 (invalid email or short password)
    """
    email = payload.email
    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = User(email=email, hashed_password=hash_password(payload.password), tier=UserTier.FREE.value)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return AuthResponse(user=UserOut.model_validate(user), token=create_access_token(str(user.id)))


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate and receive a bearer token.

    Also advances the daily login streak and credits the streak bonus
    (5 XP per streak day, capped at 50) on every successful login.

    **Request:** LoginRequest (email, password)
    **Response:** {user, token, loginStreak, xpGained}
    **Errors:** 401 (invalid credentials)
    """
    result = await db.execute(select(User).where(func.lower(User.email) == payload.email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user_out = UserOut.model_validate(user)
    user_id = user.id

    streak, xp_gained = await gamification.apply_daily_login(db, user_id)

    return LoginResponse(
        user=user_out,
        token=create_access_token(str(user_id)),
        login_streak=streak,
        xp_gained=xp_gained,
    )


@router.get("/me", response_model=UserEnvelope, status_code=status.HTTP_200_OK)
async def get_me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    """
    Get the authenticated user.

    **Response:** {user}
    **Errors:** 401 (unauthorized)
    """
    return UserEnvelope(user=UserOut.model_validate(current_user))
