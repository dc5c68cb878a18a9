from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from jose import jwt

from database import get_db
from config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from dependencies import get_current_user
from models.user import User
from schemas.auth import (
    LoginRequest,
    PushTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from schemas.medication import SuccessOut
from services.security import hash_password, verify_password
from time_utils import utcnow

router = APIRouter(prefix="/auth", tags=["Authentication"])


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _token_response(user: User) -> TokenResponse:
    token = create_access_token({"sub": str(user.id), "username": user.username})
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
    )


@router.post("/register", response_model=TokenResponse)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return an access token."""
    username = req.username.strip()
    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(req.password),
        name=req.name or None,
        email=req.email,
        role="user",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == req.username.strip()).first()
    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    user.last_signed_in = utcnow()
    db.commit()
    return _token_response(user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    """Return current user profile."""
    return current_user


@router.post("/logout", response_model=SuccessOut)
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy.
    return SuccessOut()


@router.put("/push-token", response_model=SuccessOut)
def update_push_token(
    data: PushTokenRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Register (or clear) the device token used for push reminders."""
    current_user.push_token = (data.push_token or "").strip() or None
    db.commit()
    return SuccessOut()
