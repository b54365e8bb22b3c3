import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from todolist import config
from todolist.schemas.user import AuthResponse, UserCreate, UserLogin, UserMe
from todolist.models.user import User
from todolist.utils.auth import Identity, create_token, get_current_identity, hash_password, verify_password
from todolist.database import get_db
from todolist.errors import Conflict, NotFound, Unauthenticated

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _set_session_cookie(response: Response, user: User) -> None:
    token = create_token(user.id, user.email)
    response.set_cookie(
        config.TOKEN_COOKIE_NAME,
        token,
        max_age=int(config.ACCESS_TOKEN_EXPIRE_MINUTES * 60),
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite=config.COOKIE_SAMESITE,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(user: UserCreate, response: Response, db: Session = Depends(get_db)):
    exists = db.query(User).filter(User.email == user.email).first()
    if exists:
        raise Conflict()

    new_user = User(email=user.email, password_hash=hash_password(user.password))
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise Conflict()
    db.refresh(new_user)
    logger.info("Registered user %s", new_user.id)

    _set_session_cookie(response, new_user)
    return {"message": "Registration successful", "user": new_user}


@router.post("/login", response_model=AuthResponse)
def login(user: UserLogin, response: Response, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.password_hash):
        raise Unauthenticated("Invalid email or password")

    _set_session_cookie(response, db_user)
    return {"message": "Login successful", "user": db_user}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        config.TOKEN_COOKIE_NAME,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite=config.COOKIE_SAMESITE,
    )
    return {"message": "Logged out"}


@router.get("/me", response_model=UserMe)
def me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.id == identity.user_id).first()
    if not db_user:
        raise NotFound("User not found")
    return db_user
