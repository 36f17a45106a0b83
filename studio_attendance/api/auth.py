import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studio_attendance.api.deps import api_error, get_current_user, get_db, get_settings
from studio_attendance.core.config import Settings
from studio_attendance.core.email import send_password_reset_email
from studio_attendance.core.security import (
    create_session_token,
    generate_reset_token,
    generate_session_id,
    reset_token_expiry,
    verify_password,
)
from studio_attendance.crud import session as crud_session
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.user import (
    ChangePassword,
    ForgotPassword,
    ResetPassword,
    UserCreate,
    UserLogin,
    UserOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account with this e-mail exists, a password reset link has been sent"


@router.post("/login", response_model=UserOut)
def login(
    form: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = crud_user.get_user_by_username(db, form.username)
    if not user or not verify_password(form.password, user.password):
        raise api_error(401, "Invalid username or password", "INVALID_CREDENTIALS")
    if user.status == "pending":
        raise api_error(403, "Account is awaiting administrator approval", "ACCOUNT_PENDING")
    if user.status == "inactive":
        raise api_error(403, "Account has been deactivated", "ACCOUNT_DEACTIVATED")

    purged = crud_session.purge_expired(db)
    if purged:
        logger.debug(f"Purged {purged} expired session(s)")

    ttl = timedelta(days=settings.SESSION_TTL_DAYS)
    expires_at = datetime.utcnow() + ttl
    sid = generate_session_id()
    crud_session.create_session(db, sid, user.id, expires_at)

    token = create_session_token(sid, settings.SESSION_SECRET, settings.SESSION_ALGORITHM, expires_at)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    logger.info(f"🔐 User {user.username} logged in")
    return UserOut.from_user(user)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    current_user: InstructorAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    crud_session.destroy_session(db, request.state.sid)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserOut)
def me(current_user: InstructorAuth = Depends(get_current_user)):
    return UserOut.from_user(current_user)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    if crud_user.get_user_by_username(db, user_in.username):
        raise api_error(400, "Username is already taken", "USERNAME_EXISTS")
    if user_in.email and crud_user.get_user_by_email(db, user_in.email):
        raise api_error(400, "E-mail is already registered", "EMAIL_EXISTS")

    try:
        user = crud_user.create_user(
            db,
            username=user_in.username,
            password=user_in.password,
            first_name=user_in.first_name,
            last_name=user_in.last_name,
            email=user_in.email,
            phone=user_in.phone,
        )
    except IntegrityError:
        # lost a race against a concurrent registration
        db.rollback()
        raise api_error(400, "Username is already taken", "USERNAME_EXISTS")

    logger.info(f"📝 New account registered: {user.username} (pending approval)")
    return {
        "message": "Account created and awaiting administrator approval",
        "user": UserOut.from_user(user),
    }


@router.post("/change-password")
def change_password(
    payload: ChangePassword,
    current_user: InstructorAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(payload.current_password, current_user.password):
        raise api_error(400, "Current password is incorrect", "INVALID_PASSWORD")
    crud_user.set_password(db, current_user, payload.new_password)
    return {"message": "Password changed"}


@router.post("/forgot-password")
def forgot_password(
    payload: ForgotPassword,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = crud_user.get_user_by_email(db, payload.email.strip())
    if user and user.status != "inactive":
        token = generate_reset_token()
        crud_user.set_reset_token(db, user, token, reset_token_expiry())
        send_password_reset_email(settings, user.email, token, user.first_name)
    else:
        logger.info("Password reset requested for an unknown or inactive e-mail")
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
def reset_password(payload: ResetPassword, db: Session = Depends(get_db)):
    user = crud_user.get_user_by_reset_token(db, payload.token)
    if not user:
        raise api_error(400, "Reset link is invalid or has expired", "INVALID_TOKEN")
    crud_user.set_password(db, user, payload.new_password)
    crud_session.destroy_user_sessions(db, user.id)
    logger.info(f"🔑 Password reset for {user.username}")
    return {"message": "Password has been reset"}
