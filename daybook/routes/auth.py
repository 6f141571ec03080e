from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from daybook.database import get_db
from daybook.auth import (
    authenticate_user,
    clear_session_cookie,
    create_user,
    require_user,
    set_session_cookie,
)
from daybook.models.user import User
from daybook.schemas import Credentials, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=201)
async def signup(credentials: Credentials, db: Session = Depends(get_db)):
    """Create an account. The caller logs in separately."""
    try:
        user = create_user(db, credentials.email, credentials.password)
    except LookupError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return user


@router.post("/login")
async def login(credentials: Credentials, db: Session = Depends(get_db)):
    """Check credentials and start a cookie session."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    response = JSONResponse({"id": user.id, "email": user.email})
    set_session_cookie(response, user.id)
    return response


@router.post("/logout")
async def logout():
    """Log out the current user."""
    response = JSONResponse({"status": "logged_out"})
    clear_session_cookie(response)
    return response


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(require_user)):
    return user
