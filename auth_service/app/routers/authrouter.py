from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core import auth
from shared.core.database import get_db
from shared.core.schemas import UserToken
from ..schemas import authschemas
from ..services import authservices

router = APIRouter(prefix="/api/auth", tags=["Inventory Audit Auth"])


@router.post("/login", response_model=authschemas.LoginResponse)
def login(
        request: authschemas.LoginRequest,
        db: Session = Depends(get_db)):
    return authservices.login(db, request)


@router.get("/me", response_model=authschemas.MeResponse)
def me(
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(auth.validate_current_token)):
    return authservices.get_me(db, current_user)


@router.post("/register", response_model=authschemas.RegisterResponse)
def register(
        request: authschemas.RegisterRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(auth.allow_admin)):
    return authservices.register_user(db, request)


@router.get("/health")
def health():
    return {"status": "healthy"}
