# ecofinds/api/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ecofinds.data.database import get_db
from ecofinds.domain.errors import UserNotFoundError
from ecofinds.domain.schemas import UserCreate, UserRead
from ecofinds.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead)
def register_user(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Mirrors an account from the auth service. Re-registering an existing id
    returns the stored account unchanged.
    """
    return UserService(db).create_user(payload)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return UserService(db).get_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
