# ecofinds/api/deps.py
from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ecofinds.data.database import get_db
from ecofinds.services.user_service import UserService


def current_user_id(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
) -> int:
    """
    Identity comes from the auth layer in front of this service;
    here we only check that it names an active account.
    """
    user = UserService(db).get_active_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return user.id
