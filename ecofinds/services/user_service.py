# ecofinds/services/user_service.py
from sqlalchemy.orm import Session

from ecofinds.data.models.user import UserModel
from ecofinds.domain.errors import UserNotFoundError
from ecofinds.domain.schemas import UserCreate, UserRead
from ecofinds.repos.user_repo import UserRepo
from ecofinds.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """
    Accounts as seen by the order service: just enough to tell buyers and
    sellers apart and to refuse closed accounts.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        # idempotent on id, the auth service may replay registrations
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        created = self.repo.create_user(
            UserModel(id=payload.id, name=payload.name, email=payload.email, is_active=True)
        )
        self.repo.commit()
        logger.info(f"User {created.id} registered")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return UserRead.model_validate(user)

    def get_active_user(self, user_id: int) -> UserRead | None:
        user = self.repo.get_active_user(user_id)
        return UserRead.model_validate(user) if user else None
