from sqlalchemy.orm import Session
from app.repos.user_repo import UserRepo
from app.domain.errors import NotFound
from app.domain.schemas import UserCreate, UserRead


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        email = payload.email.strip().lower()
        existing = self.repo.get_by_email(email)
        if existing:
            return UserRead.model_validate(existing)

        created = self.repo.create({"name": payload.name.strip(), "email": email})
        return UserRead.model_validate(created)

    def get_user(self, user_id: str) -> UserRead:
        user = self.repo.find_by_id(user_id)
        if not user:
            raise NotFound("User not found", details={"user_id": user_id})
        return UserRead.model_validate(user)
