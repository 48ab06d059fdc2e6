from app.data.models.user import UserModel
from app.repos.base import StoreRepo


class UserRepo(StoreRepo):
    model = UserModel

    def get_by_email(self, email: str) -> UserModel | None:
        found = self.find(email=email)
        return found[0] if found else None
