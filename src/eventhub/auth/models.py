"""Authentication models for FastAPI"""

from pydantic import BaseModel

from eventhub.models.user import Role


class AuthUser(BaseModel):
    """Identity carried by a verified access token"""

    id: int
    email: str
    role: Role

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
