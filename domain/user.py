from pydantic import BaseModel


class PublicUser(BaseModel):
    """A user profile as exposed to other callers (no credentials)."""
    id: str
    username: str
    given_name: str | None = None
    family_name: str | None = None
    is_admin: bool = False
