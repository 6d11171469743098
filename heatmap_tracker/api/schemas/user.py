from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: str | None = None


class CurrentUserResponse(BaseModel):
    user: UserResponse
