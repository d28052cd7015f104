from pydantic import BaseModel, Field


class AuthRegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    displayName: str | None = Field(default=None, max_length=100)


class AuthLoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)


class AuthUser(BaseModel):
    userId: str
    email: str
    displayName: str | None = None


class AuthResponse(BaseModel):
    tokenType: str = "bearer"
    accessToken: str
    expiresIn: int
    user: AuthUser
