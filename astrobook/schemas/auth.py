from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# Presence is checked by the service so that missing fields produce the
# same "All fields are required" error regardless of which one is absent.

class UserSignup(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    zodiac_sign: Optional[str] = Field(default=None, alias="zodiacSign")

    model_config = ConfigDict(populate_by_name=True)

class UserLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    zodiac_sign: str = Field(serialization_alias="zodiacSign")

    model_config = ConfigDict(from_attributes=True)

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse
