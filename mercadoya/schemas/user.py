from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class UserRegister(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    direccion: Optional[str] = None


class UserLogin(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    name: str
    direccion: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class TokenData(BaseModel):
    subject: str = Field(..., description="ID пользователя из claim sub")
    role: str
