# Файл: membership_client/models/user.py

from __future__ import annotations
import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Role(str, enum.Enum):
    student = "Student"
    teacher = "Teacher"
    admin   = "Admin"


# Схема для создания пользователя (пароль в открытом виде, хешируется в репозитории)
class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    role: Role = Role.student


# Схема пользователя, возвращаемая из хранилища
class UserInDB(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
