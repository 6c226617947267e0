# Файл: membership_client/models/group.py

from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

# Для информации о пользователе в контексте группы
class UserInfo(BaseModel):
    id: int
    email: str

    model_config = {"from_attributes": True}

# Схема для создания новой группы
class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    created_by_user_id: Optional[int] = None

# Схема для группы, возвращаемая из БД
class GroupInDB(GroupCreate):
    id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

# Расширенная схема группы со списком ее участников
class GroupWithMembers(GroupInDB):
    users: List[UserInfo] = []
