from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from studio_attendance.core.permissions import is_admin_role, permissions_for

Role = Literal["owner", "reception", "instructor"]
UserStatus = Literal["pending", "active", "inactive"]


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=72)
    first_name: str = Field(alias="firstName", min_length=2, max_length=100)
    last_name: str = Field(alias="lastName", min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(default=None, max_length=20)


class AdminUserCreate(UserCreate):
    role: Role = "instructor"
    group_ids: List[str] = Field(default_factory=list, alias="groupIds")


class UserLogin(BaseModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)


class ChangePassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=6, max_length=72)


class ForgotPassword(BaseModel):
    email: str = Field(min_length=3)


class ResetPassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    new_password: str = Field(alias="newPassword", min_length=6, max_length=72)


class ApproveUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    role: Role = "instructor"
    group_ids: Optional[List[str]] = Field(default=None, alias="groupIds")


class UserUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName", min_length=2, max_length=100)
    last_name: Optional[str] = Field(default=None, alias="lastName", min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(default=None, max_length=20)
    role: Optional[Role] = None
    active: Optional[bool] = None
    group_ids: Optional[List[str]] = Field(default=None, alias="groupIds")


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    status: UserStatus
    active: bool
    group_ids: List[str] = Field(alias="groupIds")
    is_admin: bool = Field(alias="isAdmin")
    permissions: Dict[str, bool]

    @classmethod
    def from_user(cls, user) -> "UserOut":
        return cls(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            status=user.status,
            active=user.status == "active",
            group_ids=user.group_ids,
            is_admin=is_admin_role(user.role),
            permissions=permissions_for(user.role),
        )


class InstructorOut(BaseModel):
    """Contact card shown to staff; no role or permission details."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    group_ids: List[str] = Field(alias="groupIds")

    @classmethod
    def from_user(cls, user) -> "InstructorOut":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
            group_ids=user.group_ids,
        )


class InstructorGroupOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instructor_id: int = Field(alias="instructorId")
    group_id: str = Field(alias="groupId")
    role: str = "instructor"
