from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import NotificationType


class Notification(BaseModelDB, table=True):
    user_id: int = Field(foreign_key="user.id", index=True)
    type: NotificationType
    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    message: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    is_read: bool = Field(default=False, index=True)


class NotificationPreference(BaseModelDB, table=True):
    user_id: int = Field(foreign_key="user.id", unique=True, index=True)
    email_notifications: bool = Field(default=True)
    push_notifications: bool = Field(default=True)
    new_follower_notify: bool = Field(default=True)
    course_update_notify: bool = Field(default=True)
    product_update_notify: bool = Field(default=True)
    order_status_notify: bool = Field(default=True)
