from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from heritage_crafts.db.models.enums import NotificationType


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    title: Dict[str, str]
    message: Dict[str, str]
    details: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime


class NotificationListOut(BaseModel):
    items: List[NotificationOut]
    unread_count: int


class NotificationPreferencesOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email_notifications: bool = True
    push_notifications: bool = True
    new_follower_notify: bool = True
    course_update_notify: bool = True
    product_update_notify: bool = True
    order_status_notify: bool = True


class NotificationPreferencesIn(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    new_follower_notify: Optional[bool] = None
    course_update_notify: Optional[bool] = None
    product_update_notify: Optional[bool] = None
    order_status_notify: Optional[bool] = None
