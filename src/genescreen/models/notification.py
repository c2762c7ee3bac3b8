"""Transient user-visible notification."""

from typing import Literal

from pydantic import BaseModel


class Notification(BaseModel):
    visible: bool = False
    status: Literal["pending", "success", "error"] = "pending"
    message: str = ""
