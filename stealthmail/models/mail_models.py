from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


MAILBOX_LIFETIME = timedelta(minutes=10)


class Domain(BaseModel):
    id: str
    domain: str
    is_active: bool = Field(default=False, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class Mailbox(BaseModel):
    address: str
    external_id: Optional[str] = None
    auth_token: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    synthetic: bool = False

    @classmethod
    def issued(
        cls,
        address: str,
        created_at: datetime,
        external_id: Optional[str] = None,
        auth_token: Optional[str] = None,
        synthetic: bool = False,
    ) -> "Mailbox":
        return cls(
            address=address,
            external_id=external_id,
            auth_token=auth_token or None,
            created_at=created_at,
            expires_at=created_at + MAILBOX_LIFETIME,
            synthetic=synthetic,
        )


class Message(BaseModel):
    id: str
    from_address: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    subject: Optional[str] = None
    intro: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    seen: bool = False
    flagged: bool = False
    is_deleted: bool = Field(default=False, alias="isDeleted")
    retention: Optional[bool] = None
    retention_date: Optional[str] = Field(default=None, alias="retentionDate")
    attachments: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
