"""Application models"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

from .time_utils import utcnow


class KeyProvider(str, Enum):
    """Git hosting provider an SSH key is registered with"""
    github = "github"
    gitlab = "gitlab"
    bitbucket = "bitbucket"
    other = "other"


class SshKey(SQLModel, table=True):
    """SSH keypair owned by a user"""
    __tablename__ = "git_ssh_keys"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    name: str = Field(max_length=255)
    public_key: str = Field(sa_column=Column(Text, nullable=False))
    private_key: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    passphrase: Optional[str] = Field(default=None, max_length=255)
    provider: KeyProvider = Field(default=KeyProvider.github)
    is_active: bool = True
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
