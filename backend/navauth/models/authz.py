from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint, DateTime, text
from typing import Optional

Base = declarative_base()

# --- Core Models ---
class Navigation(Base):
    __tablename__ = 'navigation'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    path: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Plain integers: a parent may be missing (orphan -> root) and nothing prevents cycles
    parent_nav_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    section_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'position': self.position,
            'status': self.status,
            'path': self.path,
            'parent_nav_id': self.parent_nav_id,
            'section_id': self.section_id,
        }

class Group(Base):
    __tablename__ = 'groups'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    user_groups = relationship('UserGroup', back_populates='group', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

class GroupNav(Base):
    __tablename__ = 'group_nav'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # No foreign keys: deleting a navigation item removes its grants explicitly
    nav_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    group_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    __table_args__ = (UniqueConstraint('nav_id', 'group_id', name='uq_group_nav'),)

class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_nav: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_groups = relationship('UserGroup', back_populates='user', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

class UserGroup(Base):
    __tablename__ = 'user_groups'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    group_id: Mapped[int] = mapped_column(ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    __table_args__ = (UniqueConstraint('user_id', 'group_id', name='uq_user_group'),)
    user = relationship('User', back_populates='user_groups')
    group = relationship('Group', back_populates='user_groups')
