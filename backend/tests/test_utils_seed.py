"""Test seeding utilities to reduce duplication.

These helpers create users, groups, navigation rows, grants and memberships directly
through the ORM so tests can arrange state without going through the services under test.
"""
from typing import Iterable, Optional
from navauth import get_db
from navauth.models.authz import User, Group, Navigation, GroupNav, UserGroup


def ensure_user(email: str, name: Optional[str] = None) -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=name or email.split('@')[0], email=email)
        session.add(u); session.commit(); session.refresh(u)
    return u


def ensure_group(name: str) -> Group:
    session = get_db()
    g = session.query(Group).filter_by(name=name).one_or_none()
    if not g:
        g = Group(name=name, description=name, status=1)
        session.add(g); session.commit(); session.refresh(g)
    return g


def add_nav(title: str, parent_nav_id: Optional[int] = None, position: int = 0, status: int = 1,
            nav_type: str = 'menu', path: Optional[str] = None) -> Navigation:
    session = get_db()
    nav = Navigation(title=title, type=nav_type, position=position, status=status,
                     path=path, parent_nav_id=parent_nav_id)
    session.add(nav); session.commit(); session.refresh(nav)
    return nav


def grant(group: Group, navs: Iterable[Navigation]):
    session = get_db()
    for nav in navs:
        session.add(GroupNav(nav_id=nav.id, group_id=group.id))
    session.commit()


def join(user: User, *groups: Group):
    session = get_db()
    for g in groups:
        session.add(UserGroup(user_id=user.id, group_id=g.id))
    session.commit()


def grants_for_nav(nav_id: int):
    session = get_db()
    return sorted(r.group_id for r in session.query(GroupNav).filter_by(nav_id=nav_id))


def grants_for_group(group_id: int):
    session = get_db()
    return sorted(r.nav_id for r in session.query(GroupNav).filter_by(group_id=group_id))


__all__ = ['ensure_user', 'ensure_group', 'add_nav', 'grant', 'join', 'grants_for_nav', 'grants_for_group']
