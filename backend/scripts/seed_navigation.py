#!/usr/bin/env python
"""Idempotent seed script for the default menu, groups and their grants.

Usage:
    python backend/scripts/seed_navigation.py              # seed normally
    python backend/scripts/seed_navigation.py --show-tree  # print the menu tree after seeding
    python backend/scripts/seed_navigation.py --dry-run    # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, json
from sqlalchemy import select, inspect

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from navauth import create_app, get_db  # noqa: E402
from navauth.constants.permissions import DEFAULT_GROUPS, STATUS_ENABLED  # noqa: E402
from navauth.models.authz import Base, Group, Navigation  # noqa: E402
from navauth.services.permissions import stage_upsert  # noqa: E402
from navauth.services.access import navigation_tree  # noqa: E402
from seeds.navigation_menu import DEFAULT_MENU, DEFAULT_GRANTS  # noqa: E402


def ensure_groups(session):
    existing = {g.name: g for g in session.execute(select(Group)).scalars().all()}
    created = 0
    for name, description in DEFAULT_GROUPS.items():
        if name not in existing:
            grp = Group(name=name, description=description, status=STATUS_ENABLED)
            session.add(grp)
            existing[name] = grp
            created += 1
    session.flush()
    return existing, created


def ensure_menu(session):
    """Create missing menu entries, matching existing rows on (title, type, parent)."""
    ids = {}
    created = 0
    for key, title, nav_type, path, parent_key, position in DEFAULT_MENU:
        parent_id = ids.get(parent_key) if parent_key else None
        nav = session.execute(
            select(Navigation).where(
                Navigation.title == title,
                Navigation.type == nav_type,
                Navigation.parent_nav_id.is_(None) if parent_id is None else Navigation.parent_nav_id == parent_id,
            )
        ).scalars().first()
        if nav is None:
            nav = Navigation(title=title, type=nav_type, path=path, parent_nav_id=parent_id,
                             position=position, status=STATUS_ENABLED)
            session.add(nav)
            session.flush()
            created += 1
        ids[key] = nav.id
    return ids, created


def ensure_grants(session, groups, menu_ids):
    pairs = []
    for group_name, keys in DEFAULT_GRANTS.items():
        grp = groups.get(group_name)
        if grp is None:
            print(f"[WARN] Grant references unknown group {group_name}")
            continue
        wanted = menu_ids.keys() if '*' in keys else keys
        for key in wanted:
            if key not in menu_ids:
                print(f"[WARN] Grant for {group_name} references unknown menu key: {key}")
                continue
            pairs.append((menu_ids[key], grp.id))
    return len(stage_upsert(session, pairs))


def parse_args():
    p = argparse.ArgumentParser(description="Seed default navigation, groups and grants")
    p.add_argument('--show-tree', action='store_true', help='Print the full navigation tree as JSON after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        engine = session.get_bind()
        if not inspect(engine).has_table('navigation'):
            # Bootstrap schema; in real env prefer alembic upgrade
            import navauth.models.audit  # noqa: F401
            Base.metadata.create_all(engine)
        try:
            groups, created_g = ensure_groups(session)
            menu_ids, created_n = ensure_menu(session)
            granted = ensure_grants(session, groups, menu_ids)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Groups: {created_g}, Navigation: {created_n}, Grants: {granted}")
            else:
                session.commit()
                print(f"[DONE] Groups created: {created_g}, Navigation created: {created_n}, Grants added: {granted}")
            if args.show_tree:
                print(json.dumps(navigation_tree(session).to_dicts(), indent=2))
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
