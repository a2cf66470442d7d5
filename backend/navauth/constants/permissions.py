"""Central permission codes guarding the navigation & access admin surface.
Extend cautiously; never rename codes silently, tokens issued by the auth module carry them.
"""
from __future__ import annotations
from typing import Dict, List

SERVICE_ACTIONS = {
    'ADMIN': ['NAV.MANAGE', 'GROUP.MANAGE'],
    'NAV': ['READ'],
}

NAV_MANAGE = 'ADMIN.NAV.MANAGE'
GROUP_MANAGE = 'ADMIN.GROUP.MANAGE'
NAV_READ = 'NAV.READ'


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

# Navigation status flags as stored in navigation.status
STATUS_ENABLED = 1
STATUS_DISABLED = 0

# Navigation types that are always rendered at the root of the menu
ROOT_ONLY_TYPES = ('section',)

DEFAULT_GROUPS: Dict[str, str] = {
    'Administrators': 'Full access to the admin console',
    'Staff': 'Default group for new accounts',
}
