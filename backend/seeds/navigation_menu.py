"""Default admin menu and group grants used by scripts/seed_navigation.py.
(Not an executable script – single source of truth for the initial menu.)

Entries are (key, title, type, path, parent key, position). Parents must be listed
before their children.
"""

DEFAULT_MENU = [
    ('dashboard', 'Dashboard', 'section', None, None, 0),
    ('home', 'Home', 'link', '/dashboard', 'dashboard', 0),
    ('admin', 'Administration', 'section', None, None, 10),
    ('navigation', 'Navigation', 'menu', '/admin/navigation', 'admin', 0),
    ('groups', 'Groups', 'menu', '/admin/groups', 'admin', 10),
    ('access', 'Access Overview', 'link', '/admin/navigation/access', 'navigation', 0),
    ('profile', 'Profile', 'link', '/profile', None, 20),
]

# group name -> menu keys ('*' = every entry)
DEFAULT_GRANTS = {
    'Administrators': ['*'],
    'Staff': ['dashboard', 'home', 'profile'],
}
