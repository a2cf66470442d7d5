from navauth.constants.permissions import ALL_PERMISSION_CODES, NAV_MANAGE, GROUP_MANAGE, NAV_READ


def test_guard_codes_are_declared():
    for code in (NAV_MANAGE, GROUP_MANAGE, NAV_READ):
        assert code in ALL_PERMISSION_CODES


def test_codes_unique_and_dotted():
    assert len(ALL_PERMISSION_CODES) == len(set(ALL_PERMISSION_CODES))
    assert all(code.count('.') >= 1 for code in ALL_PERMISSION_CODES)
