from obs_storage.storage.acl import (
    ACL_PRIVATE,
    ACL_PUBLIC_READ,
    acl_to_visibility,
    public_read_grants,
    visibility_to_acl,
)
from obs_storage.storage.models import PRIVATE, PUBLIC, Grant


def test_visibility_to_acl():
    assert visibility_to_acl(PUBLIC) == ACL_PUBLIC_READ
    assert visibility_to_acl(PRIVATE) == ACL_PRIVATE
    assert visibility_to_acl("anything-unrecognized") == ACL_PRIVATE


def test_public_grants_round_trip():
    assert acl_to_visibility(public_read_grants()) == PUBLIC
    assert acl_to_visibility([]) == PRIVATE


def test_only_all_users_read_grants_are_public():
    assert acl_to_visibility([Grant(permission="READ", grantee_id="someone")]) == PRIVATE
    assert acl_to_visibility([Grant(permission="WRITE", group="Everyone")]) == PRIVATE
    assert acl_to_visibility([Grant(permission="READ_ACP", group="AllUsers")]) == PUBLIC
    assert (
        acl_to_visibility(
            [
                Grant(permission="FULL_CONTROL", grantee_id="owner"),
                Grant(permission="READ", group="http://acs.amazonaws.com/groups/global/AllUsers"),
            ]
        )
        == PUBLIC
    )
