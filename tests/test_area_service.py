"""Unit tests for AreaService: areas, role assignment and grants."""

import pytest

from docshelf.core.roles import CREATE_DOCUMENTS, UserRole
from docshelf.exceptions import (
    AreaNameConflictError,
    AreaNotFoundError,
    ForbiddenError,
    InvalidInputError,
    UserNotFoundError,
)
from docshelf.models import AreaDocumentShare, User
from docshelf.schemas import AreaCreate, AreaUpdate, RoleAssignment
from tests.conftest import make_area, make_document, make_user


@pytest.fixture()
def root_user(db):
    return make_user(db, "root@example.com", role="superuser")


class TestAreas:

    def test_create_and_list(self, db, facade, root_user):
        area = facade.create_area(root_user.id, AreaCreate(name=" Sales ", description="Deals"))
        make_user(db, "s1@example.com", area=area)
        summaries = facade.list_areas()
        assert [(s.name, s.member_count) for s in summaries] == [("Sales", 1)]

    def test_duplicate_name(self, db, facade, root_user):
        facade.create_area(root_user.id, AreaCreate(name="Sales"))
        with pytest.raises(AreaNameConflictError):
            facade.create_area(root_user.id, AreaCreate(name="Sales"))

    def test_only_superuser_creates(self, db, facade):
        admin = make_user(db, "admin@example.com", role="admin")
        with pytest.raises(ForbiddenError):
            facade.create_area(admin.id, AreaCreate(name="Sales"))

    def test_admin_updates_own_area_only(self, db, facade):
        mine = make_area(db, "Mine")
        theirs = make_area(db, "Theirs")
        admin = make_user(db, "admin@example.com", role="admin", area=mine)

        updated = facade.update_area(admin.id, mine.id, AreaUpdate(name="Mine v2"))
        assert updated.name == "Mine v2"
        with pytest.raises(ForbiddenError):
            facade.update_area(admin.id, theirs.id, AreaUpdate(name="Taken over"))

    def test_update_name_conflict(self, db, facade, root_user):
        make_area(db, "Sales")
        ops = make_area(db, "Ops")
        with pytest.raises(AreaNameConflictError):
            facade.update_area(root_user.id, ops.id, AreaUpdate(name="Sales"))

    def test_delete_area_orphans_members(self, db, facade, root_user):
        area = make_area(db, "Sales")
        leader = make_user(db, "lead@example.com", area=area, is_leader=True)
        member = make_user(db, "member@example.com", area=area)
        doc = make_document(db, root_user)
        facade.share_document_with_areas(root_user.id, doc.id, [area.id], "view")

        assert facade.delete_area(root_user.id, area.id) == 2

        db.expire_all()
        for user_id in (leader.id, member.id):
            user = db.get(User, user_id)
            assert user is not None
            assert user.area_id is None
            assert user.is_leader is False
        assert db.query(AreaDocumentShare).count() == 0
        assert facade.list_areas() == []

    def test_delete_missing_area(self, db, facade, root_user):
        with pytest.raises(AreaNotFoundError):
            facade.delete_area(root_user.id, "missing")


class TestAssignUserRole:

    def test_superuser_assigns_any_role(self, db, facade, root_user):
        area = make_area(db, "Sales")
        target = make_user(db, "t@example.com")
        user = facade.assign_user_role(
            root_user.id,
            RoleAssignment(user_email="T@example.com", area_id=area.id, role=UserRole.ADMIN, is_leader=True),
        )
        assert user.id == target.id
        assert user.role == "admin"
        assert user.area_id == area.id
        assert user.is_leader is True

    def test_removing_from_area_drops_leadership(self, db, facade, root_user):
        area = make_area(db, "Sales")
        make_user(db, "t@example.com", area=area, is_leader=True)
        user = facade.assign_user_role(
            root_user.id, RoleAssignment(user_email="t@example.com", area_id=None, is_leader=True)
        )
        assert user.area_id is None
        assert user.is_leader is False

    def test_admin_limited_to_normal_role(self, db, facade):
        area = make_area(db, "Sales")
        admin = make_user(db, "admin@example.com", role="admin", area=area)
        make_user(db, "t@example.com")
        with pytest.raises(ForbiddenError):
            facade.assign_user_role(
                admin.id, RoleAssignment(user_email="t@example.com", area_id=area.id, role=UserRole.ADMIN)
            )

    def test_admin_limited_to_own_area(self, db, facade):
        mine = make_area(db, "Mine")
        theirs = make_area(db, "Theirs")
        admin = make_user(db, "admin@example.com", role="admin", area=mine)
        make_user(db, "t@example.com")
        make_user(db, "away@example.com", area=theirs)

        user = facade.assign_user_role(admin.id, RoleAssignment(user_email="t@example.com", area_id=mine.id))
        assert user.area_id == mine.id
        with pytest.raises(ForbiddenError):
            facade.assign_user_role(admin.id, RoleAssignment(user_email="t@example.com", area_id=theirs.id))
        with pytest.raises(ForbiddenError):
            facade.assign_user_role(admin.id, RoleAssignment(user_email="away@example.com", area_id=None))

    def test_normal_user_forbidden(self, db, facade):
        user = make_user(db, "n@example.com")
        make_user(db, "t@example.com")
        with pytest.raises(ForbiddenError):
            facade.assign_user_role(user.id, RoleAssignment(user_email="t@example.com"))

    def test_unknown_email(self, db, facade, root_user):
        with pytest.raises(UserNotFoundError):
            facade.assign_user_role(root_user.id, RoleAssignment(user_email="ghost@example.com"))


class TestAreaMembership:

    def test_add_user_to_admins_area(self, db, facade):
        area = make_area(db, "Sales")
        admin = make_user(db, "admin@example.com", role="admin", area=area)
        target = make_user(db, "t@example.com")
        facade.add_user_to_area(admin.id, target.email)
        assert target.area_id == area.id
        assert [u.email for u in facade.list_area_users(admin.id)] == ["admin@example.com", "t@example.com"]

    def test_admin_without_area(self, db, facade):
        admin = make_user(db, "admin@example.com", role="admin")
        make_user(db, "t@example.com")
        with pytest.raises(InvalidInputError):
            facade.add_user_to_area(admin.id, "t@example.com")
        with pytest.raises(InvalidInputError):
            facade.list_area_users(admin.id)

    def test_admin_cannot_list_other_area(self, db, facade):
        mine = make_area(db, "Mine")
        theirs = make_area(db, "Theirs")
        admin = make_user(db, "admin@example.com", role="admin", area=mine)
        with pytest.raises(ForbiddenError):
            facade.list_area_users(admin.id, theirs.id)

    def test_superuser_lists_any_area(self, db, facade, root_user):
        area = make_area(db, "Sales")
        make_user(db, "s1@example.com", area=area)
        assert [u.email for u in facade.list_area_users(root_user.id, area.id)] == ["s1@example.com"]


class TestGrants:

    def test_grant_and_revoke(self, db, facade):
        admin = make_user(db, "admin@example.com", role="admin")
        target = make_user(db, "t@example.com", can_create=False)

        grant = facade.grant_user_permission(admin.id, target.id, CREATE_DOCUMENTS)
        assert grant.granted_by == admin.id
        # Granting twice is harmless.
        facade.grant_user_permission(admin.id, target.id, CREATE_DOCUMENTS)
        assert CREATE_DOCUMENTS in target.granted_permissions

        assert facade.revoke_user_permission(admin.id, target.id, CREATE_DOCUMENTS) is True
        assert facade.revoke_user_permission(admin.id, target.id, CREATE_DOCUMENTS) is False
        assert CREATE_DOCUMENTS not in target.granted_permissions

    def test_unknown_permission(self, db, facade):
        admin = make_user(db, "admin@example.com", role="admin")
        target = make_user(db, "t@example.com")
        with pytest.raises(InvalidInputError):
            facade.grant_user_permission(admin.id, target.id, "rule_the_world")

    def test_normal_user_cannot_grant(self, db, facade):
        user = make_user(db, "n@example.com")
        target = make_user(db, "t@example.com")
        with pytest.raises(ForbiddenError):
            facade.grant_user_permission(user.id, target.id, CREATE_DOCUMENTS)
