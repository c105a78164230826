"""Unit tests for SharingService: folder propagation and document shares."""

import logging

import pytest

from docshelf.exceptions import (
    AreaNotFoundError,
    CategoryNotFoundError,
    EmptyFolderError,
    ForbiddenError,
    InvalidInputError,
    ShareNotFoundError,
    UserNotFoundError,
)
from docshelf.models import AreaDocumentShare, CategoryShare, DocumentShare
from docshelf.schemas.share import SHARED, SKIPPED
from docshelf.services.sharing_service import ALL_AREAS_TARGET, SharingService
from tests.conftest import make_area, make_category, make_document, make_user


def _share_rows(db):
    """Snapshot of all three share tables as comparable tuples."""
    return (
        sorted((s.document_id, s.area_id or "", s.permission) for s in db.query(AreaDocumentShare)),
        sorted((s.document_id, s.shared_with_id, s.permission) for s in db.query(DocumentShare)),
        sorted((s.category_id, s.shared_with_id, s.permission) for s in db.query(CategoryShare)),
    )


@pytest.fixture()
def sales(db):
    return make_area(db, "Sales")


@pytest.fixture()
def owner(db, sales):
    return make_user(db, "a@example.com", area=sales)


class TestCollectSubtree:

    def test_collects_nested_owned_categories(self, db, uow, owner):
        root = make_category(db, owner, "Root")
        child = make_category(db, owner, "Child", parent=root)
        grandchild = make_category(db, owner, "Grandchild", parent=child)
        ids = SharingService(uow).collect_subtree(root.id, owner.id)
        assert ids == [root.id, child.id, grandchild.id]

    def test_ownership_boundary_stops_expansion(self, db, uow, owner):
        other = make_user(db, "b@example.com")
        root = make_category(db, owner, "Root")
        foreign = make_category(db, other, "Foreign", parent=root)
        below_foreign = make_category(db, owner, "Mine again", parent=foreign)
        ids = SharingService(uow).collect_subtree(root.id, owner.id)
        assert foreign.id not in ids
        assert below_foreign.id not in ids

    def test_deleted_categories_are_skipped(self, db, uow, owner):
        root = make_category(db, owner, "Root")
        gone = make_category(db, owner, "Gone", parent=root, is_deleted=True)
        ids = SharingService(uow).collect_subtree(root.id, owner.id)
        assert ids == [root.id]
        assert gone.id not in ids

    def test_cycle_terminates(self, db, uow, owner):
        a = make_category(db, owner, "A")
        b = make_category(db, owner, "B", parent=a)
        a.parent_id = b.id
        db.commit()
        ids = SharingService(uow).collect_subtree(a.id, owner.id)
        assert ids == [a.id, b.id]

    def test_depth_cap_logs_warning(self, db, uow, owner, caplog):
        root = make_category(db, owner, "Root")
        level1 = make_category(db, owner, "L1", parent=root)
        level2 = make_category(db, owner, "L2", parent=level1)
        with caplog.at_level(logging.WARNING, logger="docshelf.services.sharing_service"):
            ids = SharingService(uow, max_depth=1).collect_subtree(root.id, owner.id)
        assert ids == [root.id, level1.id]
        assert level2.id not in ids
        assert "max depth" in caplog.text


class TestShareCategory:

    def test_reports_q1_scenario(self, db, uow, sales, owner):
        members = [make_user(db, f"s{i}@example.com", area=sales) for i in range(3)]
        reports = make_category(db, owner, "Reports")
        q1 = make_document(db, owner, "Q1.docx", category=reports)

        result = SharingService(uow).share_category(owner.id, reports.id, area_ids=[sales.id], permission="view")

        area_rows, doc_rows, cat_rows = _share_rows(db)
        assert area_rows == [(q1.id, sales.id, "view")]
        assert doc_rows == sorted((q1.id, m.id, "view") for m in members)
        assert cat_rows == sorted((reports.id, m.id, "view") for m in members)
        assert result.shared_document_count == len(members)
        assert result.shared_category_count == 1
        assert result.target_area_count == 1

    def test_idempotent(self, db, uow, sales, owner):
        make_user(db, "s1@example.com", area=sales)
        make_user(db, "s2@example.com", area=sales)
        root = make_category(db, owner, "Root")
        child = make_category(db, owner, "Child", parent=root)
        make_document(db, owner, "One", category=root)
        make_document(db, owner, "Two", category=child)
        service = SharingService(uow)

        first = service.share_category(owner.id, root.id, area_ids=[sales.id], permission="edit")
        rows_after_first = _share_rows(db)
        second = service.share_category(owner.id, root.id, area_ids=[sales.id], permission="edit")

        assert _share_rows(db) == rows_after_first
        assert first.model_dump() == second.model_dump()
        assert first.shared_document_count == 4
        assert first.shared_category_count == 2

    def test_rerun_updates_permission(self, db, uow, sales, owner):
        member = make_user(db, "s1@example.com", area=sales)
        root = make_category(db, owner, "Root")
        doc = make_document(db, owner, category=root)
        service = SharingService(uow)
        service.share_category(owner.id, root.id, area_ids=[sales.id], permission="view")
        service.share_category(owner.id, root.id, area_ids=[sales.id], permission="edit")
        assert uow.shares.get_document_share(doc.id, member.id).permission == "edit"
        assert db.query(DocumentShare).count() == 1

    def test_all_areas_when_none_given(self, db, uow, sales, owner):
        ops = make_area(db, "Ops")
        make_user(db, "s1@example.com", area=sales)
        make_user(db, "o1@example.com", area=ops)
        root = make_category(db, owner, "Root")
        doc = make_document(db, owner, category=root)

        result = SharingService(uow).share_category(owner.id, root.id, area_ids=None)

        assert result.target_area_count == 2
        assert result.target_user_count == 2
        assert {s.area_id for s in uow.shares.get_area_shares(doc.id)} == {sales.id, ops.id}

    def test_no_areas_at_all_rejected(self, db, uow):
        lonely = make_user(db, "lonely@example.com")
        root = make_category(db, lonely, "Root")
        make_document(db, lonely, category=root)
        with pytest.raises(InvalidInputError):
            SharingService(uow).share_category(lonely.id, root.id, area_ids=[])

    def test_unknown_area_rejected(self, db, uow, owner):
        root = make_category(db, owner, "Root")
        make_document(db, owner, category=root)
        with pytest.raises(AreaNotFoundError):
            SharingService(uow).share_category(owner.id, root.id, area_ids=["missing"])
        assert _share_rows(db) == ([], [], [])

    def test_empty_folder_mutates_nothing(self, db, uow, sales, owner):
        make_user(db, "s1@example.com", area=sales)
        root = make_category(db, owner, "Root")
        child = make_category(db, owner, "Child", parent=root)
        make_document(db, owner, "Trashed", category=child, is_deleted=True)

        with pytest.raises(EmptyFolderError) as exc_info:
            SharingService(uow).share_category(owner.id, root.id, area_ids=[sales.id])

        assert exc_info.value.status_code == 400
        assert _share_rows(db) == ([], [], [])

    def test_documents_owned_by_others_are_not_shared(self, db, uow, sales, owner):
        member = make_user(db, "s1@example.com", area=sales)
        root = make_category(db, owner, "Root")
        mine = make_document(db, owner, "Mine", category=root)
        theirs = make_document(db, member, "Theirs", category=root)

        SharingService(uow).share_category(owner.id, root.id, area_ids=[sales.id])

        assert uow.shares.get_area_share(mine.id, sales.id) is not None
        assert uow.shares.get_area_share(theirs.id, sales.id) is None

    def test_non_owner_forbidden(self, db, uow, owner):
        other = make_user(db, "b@example.com")
        root = make_category(db, owner, "Root")
        make_document(db, owner, category=root)
        with pytest.raises(ForbiddenError):
            SharingService(uow).share_category(other.id, root.id)

    def test_missing_category(self, db, uow, owner):
        with pytest.raises(CategoryNotFoundError):
            SharingService(uow).share_category(owner.id, "missing")

    def test_invalid_permission(self, db, uow, owner):
        root = make_category(db, owner, "Root")
        make_document(db, owner, category=root)
        with pytest.raises(InvalidInputError):
            SharingService(uow).share_category(owner.id, root.id, permission="owner")

    def test_email_mode_skips_unknown_and_self(self, db, uow, owner):
        reader = make_user(db, "reader@example.com")
        root = make_category(db, owner, "Root")
        doc = make_document(db, owner, category=root)

        result = SharingService(uow).share_category(
            owner.id,
            root.id,
            user_emails=["Reader@Example.com", "ghost@example.com", owner.email],
        )

        assert result.shared_document_count == 1
        assert result.target_area_count == 0
        assert {item.target for item in result.skipped} == {"ghost@example.com", owner.email}
        assert uow.shares.get_document_share(doc.id, reader.id) is not None
        assert db.query(AreaDocumentShare).count() == 0

    def test_email_mode_requires_emails(self, db, uow, owner):
        root = make_category(db, owner, "Root")
        make_document(db, owner, category=root)
        with pytest.raises(InvalidInputError):
            SharingService(uow).share_category(owner.id, root.id, user_emails=[])

    def test_both_target_kinds_rejected(self, db, uow, sales, owner):
        root = make_category(db, owner, "Root")
        make_document(db, owner, category=root)
        with pytest.raises(InvalidInputError):
            SharingService(uow).share_category(
                owner.id, root.id, area_ids=[sales.id], user_emails=["x@example.com"]
            )


class TestShareDocument:

    def test_share_by_email(self, db, uow, owner):
        reader = make_user(db, "reader@example.com")
        doc = make_document(db, owner)
        share = SharingService(uow).share_document(owner.id, doc.id, "reader@example.com", "edit")
        assert share.shared_with_id == reader.id
        assert share.permission == "edit"

    def test_unknown_email_raises(self, db, uow, owner):
        doc = make_document(db, owner)
        with pytest.raises(UserNotFoundError):
            SharingService(uow).share_document(owner.id, doc.id, "ghost@example.com", "view")

    def test_cannot_share_with_self(self, db, uow, owner):
        doc = make_document(db, owner)
        with pytest.raises(InvalidInputError):
            SharingService(uow).share_document(owner.id, doc.id, owner.email, "view")

    def test_only_owner_can_share(self, db, uow, owner):
        editor = make_user(db, "editor@example.com")
        make_user(db, "third@example.com")
        doc = make_document(db, owner)
        service = SharingService(uow)
        service.share_document(owner.id, doc.id, editor.email, "edit")
        with pytest.raises(ForbiddenError):
            service.share_document(editor.id, doc.id, "third@example.com", "view")

    def test_share_with_users_reports_items(self, db, uow, owner):
        make_user(db, "r1@example.com")
        make_user(db, "r2@example.com")
        doc = make_document(db, owner)
        result = SharingService(uow).share_document_with_users(
            owner.id, doc.id, ["r1@example.com", "r2@example.com", "ghost@example.com", "r1@example.com"], "view"
        )
        assert result.shared_document_count == 2
        statuses = {item.target: item.status for item in result.items}
        assert statuses == {
            "r1@example.com": SHARED,
            "r2@example.com": SHARED,
            "ghost@example.com": SKIPPED,
        }

    def test_share_with_all_areas_writes_single_null_row(self, db, uow, sales, owner):
        ops = make_area(db, "Ops")
        seller = make_user(db, "s1@example.com", area=sales)
        operator = make_user(db, "o1@example.com", area=ops)
        doc = make_document(db, owner)

        result = SharingService(uow).share_document_with_areas(owner.id, doc.id, None, "view")

        rows = uow.shares.get_area_shares(doc.id)
        assert [r.area_id for r in rows] == [None]
        assert result.items[0].target == ALL_AREAS_TARGET
        assert uow.shares.get_document_share(doc.id, seller.id) is not None
        assert uow.shares.get_document_share(doc.id, operator.id) is not None
        assert uow.shares.get_document_share(doc.id, owner.id) is None

    def test_share_with_explicit_areas(self, db, uow, sales, owner):
        ops = make_area(db, "Ops")
        seller = make_user(db, "s1@example.com", area=sales)
        operator = make_user(db, "o1@example.com", area=ops)
        doc = make_document(db, owner)

        result = SharingService(uow).share_document_with_areas(owner.id, doc.id, [sales.id], "edit")

        assert result.target_area_count == 1
        assert uow.shares.get_document_share(doc.id, seller.id).permission == "edit"
        assert uow.shares.get_document_share(doc.id, operator.id) is None


class TestManageShares:

    def test_update_and_revoke(self, db, uow, owner):
        reader = make_user(db, "reader@example.com")
        doc = make_document(db, owner)
        service = SharingService(uow)
        service.share_document(owner.id, doc.id, reader.email, "view")

        updated = service.update_document_share(owner.id, doc.id, reader.id, "edit")
        assert updated.permission == "edit"

        service.revoke_document_share(owner.id, doc.id, reader.id)
        assert uow.shares.get_document_share(doc.id, reader.id) is None

    def test_revoke_missing_share(self, db, uow, owner):
        reader = make_user(db, "reader@example.com")
        doc = make_document(db, owner)
        with pytest.raises(ShareNotFoundError):
            SharingService(uow).revoke_document_share(owner.id, doc.id, reader.id)

    def test_list_requires_edit(self, db, uow, owner):
        editor = make_user(db, "editor@example.com")
        viewer = make_user(db, "viewer@example.com")
        doc = make_document(db, owner)
        service = SharingService(uow)
        service.share_document(owner.id, doc.id, editor.email, "edit")
        service.share_document(owner.id, doc.id, viewer.email, "view")

        assert len(service.list_document_shares(editor.id, doc.id)) == 2
        with pytest.raises(ForbiddenError):
            service.list_document_shares(viewer.id, doc.id)
