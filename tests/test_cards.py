import pytest
from hypothesis import given, strategies as st

from blog.cards import LOADING, UNKNOWN_AUTHOR, OwnershipError, PostCard, is_owner
from blog.dialogs import DialogState
from gateway import GatewayError

emails = st.one_of(st.none(), st.sampled_from(["ada@example.com", "grace@example.com", "", "ADA@example.com"]))


@given(emails, emails)
def test_owner_only_when_session_email_matches(session_email, author_email):
    expected = session_email is not None and session_email == author_email
    assert is_owner(session_email, author_email) is expected


def _post(**overrides):
    post = {
        "id": "post-1",
        "title": "A",
        "content": "x" * 200,
        "author_email": "ada@example.com",
        "created_at": "2026-01-01T10:00:00+00:00",
    }
    post.update(overrides)
    return post


class TestAuthorName:

    def test_placeholder_then_full_name(self, fake_gateway, ada):
        card = PostCard(_post(), None, fake_gateway)
        assert card.author_display_name == LOADING
        assert card.resolve_author() == "Ada Lovelace"

    def test_missing_author_email(self, fake_gateway):
        card = PostCard(_post(author_email=None), None, fake_gateway)
        assert card.resolve_author() == UNKNOWN_AUTHOR
        assert fake_gateway.calls == []

    def test_no_profile_row(self, fake_gateway):
        card = PostCard(_post(author_email="nobody@example.com"), None, fake_gateway)
        assert card.resolve_author() == UNKNOWN_AUTHOR

    def test_lookup_failure_degrades_quietly(self, fake_gateway, ada):
        fake_gateway.fail["select"] = GatewayError("timeout")
        card = PostCard(_post(), None, fake_gateway)
        assert card.resolve_author() == UNKNOWN_AUTHOR


class TestOwnership:

    def test_recomputed_when_session_changes(self, fake_gateway):
        card = PostCard(_post(), None, fake_gateway)
        assert not card.is_owner
        card.set_session_email("ada@example.com")
        assert card.is_owner
        card.set_session_email("grace@example.com")
        assert not card.is_owner

    @pytest.mark.parametrize("session_email", [None, "grace@example.com"])
    def test_non_owner_cannot_edit_or_delete(self, fake_gateway, session_email):
        card = PostCard(_post(), session_email, fake_gateway)
        with pytest.raises(OwnershipError):
            card.open_edit()
        with pytest.raises(OwnershipError):
            card.edit("B", "body")
        with pytest.raises(OwnershipError):
            card.request_delete()
        assert fake_gateway.calls_named("update") == []
        assert fake_gateway.calls_named("delete") == []

    def test_anyone_can_view(self, fake_gateway):
        card = PostCard(_post(), None, fake_gateway)
        assert card.open_view().is_open

    def test_excerpt_and_date(self, fake_gateway):
        card = PostCard(_post(), None, fake_gateway)
        assert card.excerpt == "x" * 150 + "..."
        assert card.created_on.isoformat() == "2026-01-01"


class TestEdit:

    @pytest.fixture
    def owned(self, fake_gateway):
        row = fake_gateway.add_posts(1, author_email="ada@example.com")[0]
        mutated = []
        card = PostCard(row, "ada@example.com", fake_gateway, on_mutated=lambda: mutated.append(True))
        return card, mutated

    @pytest.mark.parametrize("title,content", [("", "body"), ("  ", "body"), ("B", ""), ("B", "\n\t ")])
    def test_blank_fields_never_reach_gateway(self, fake_gateway, owned, title, content):
        card, mutated = owned
        assert card.edit(title, content) is False
        assert card.edit_dialog.error == "Title and content are required"
        assert card.edit_dialog.is_open
        assert fake_gateway.calls_named("update") == []
        assert mutated == []

    def test_owner_edit_updates_and_signals_refresh(self, fake_gateway, owned):
        card, mutated = owned
        assert card.edit("B", "new body") is True

        stored = fake_gateway.select_one("blogs", "*", {"id": card.id})
        assert stored["title"] == "B"
        assert stored["updated_at"] is not None
        assert card.post["title"] == "B"
        assert not card.edit_dialog.is_open
        assert mutated == [True]

    def test_gateway_failure_keeps_dialog_open(self, fake_gateway, owned):
        card, mutated = owned
        fake_gateway.fail["update"] = GatewayError("new row violates row-level security policy")
        assert card.edit("B", "body") is False
        assert card.edit_dialog.state is DialogState.ERROR
        assert card.edit_dialog.error == "new row violates row-level security policy"
        assert card.edit_dialog.can_submit
        assert mutated == []

    def test_open_edit_prefills_fields(self, owned):
        card, _ = owned
        dialog = card.open_edit()
        assert (dialog.title, dialog.content) == (card.post["title"], card.post["content"])


class TestDelete:

    @pytest.fixture
    def owned(self, fake_gateway):
        row = fake_gateway.add_posts(1, author_email="ada@example.com")[0]
        mutated = []
        card = PostCard(row, "ada@example.com", fake_gateway, on_mutated=lambda: mutated.append(True))
        return card, mutated

    def test_confirm_without_request_does_nothing(self, fake_gateway, owned):
        card, mutated = owned
        assert card.confirm_delete() is False
        assert fake_gateway.calls_named("delete") == []
        assert mutated == []

    def test_request_then_confirm_deletes(self, fake_gateway, owned):
        card, mutated = owned
        dialog = card.request_delete()
        assert dialog.is_open
        assert fake_gateway.calls_named("delete") == []

        assert card.confirm_delete() is True
        assert fake_gateway.calls_named("delete") == [("delete", "blogs", {"id": card.id})]
        assert card.deleted
        assert mutated == [True]

    def test_failure_leaves_confirmation_open(self, fake_gateway, owned):
        card, mutated = owned
        fake_gateway.fail["delete"] = GatewayError("permission denied")
        card.request_delete()
        assert card.confirm_delete() is False
        assert card.delete_dialog.is_open
        assert card.delete_dialog.error == "permission denied"
        assert mutated == []

    def test_closing_confirmation_cancels(self, fake_gateway, owned):
        card, _ = owned
        card.request_delete()
        card.delete_dialog.close()
        assert card.confirm_delete() is False
        assert fake_gateway.calls_named("delete") == []
