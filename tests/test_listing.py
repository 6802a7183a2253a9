import math

import pytest
from hypothesis import given, strategies as st

from blog.listing import EMPTY_MESSAGE, PAGE_SIZE, PostListing, page_range, total_pages
from gateway import GatewayError


@given(st.integers(min_value=0, max_value=10_000))
def test_total_pages_is_ceiling_with_floor_of_one(total_count):
    assert total_pages(total_count) == max(math.ceil(total_count / PAGE_SIZE), 1)


def test_page_range_is_inclusive_window():
    assert page_range(1) == (0, 4)
    assert page_range(3) == (10, 14)


class TestFetching:

    def test_empty_table(self, fake_gateway):
        listing = PostListing(fake_gateway)
        listing.mount()
        assert listing.posts == []
        assert listing.total_count == 0
        assert listing.total_pages == 1
        assert listing.is_empty
        assert EMPTY_MESSAGE == "No blogs found."

    def test_twelve_posts_over_three_pages(self, fake_gateway):
        fake_gateway.add_posts(12)
        listing = PostListing(fake_gateway)
        listing.mount()
        assert len(listing.posts) == 5
        assert listing.total_pages == 3

        listing.go_to_page(2)
        assert len(listing.posts) == 5
        listing.go_to_page(3)
        assert len(listing.posts) == 2
        assert listing.total_count == 12
        assert not listing.has_next
        assert listing.has_previous

    @pytest.mark.parametrize("page", [1, 2, 3])
    def test_pages_are_newest_first(self, fake_gateway, page):
        fake_gateway.add_posts(12)
        listing = PostListing(fake_gateway)
        if page == 1:
            listing.mount()
        else:
            listing.go_to_page(page)
        stamps = [p["created_at"] for p in listing.posts]
        assert len(stamps) <= PAGE_SIZE
        assert stamps == sorted(stamps, reverse=True)

    def test_requests_row_window_and_exact_count(self, fake_gateway):
        listing = PostListing(fake_gateway, page=2)
        listing.mount()
        assert fake_gateway.calls_named("select") == [("select", "blogs", (5, 9))]

    def test_failure_sets_error_and_empties_list(self, fake_gateway):
        fake_gateway.add_posts(3)
        listing = PostListing(fake_gateway)
        listing.mount()
        fake_gateway.fail["select"] = GatewayError("permission denied for table blogs")

        assert listing.notify_mutated() is False
        assert listing.error == "permission denied for table blogs"
        assert listing.posts == []
        assert listing.total_count == 0
        assert listing.loading is False
        assert not listing.is_empty

    def test_loading_cleared_on_unexpected_exception(self, fake_gateway):
        listing = PostListing(fake_gateway)

        def boom():
            raise RuntimeError("socket closed")

        fake_gateway.before_select = boom
        with pytest.raises(RuntimeError):
            listing.mount()
        assert listing.loading is False

    def test_success_clears_previous_error(self, fake_gateway):
        listing = PostListing(fake_gateway)
        fake_gateway.fail["select"] = GatewayError("offline")
        listing.mount()
        del fake_gateway.fail["select"]
        listing.mount()
        assert listing.error is None


class TestPaging:

    def test_going_to_current_page_is_a_no_op(self, fake_gateway):
        fake_gateway.add_posts(7)
        listing = PostListing(fake_gateway)
        listing.mount()
        before = (list(listing.posts), listing.total_count, listing.page, listing.refresh_token)
        calls = len(fake_gateway.calls)

        assert listing.go_to_page(1) is False
        assert len(fake_gateway.calls) == calls
        assert (list(listing.posts), listing.total_count, listing.page, listing.refresh_token) == before

    def test_page_change_uses_in_place_loading(self, fake_gateway):
        fake_gateway.add_posts(7)
        listing = PostListing(fake_gateway)
        seen = {}

        def capture():
            seen["show_loading"] = listing.show_loading
            seen["page_changing"] = listing.page_changing

        fake_gateway.before_select = capture
        listing.go_to_page(2)
        assert seen == {"show_loading": False, "page_changing": True}
        assert listing.page_changing is False

    def test_mount_shows_full_loading(self, fake_gateway):
        listing = PostListing(fake_gateway)
        seen = {}
        fake_gateway.before_select = lambda: seen.setdefault("show_loading", listing.show_loading)
        listing.mount()
        assert seen["show_loading"] is True
        assert listing.loading is False

    def test_stale_response_is_dropped(self, fake_gateway):
        fake_gateway.add_posts(12)
        listing = PostListing(fake_gateway)
        listing.mount()

        # While page 2 is in flight the user asks for page 3; page 2's answer arrives last.
        fake_gateway.before_select = lambda: listing.go_to_page(3)
        assert listing.go_to_page(2) is False

        assert listing.page == 3
        assert len(listing.posts) == 2
        assert listing.loading is False

    def test_auth_change_resets_to_first_page(self, fake_gateway):
        fake_gateway.add_posts(12)
        listing = PostListing(fake_gateway)
        listing.go_to_page(3)

        listing.on_auth_changed(None)
        assert listing.page == 1
        assert fake_gateway.calls_named("select")[-1] == ("select", "blogs", (0, 4))

    def test_mutation_resets_page_and_bumps_refresh_token(self, fake_gateway):
        fake_gateway.add_posts(12)
        listing = PostListing(fake_gateway, page=2, refresh_token=4)
        listing.mount()

        listing.notify_mutated()
        assert listing.page == 1
        assert listing.refresh_token == 5

    def test_snapshot_round_trip_keeps_position(self, fake_gateway):
        listing = PostListing(fake_gateway, page=3, refresh_token=2)
        again = PostListing.restore(fake_gateway, listing.snapshot())
        assert (again.page, again.refresh_token) == (3, 2)
        assert PostListing.restore(fake_gateway, None).page == 1


class TestCards:

    def test_one_card_per_row_with_resolved_author(self, fake_gateway, ada):
        fake_gateway.add_posts(3, author_email="ada@example.com")
        listing = PostListing(fake_gateway)
        listing.mount()
        cards = listing.cards("ada@example.com")
        assert [c.id for c in cards] == [p["id"] for p in listing.posts]
        assert {c.author_display_name for c in cards} == {"Ada Lovelace"}
        assert all(c.is_owner for c in cards)

    def test_cards_are_reused_until_refresh_token_changes(self, fake_gateway):
        fake_gateway.add_posts(2)
        listing = PostListing(fake_gateway)
        listing.mount()
        first = listing.cards(None)
        assert listing.cards(None)[0] is first[0]

        listing.notify_mutated()
        assert listing.cards(None)[0] is not first[0]

    def test_cached_cards_follow_session_email(self, fake_gateway):
        fake_gateway.add_posts(1, author_email="ada@example.com")
        listing = PostListing(fake_gateway)
        listing.mount()
        assert not listing.cards(None)[0].is_owner
        assert listing.cards("ada@example.com")[0].is_owner
