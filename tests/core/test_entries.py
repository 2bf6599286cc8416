"""
Test cases for entry mutations on the shelf and the wishlist.
"""

import datetime

import pytest
from bson import ObjectId

from bookshelf.errors import BookNotFoundError, Conflict, Forbidden, NotFound, Unauthorized
from bookshelf.models import BookStatus, EntryFields, Identity, ShelfEntryFields
from bookshelf.partition import SHELF, WISHLIST


@pytest.fixture
def hobbit(store):
    return store.seed_book("OL1W", "The Hobbit", ["J.R.R. Tolkien"])


class TestAdd:
    """Test cases for adding entries."""

    @pytest.mark.asyncio
    async def test_add_lent_book(self, entry_service, store, alice, alice_identity):
        fields = ShelfEntryFields(book_key="/works/OL1W", status="Lent", other_name="Carol", date="2024-01-05")

        entry = await entry_service.add(alice_identity, SHELF, fields)

        assert entry.id in store.entries
        assert entry.owner == alice.id
        assert entry.book.key == "OL1W"
        assert entry.book.title == "The Hobbit"
        assert entry.status == BookStatus.LENT
        assert entry.other_name == "Carol"
        assert entry.date == datetime.date(2024, 1, 5)
        assert entry.full_status == "Lent to Carol on 2024. 01. 05."

    @pytest.mark.asyncio
    async def test_default_status_clears_details(self, entry_service, alice_identity):
        fields = ShelfEntryFields(book_key="OL1W", status="Default", other_name="Carol", date="2024-01-05")

        entry = await entry_service.add(alice_identity, SHELF, fields)

        assert entry.status == BookStatus.DEFAULT
        assert entry.other_name is None
        assert entry.date is None

    @pytest.mark.asyncio
    async def test_wishlist_forces_status(self, entry_service, alice_identity):
        fields = EntryFields(book_key="OL2W", status="Lent", other_name="Carol")

        entry = await entry_service.add(alice_identity, WISHLIST, fields)

        assert entry.status == BookStatus.WISHLIST
        assert entry.other_name is None

    @pytest.mark.asyncio
    async def test_two_users_share_one_book(self, entry_service, store, alice_identity, bob_identity):
        fields = ShelfEntryFields(book_key="OL1W", status="Default")

        first = await entry_service.add(alice_identity, SHELF, fields)
        second = await entry_service.add(bob_identity, SHELF, fields)

        assert first.book.id == second.book.id
        assert len(store.books) == 1
        assert len(store.entries) == 2

    @pytest.mark.asyncio
    async def test_unknown_user(self, entry_service, store):
        fields = ShelfEntryFields(book_key="OL1W", status="Default")
        with pytest.raises(Unauthorized):
            await entry_service.add(Identity(id=str(ObjectId())), SHELF, fields)
        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_no_identity(self, entry_service):
        with pytest.raises(Unauthorized):
            await entry_service.add(None, SHELF, ShelfEntryFields(book_key="OL1W", status="Default"))

    @pytest.mark.asyncio
    async def test_unknown_book_writes_nothing(self, entry_service, store, alice_identity):
        with pytest.raises(BookNotFoundError):
            await entry_service.add(alice_identity, SHELF, ShelfEntryFields(book_key="OL404W", status="Default"))
        assert store.entries == {}
        assert store.books == {}


class TestUpdate:
    """Test cases for updating entries."""

    @pytest.mark.asyncio
    async def test_update_status_and_details(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)
        fields = ShelfEntryFields(book_key="/works/OL1W", status="Borrowed", other_name="Dave")

        entry = await entry_service.update(alice_identity, SHELF, existing.id, fields)

        assert entry.id == existing.id
        assert entry.book == hobbit
        assert entry.status == BookStatus.BORROWED
        assert entry.owner_name == "Dave"
        assert store.entries[existing.id].status == BookStatus.BORROWED

    @pytest.mark.asyncio
    async def test_same_key_does_not_hit_catalog(self, entry_service, store, mock_catalog, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        await entry_service.update(alice_identity, SHELF, existing.id, ShelfEntryFields(book_key="OL1W", status="Lent"))

        mock_catalog.lookup_book.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_changed_key_relinks_book(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        entry = await entry_service.update(
            alice_identity, SHELF, existing.id, ShelfEntryFields(book_key="OL2W", status="Default")
        )

        assert entry.book.key == "OL2W"
        assert entry.book.title == "Dune"

    @pytest.mark.asyncio
    async def test_dropping_details_clears_them(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit, BookStatus.LENT, "Carol", datetime.date(2024, 1, 5))

        entry = await entry_service.update(
            alice_identity, SHELF, existing.id, ShelfEntryFields(book_key="OL1W", status="Lent")
        )

        assert entry.other_name is None
        assert entry.date is None
        assert entry.full_status == "Lent"

    @pytest.mark.asyncio
    async def test_wishlist_entry_keeps_status_when_omitted(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit, BookStatus.WISHLIST)

        entry = await entry_service.update(alice_identity, WISHLIST, existing.id, EntryFields(book_key="OL1W"))

        assert entry.status == BookStatus.WISHLIST

    @pytest.mark.asyncio
    async def test_wishlist_entry_moves_to_shelf(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit, BookStatus.WISHLIST)

        entry = await entry_service.update(
            alice_identity, WISHLIST, existing.id, EntryFields(book_key="OL1W", status="Lent", other_name="Carol")
        )

        assert entry.status == BookStatus.DEFAULT
        assert entry.other_name is None

    @pytest.mark.asyncio
    async def test_shelf_entry_moves_to_wishlist(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        entry = await entry_service.update(
            alice_identity, SHELF, existing.id, ShelfEntryFields(book_key="OL1W", status="Wishlist")
        )

        assert entry.status == BookStatus.WISHLIST

    @pytest.mark.asyncio
    async def test_other_users_entry(self, entry_service, store, alice, bob_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        with pytest.raises(Forbidden) as exc_info:
            await entry_service.update(bob_identity, SHELF, existing.id, ShelfEntryFields(book_key="OL1W", status="Lent"))
        assert exc_info.value.status_code == 401
        assert store.entries[existing.id].status == BookStatus.DEFAULT


class TestLookupRules:
    """Test cases for resolving an entry id within a partition."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entry_id", ["not-an-id", "123", str(ObjectId())])
    async def test_unknown_or_malformed_id(self, entry_service, alice_identity, entry_id):
        with pytest.raises(NotFound) as exc_info:
            await entry_service.get(alice_identity, SHELF, entry_id)
        assert exc_info.value.message == "Book not found"

    @pytest.mark.asyncio
    async def test_entry_in_other_partition(self, entry_service, store, alice, alice_identity, hobbit):
        wished = store.seed_entry(alice, hobbit, BookStatus.WISHLIST)
        owned = store.seed_entry(alice, hobbit)

        with pytest.raises(NotFound):
            await entry_service.get(alice_identity, SHELF, wished.id)
        with pytest.raises(NotFound):
            await entry_service.delete(alice_identity, WISHLIST, owned.id)

    @pytest.mark.asyncio
    async def test_no_identity(self, entry_service, store, alice, hobbit):
        existing = store.seed_entry(alice, hobbit)
        with pytest.raises(Unauthorized):
            await entry_service.get(None, SHELF, existing.id)

    @pytest.mark.asyncio
    async def test_get_single(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit, BookStatus.LIBRARY_BORROWED, "CityLibrary", datetime.date(2024, 3, 1))

        single = await entry_service.get(alice_identity, SHELF, existing.id)

        assert single.id == existing.id
        assert single.book_key == "OL1W"
        assert single.title == "The Hobbit"
        assert single.author == ["J.R.R. Tolkien"]
        assert single.status == BookStatus.LIBRARY_BORROWED
        assert single.other_name == "CityLibrary"
        assert single.date == datetime.date(2024, 3, 1)


class TestDelete:
    """Test cases for deleting entries."""

    @pytest.mark.asyncio
    async def test_delete(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        await entry_service.delete(alice_identity, SHELF, existing.id)

        assert existing.id not in store.entries
        assert hobbit.id in store.books

    @pytest.mark.asyncio
    async def test_delete_wishlist_entry(self, entry_service, store, alice, alice_identity, hobbit):
        existing = store.seed_entry(alice, hobbit, BookStatus.WISHLIST)

        await entry_service.delete(alice_identity, WISHLIST, existing.id)

        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_other_users_entry(self, entry_service, store, alice, bob_identity, hobbit):
        existing = store.seed_entry(alice, hobbit)

        with pytest.raises(Forbidden):
            await entry_service.delete(bob_identity, SHELF, existing.id)
        assert existing.id in store.entries

    @pytest.mark.asyncio
    async def test_deleted_concurrently(self, entry_service, store, alice, alice_identity, hobbit, monkeypatch):
        existing = store.seed_entry(alice, hobbit)
        get_entry = store.get_entry

        async def get_then_lose_race(entry_id):
            entry = await get_entry(entry_id)
            store.entries.pop(entry_id, None)
            return entry

        monkeypatch.setattr(store, "get_entry", get_then_lose_race)

        with pytest.raises(Conflict) as exc_info:
            await entry_service.delete(alice_identity, SHELF, existing.id)
        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Book was already deleted"
