from datetime import datetime, timezone

import pytest

from conftest import USER_A, USER_B
from services.context_scoping.ContextScopingService import ContextScopingService
from shared.models.context import ContextFilters, ContextItem, ContextSelector, DateRange
from shared.models.document import DocumentStatus


def at(day: int) -> datetime:
    return datetime(2025, 1, day, tzinfo=timezone.utc)


@pytest.fixture
def populated_store(store):
    store.add_document("a1", USER_A, created_at=at(1), content_type="article", bookmarked=True)
    store.add_document("a2", USER_A, created_at=at(5), content_type="video")
    store.add_document("a3", USER_A, created_at=at(10), content_type="article", bookmarked=True)
    store.add_document("a-deleted", USER_A, status=DocumentStatus.DELETED, created_at=at(2), bookmarked=True)
    store.add_document("b1", USER_B, created_at=at(3), bookmarked=True)
    store.add_collection("col-a", USER_A, ["a1", "a2", "a1"])
    store.add_collection("col-a2", USER_A, ["a2", "a3", "b1", "a-deleted"])
    store.add_collection("col-b", USER_B, ["b1"])
    return store


@pytest.fixture
def scoping(helper_config, populated_store) -> ContextScopingService:
    return ContextScopingService(helper_config=helper_config, store_client=populated_store)


def selector(context_type: str, *items: tuple[str, str], **filters) -> ContextSelector:
    return ContextSelector(
        context_type=context_type,
        items=[ContextItem(type=t, id=i) for t, i in items],
        filters=ContextFilters(**filters),
    )


def owned_by(store, user_id: str, ids: list[str]) -> bool:
    return all(store.documents[i].owner_id == user_id for i in ids)


@pytest.mark.asyncio
async def test_all_returns_active_owned_documents(scoping, populated_store):
    ids = await scoping.do_resolve(USER_A, selector("all"))

    assert ids == ["a1", "a2", "a3"]
    assert owned_by(populated_store, USER_A, ids)


@pytest.mark.asyncio
async def test_all_applies_date_and_content_type_filters(scoping):
    by_date = await scoping.do_resolve(USER_A, selector("all", date_range=DateRange(start=at(2), end=at(10))))
    by_type = await scoping.do_resolve(USER_A, selector("all", content_types=["article"]))

    assert by_date == ["a2", "a3"]
    assert by_type == ["a1", "a3"]


@pytest.mark.asyncio
async def test_all_is_capped(helper_config, store):
    for i in range(1200):
        store.add_document(f"d{i}", USER_A)
    scoping = ContextScopingService(helper_config=helper_config, store_client=store)

    ids = await scoping.do_resolve(USER_A, selector("all"))

    assert len(ids) == 1000


@pytest.mark.asyncio
async def test_all_for_user_without_documents_is_empty(scoping):
    assert await scoping.do_resolve("nobody", selector("all")) == []


@pytest.mark.asyncio
async def test_bookmarks(scoping):
    ids = await scoping.do_resolve(USER_A, selector("bookmarks"))

    assert ids == ["a1", "a3"]


@pytest.mark.asyncio
async def test_bookmarks_are_capped_at_500(helper_config, store):
    for i in range(600):
        store.add_document(f"d{i}", USER_A, bookmarked=True)
    scoping = ContextScopingService(helper_config=helper_config, store_client=store)

    assert len(await scoping.do_resolve(USER_A, selector("bookmarks"))) == 500


@pytest.mark.asyncio
async def test_collection_union_is_deduplicated(scoping):
    ids = await scoping.do_resolve(USER_A, selector("collection", ("collection", "col-a"), ("collection", "col-a2")))

    assert ids == ["a1", "a2", "a3"]


@pytest.mark.asyncio
async def test_foreign_collection_contributes_nothing(scoping):
    ids = await scoping.do_resolve(USER_A, selector("collection", ("collection", "col-b")))

    assert ids == []


@pytest.mark.asyncio
async def test_foreign_and_deleted_members_of_owned_collection_drop_out(scoping, populated_store):
    ids = await scoping.do_resolve(USER_A, selector("collection", ("collection", "col-a2")))

    assert ids == ["a2", "a3"]
    assert owned_by(populated_store, USER_A, ids)


@pytest.mark.asyncio
async def test_specific_returns_exactly_the_owned_subset(scoping):
    ids = await scoping.do_resolve(
        USER_A,
        selector("specific", ("capture", "a3"), ("capture", "b1"), ("capture", "a-deleted"), ("capture", "missing"), ("capture", "a1")),
    )

    assert ids == ["a3", "a1"]


@pytest.mark.asyncio
async def test_mixed_unions_collections_and_captures(scoping):
    ids = await scoping.do_resolve(
        USER_A,
        selector("mixed", ("collection", "col-a"), ("collection", "col-b"), ("capture", "a3"), ("capture", "b1"), ("capture", "a1")),
    )

    assert sorted(ids) == ["a1", "a2", "a3"]
    assert len(ids) == len(set(ids))


@pytest.mark.asyncio
async def test_every_selector_respects_ownership(scoping, populated_store):
    items = [("collection", "col-a"), ("collection", "col-a2"), ("collection", "col-b"), ("capture", "b1"), ("capture", "a2")]
    for context_type in ("all", "collection", "bookmarks", "specific", "mixed"):
        ids = await scoping.do_resolve(USER_A, selector(context_type, *items))
        assert owned_by(populated_store, USER_A, ids), context_type


@pytest.mark.asyncio
async def test_store_failure_propagates(scoping, populated_store):
    populated_store.fail = True

    with pytest.raises(Exception, match="store unavailable"):
        await scoping.do_resolve(USER_A, selector("all"))
