"""Context scoping service.

Turns a chat turn's context selector into the concrete list of capture ids the
search may touch. Every id returned is owned by the requesting user and active;
ids that fail this check drop out silently.
"""

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.context import MAX_SCOPE_SIZE, ContextFilters, ContextItemType, ContextSelector, ContextType
from shared.models.document import DocumentStatus

ALL_LIMIT = 1000
BOOKMARKS_LIMIT = 500


def _unique(ids: list[str]) -> list[str]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(ids))


class ContextScopingService:
    """Resolves context selectors against the document store."""

    def __init__(self, helper_config: HelperConfig, store_client: StoreClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._store_client = store_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def do_resolve(self, user_id: str, selector: ContextSelector) -> list[str]:
        """Resolve a selector into access-checked capture ids.

        Args:
            user_id (str): The requesting user.
            selector (ContextSelector): Which captures the chat turn may draw from.

        Returns:
            list[str]: Unique capture ids, at most MAX_SCOPE_SIZE. Empty is a valid result.

        Raises:
            Exception: If a store query fails.
        """
        context_type = selector.context_type
        if context_type == ContextType.ALL:
            ids = await self._resolve_all(user_id, selector.filters)
        elif context_type == ContextType.COLLECTION:
            ids = await self._resolve_collections(user_id, selector)
        elif context_type == ContextType.BOOKMARKS:
            ids = await self._resolve_bookmarks(user_id, selector.filters)
        elif context_type == ContextType.SPECIFIC:
            ids = await self._resolve_specific(user_id, selector)
        elif context_type == ContextType.MIXED:
            ids = _unique(
                await self._resolve_collections(user_id, selector)
                + await self._resolve_specific(user_id, selector)
            )
        else:
            raise ValueError(f"Unsupported context type: {context_type}")

        if len(ids) > MAX_SCOPE_SIZE:
            self.logging.warning("Scope of %d captures truncated to %d.", len(ids), MAX_SCOPE_SIZE)
            ids = ids[:MAX_SCOPE_SIZE]

        self.logging.info("Resolved '%s' context to %d capture(s).", context_type.value, len(ids))
        return ids

    ##########################################
    ############### SELECTORS ################
    ##########################################

    async def _resolve_all(self, user_id: str, filters: ContextFilters) -> list[str]:
        return await self._store_client.find_document_ids(
            owner_id=user_id,
            status=DocumentStatus.ACTIVE,
            date_range=filters.date_range,
            content_types=filters.content_types,
            limit=ALL_LIMIT,
        )

    async def _resolve_bookmarks(self, user_id: str, filters: ContextFilters) -> list[str]:
        return await self._store_client.find_document_ids(
            owner_id=user_id,
            status=DocumentStatus.ACTIVE,
            bookmarked=True,
            date_range=filters.date_range,
            limit=BOOKMARKS_LIMIT,
        )

    async def _resolve_collections(self, user_id: str, selector: ContextSelector) -> list[str]:
        collection_ids = selector.get_item_ids(ContextItemType.COLLECTION)
        if not collection_ids:
            return []

        # foreign collections are filtered out by the store
        collections = await self._store_client.find_collections(owner_id=user_id, collection_ids=collection_ids)
        member_ids = _unique([doc_id for collection in collections for doc_id in collection.document_ids])
        if not member_ids:
            return []

        # a collection may still reference deleted or foreign captures
        valid_ids = set(await self._store_client.find_document_ids(
            owner_id=user_id,
            status=DocumentStatus.ACTIVE,
            document_ids=member_ids,
        ))
        return [doc_id for doc_id in member_ids if doc_id in valid_ids]

    async def _resolve_specific(self, user_id: str, selector: ContextSelector) -> list[str]:
        capture_ids = _unique(selector.get_item_ids(ContextItemType.CAPTURE))
        if not capture_ids:
            return []

        valid_ids = set(await self._store_client.find_document_ids(
            owner_id=user_id,
            status=DocumentStatus.ACTIVE,
            document_ids=capture_ids,
        ))
        return [doc_id for doc_id in capture_ids if doc_id in valid_ids]
