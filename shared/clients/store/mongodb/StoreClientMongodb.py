from datetime import datetime
from typing import Any

from bson import ObjectId
from pymongo import AsyncMongoClient

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.context import DateRange
from shared.models.document import CaptureCollection, CaptureDocument, DocumentStatus, ProcessingStatus


class StoreClientMongodb(StoreClientInterface):
    CAPTURES = "captures"
    COLLECTIONS = "collections"
    USERS = "users"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._uri = self.get_optional_config_val("URI")
        self._database_name = self.get_config_val("DATABASE", default="deepen", val_type="string")
        self._client: AsyncMongoClient | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Mongodb"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="URI", val_type="string", default=None),
            EnvConfig(env_key="DATABASE", val_type="string", default="deepen")
        ]

    def _get_database(self):
        if self._client is None:
            raise Exception("MongoDB client not initialised. Call boot() before making requests.")
        return self._client[self._database_name]

    ##########################################
    ############ QUERY BUILDER ###############
    ##########################################

    @staticmethod
    def to_object_id(value: str | None) -> ObjectId | None:
        """Parse a hex id. Malformed ids yield None."""
        if value and ObjectId.is_valid(value):
            return ObjectId(value)
        return None

    @classmethod
    def to_object_ids(cls, values: list[str]) -> list[ObjectId]:
        """Parse hex ids, dropping malformed ones."""
        return [oid for oid in (cls.to_object_id(v) for v in values) if oid is not None]

    def get_document_query(
        self,
        owner: ObjectId,
        status: DocumentStatus | None = DocumentStatus.ACTIVE,
        bookmarked: bool | None = None,
        date_range: DateRange | None = None,
        content_types: list[str] | None = None,
        document_ids: list[ObjectId] | None = None,
    ) -> dict[str, Any]:
        """Build the captures filter.

        Returns:
            dict: e.g. {"owner": ObjectId(..), "status": "active", "createdAt": {"$gte": .., "$lte": ..}}
        """
        query: dict[str, Any] = {"owner": owner}
        if status is not None:
            query["status"] = status.value
        if bookmarked is not None:
            query["bookmarked"] = bookmarked
        if date_range is not None:
            query["createdAt"] = {"$gte": date_range.start, "$lte": date_range.end}
        if content_types:
            query["format"] = {"$in": list(content_types)}
        if document_ids is not None:
            query["_id"] = {"$in": document_ids}
        return query

    def get_collection_query(self, owner: ObjectId, collection_ids: list[ObjectId]) -> dict[str, Any]:
        return {"_id": {"$in": collection_ids}, "user": owner}

    ##########################################
    ############ RESPONSE PARSER #############
    ##########################################

    def extract_document(self, raw: dict) -> CaptureDocument:
        content = raw.get("content")
        if isinstance(content, dict):
            content = content.get("clean")
        owner = raw.get("owner")
        return CaptureDocument(
            id=str(raw["_id"]),
            owner_id=str(owner) if owner is not None else "",
            status=raw.get("status") or DocumentStatus.ACTIVE,
            content=content,
            created_at=raw.get("createdAt") if isinstance(raw.get("createdAt"), datetime) else None,
            bookmarked=bool(raw.get("bookmarked", False)),
            content_type=raw.get("format"),
            title=raw.get("title"),
            url=raw.get("url"),
            processing_status=raw.get("processingStatus"),
        )

    def extract_collection(self, raw: dict) -> CaptureCollection:
        return CaptureCollection(
            id=str(raw["_id"]),
            owner_id=str(raw.get("user", "")),
            name=raw.get("name"),
            document_ids=[str(capture_id) for capture_id in raw.get("captures") or []],
        )

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        if not self._uri:
            raise Exception("STORE client 'mongodb' has no URI configured.")
        self._client = AsyncMongoClient(self._uri, serverSelectionTimeoutMS=int(self.timeout * 1000), tz_aware=True)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def do_healthcheck(self) -> bool:
        result = await self._get_database().command("ping")
        return bool(result.get("ok"))

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def find_document_ids(
        self,
        owner_id: str,
        status: DocumentStatus | None = DocumentStatus.ACTIVE,
        bookmarked: bool | None = None,
        date_range: DateRange | None = None,
        content_types: list[str] | None = None,
        document_ids: list[str] | None = None,
        limit: int | None = None,
    ) -> list[str]:
        owner = self.to_object_id(owner_id)
        if owner is None:
            return []
        object_ids = self.to_object_ids(document_ids) if document_ids is not None else None
        if object_ids is not None and not object_ids:
            return []

        query = self.get_document_query(owner, status, bookmarked, date_range, content_types, object_ids)
        cursor = self._get_database()[self.CAPTURES].find(query, {"_id": 1})
        if limit:
            cursor = cursor.limit(limit)
        return [str(raw["_id"]) async for raw in cursor]

    async def find_collections(self, owner_id: str, collection_ids: list[str]) -> list[CaptureCollection]:
        owner = self.to_object_id(owner_id)
        object_ids = self.to_object_ids(collection_ids)
        if owner is None or not object_ids:
            return []
        cursor = self._get_database()[self.COLLECTIONS].find(
            self.get_collection_query(owner, object_ids), {"_id": 1, "user": 1, "name": 1, "captures": 1}
        )
        return [self.extract_collection(raw) async for raw in cursor]

    async def find_documents(self, document_ids: list[str]) -> list[CaptureDocument]:
        object_ids = self.to_object_ids(document_ids)
        if not object_ids:
            return []
        cursor = self._get_database()[self.CAPTURES].find(
            {"_id": {"$in": object_ids}},
            {"_id": 1, "owner": 1, "status": 1, "title": 1, "url": 1, "format": 1, "createdAt": 1, "bookmarked": 1},
        )
        return [self.extract_document(raw) async for raw in cursor]

    async def get_document(self, document_id: str) -> CaptureDocument | None:
        object_id = self.to_object_id(document_id)
        if object_id is None:
            return None
        raw = await self._get_database()[self.CAPTURES].find_one({"_id": object_id})
        return self.extract_document(raw) if raw else None

    async def set_processing_status(self, document_id: str, status: ProcessingStatus) -> None:
        object_id = self.to_object_id(document_id)
        if object_id is None:
            return
        await self._get_database()[self.CAPTURES].update_one(
            {"_id": object_id}, {"$set": {"processingStatus": status.value}}
        )

    async def get_embedding_credential(self, user_id: str) -> str | None:
        object_id = self.to_object_id(user_id)
        if object_id is None:
            return None
        raw = await self._get_database()[self.USERS].find_one({"_id": object_id}, {"geminiApiKey": 1})
        if not raw:
            return None
        return raw.get("geminiApiKey") or None
