from abc import abstractmethod
from typing import Any
import json

import httpx

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.clients.rag.models.Scroll import ScrollResult
from shared.clients.rag.models.SearchHit import SearchHit
from shared.helper.HelperConfig import HelperConfig
from shared.models.indexing import EnsureResult, EnsureStatus


class RAGClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    @abstractmethod
    def get_collection_name(self) -> str | None:
        """
        Returns the name of the collection all points are stored in.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_scroll(self) -> str:
        """
        Returns the endpoint path for scroll requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for nearest-neighbour search requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self) -> str:
        """
        Returns the endpoint path for create collection requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_collection_info(self) -> str:
        """
        Returns the endpoint path for collection details (including the payload index schema).
        """
        pass

    @abstractmethod
    def _get_endpoint_create_payload_index(self) -> str:
        """
        Returns the endpoint path for payload index creation.
        """
        pass

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @abstractmethod
    def get_match_filter(self, conditions: dict[str, str | list[str]]) -> dict:
        """
        Builds a backend-specific filter requiring every condition to hold.

        Args:
            conditions (dict[str, str | list[str]]): Payload field to required value. A list value means
                                                     "field value is one of these" (set membership).

        Returns:
            dict: The filter to pass to search, scroll and delete requests.
        """
        pass

    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """
        Builds the request payload for creating the collection.
        """
        pass

    @abstractmethod
    def get_create_payload_index_payload(self, field_name: str, field_schema: str) -> dict:
        """
        Builds the request payload for creating a payload index.
        """
        pass

    @abstractmethod
    def get_scroll_payload(self, filter: dict, with_payload: bool | list | dict, with_vector: bool | list, limit: int | None = None) -> dict:
        """
        Returns the payload for scroll requests to the RAG backend.

        Args:
            filter (dict): Filter built by get_match_filter().
            with_payload (bool | list | dict): Whether to include the payload, or which payload fields to include.
            with_vector (bool | list): Whether to include the vector.
            limit (int | None): The maximum number of results to return.
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], filter: dict, limit: int, with_payload: bool | list | dict) -> dict:
        """
        Returns the payload for a filtered nearest-neighbour search.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, filter: dict) -> dict:
        """
        Builds the backend-specific request payload for a filter-based delete.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_scroll_content(self, raw_response: dict) -> dict:
        """
        Extracts the relevant content from a raw scroll response.

        Returns:
            dict: A dict with keys "result", "status", "time".
        """
        pass

    @abstractmethod
    def extract_collection_exists(self, raw_response: dict) -> bool:
        """
        Extracts whether the collection exists from a raw existence check response.
        """
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts the hits from a raw search response, preserving the backend's order.
        """
        pass

    @abstractmethod
    def extract_indexed_payload_fields(self, raw_response: dict) -> set[str]:
        """
        Extracts the names of payload fields that already have an index from a collection info response.
        """
        pass

    @abstractmethod
    def is_already_exists_response(self, response: httpx.Response) -> bool:
        """
        Decides from the status code (never from the error text) whether a create request failed
        only because the target already exists.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the rag backend.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_check_collection_existence(), raise_on_error=True)
        return self.extract_collection_exists(resp.json())

    async def do_create_collection(self, vector_size: int = 768, distance: str = "Cosine") -> httpx.Response:
        """Create the collection in the rag backend.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.

        Returns:
            httpx.Response: The response from the create collection request.
        """
        return await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_create_collection())

    async def do_ensure_collection(self, vector_size: int = 768, distance: str = "Cosine") -> EnsureResult:
        """Create the collection unless it exists.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.

        Returns:
            EnsureResult: Created, already existing (including a lost creation race), or failed.
        """
        target = f"collection:{self.get_collection_name()}"
        try:
            if await self.do_existence_check():
                return EnsureResult(target=target, status=EnsureStatus.ALREADY_EXISTS)
            resp = await self.do_create_collection(vector_size=vector_size, distance=distance)
        except Exception as e:
            return EnsureResult(target=target, status=EnsureStatus.FAILED, error=str(e))

        if resp.is_success:
            self.logging.info("Created collection '%s' (size=%d, distance=%s).", self.get_collection_name(), vector_size, distance)
            return EnsureResult(target=target, status=EnsureStatus.CREATED)
        if self.is_already_exists_response(resp):
            return EnsureResult(target=target, status=EnsureStatus.ALREADY_EXISTS)
        return EnsureResult(target=target, status=EnsureStatus.FAILED, error=f"status {resp.status_code}: {resp.text[:200]}")

    async def do_fetch_indexed_payload_fields(self) -> set[str]:
        """Fetch the names of payload fields that already carry an index.

        Returns:
            set[str]: The indexed payload field names.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection_info(), raise_on_error=True)
        return self.extract_indexed_payload_fields(resp.json())

    async def do_ensure_payload_index(self, field_name: str, field_schema: str = "keyword") -> EnsureResult:
        """Create a payload index on a field unless it exists. Filtering on a field requires its index.

        Args:
            field_name (str): Payload field to index.
            field_schema (str): Index type, e.g. "keyword".

        Returns:
            EnsureResult: Created, already existing, or failed.
        """
        target = f"payload_index:{field_name}"
        try:
            if field_name in await self.do_fetch_indexed_payload_fields():
                return EnsureResult(target=target, status=EnsureStatus.ALREADY_EXISTS)
            resp = await self.do_request(
                method="PUT",
                json=self.get_create_payload_index_payload(field_name, field_schema),
                params={"wait": "true"},
                endpoint=self._get_endpoint_create_payload_index(),
            )
        except Exception as e:
            return EnsureResult(target=target, status=EnsureStatus.FAILED, error=str(e))

        if resp.is_success:
            self.logging.info("Created payload index on '%s' for '%s'.", field_name, self.get_collection_name())
            return EnsureResult(target=target, status=EnsureStatus.CREATED)
        if self.is_already_exists_response(resp):
            return EnsureResult(target=target, status=EnsureStatus.ALREADY_EXISTS)
        return EnsureResult(target=target, status=EnsureStatus.FAILED, error=f"status {resp.status_code}: {resp.text[:200]}")

    async def do_upsert_points(self, points: list[dict[str, Any]]) -> httpx.Response:
        """Upsert points into the rag backend collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.

        Args:
            points (list[dict[str, Any]]): The list of points to upsert.

        Returns:
            httpx.Response: The response from the upsert request.

        Raises:
            Exception: If the backend rejects the upsert.
        """
        return await self.do_request(
            method="PUT",
            content=json.dumps({"points": points}),
            params={"wait": "true"},
            endpoint=self._get_endpoint_points(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True)

    async def do_delete_points_by_filter(self, filter: dict) -> None:
        """Deletes all points matching the given filter from the RAG backend.
        Deleting with a filter that matches nothing is not an error.

        Args:
            filter (dict): The filter that identifies which points to delete.
                           Must always include owner_id to enforce access isolation.
        """
        await self.do_request(
            method="POST",
            content=json.dumps(self.get_delete_payload(filter)),
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_search(self, vector: list[float], filter: dict, limit: int = 5, with_payload: bool | list | dict = True) -> list[SearchHit]:
        """Run a filtered nearest-neighbour search.

        Args:
            vector (list[float]): The query vector.
            filter (dict): Filter built by get_match_filter(). Must always include owner_id.
            limit (int): Maximum number of hits.
            with_payload (bool | list | dict): Whether to attach the payload, or which fields.

        Returns:
            list[SearchHit]: Hits in the backend's similarity order (best first).
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_search_payload(vector, filter, limit, with_payload)),
            endpoint=self._get_endpoint_search(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self.extract_search_hits(resp.json())

    async def do_scroll(self, filter: dict, with_payload: bool | list | dict, with_vector: bool | list, limit: int | None = None) -> ScrollResult:
        """Fetch up to `limit` points matching a filter, without a query vector.

        Args:
            filter (dict): Filter built by get_match_filter().
            with_payload (bool | list | dict): Whether to include the payload in the scroll request, or which payload fields to include.
            with_vector (bool | list): Whether to include the vector in the scroll request.
            limit (int | None): The maximum number of points to return.

        Returns:
            ScrollResult: The matching points.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_scroll_payload(filter, with_payload, with_vector, limit)),
            endpoint=self._get_endpoint_scroll(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        raw_response = resp.json()
        scroll_content = self.extract_scroll_content(raw_response=raw_response)
        return ScrollResult(
            result=scroll_content.get("result", []),
            status=scroll_content.get("status", "ok"),
            time=scroll_content.get("time", 0),
        )

