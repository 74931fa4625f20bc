import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.SearchHit import SearchHit
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_optional_config_val("BASE_URL")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="documents", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="documents")
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str | None:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_scroll(self) -> str:
        return f"/collections/{self._collection_name}/points/scroll"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_create_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_collection_info(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_create_payload_index(self) -> str:
        return f"/collections/{self._collection_name}/index"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_match_filter(self, conditions: dict[str, str | list[str]]) -> dict:
        must: list[dict] = []
        for key, value in conditions.items():
            if isinstance(value, (list, tuple, set)):
                must.append({"key": key, "match": {"any": list(value)}})
            else:
                must.append({"key": key, "match": {"value": value}})
        return {"must": must}

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {"vectors": {"size": vector_size, "distance": distance}}

    def get_create_payload_index_payload(self, field_name: str, field_schema: str) -> dict:
        return {"field_name": field_name, "field_schema": field_schema}

    def get_scroll_payload(self, filter: dict, with_payload: bool | list | dict, with_vector: bool | list, limit: int | None = None) -> dict:
        return {
            "filter": filter,
            "limit": limit,
            "with_payload": with_payload,
            "with_vector": with_vector,
        }

    def get_search_payload(self, vector: list[float], filter: dict, limit: int, with_payload: bool | list | dict) -> dict:
        return {
            "vector": vector,
            "filter": filter,
            "limit": limit,
            "with_payload": with_payload,
        }

    def get_delete_payload(self, filter: dict) -> dict:
        return {"filter": filter}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_scroll_content(self, raw_response: dict) -> dict:
        result = raw_response.get("result", {})
        return {
            "result": result.get("points", []),
            "status": raw_response.get("status", "ok"),
            "time": raw_response.get("time", 0),
        }

    def extract_collection_exists(self, raw_response: dict) -> bool:
        return bool(raw_response.get("result", {}).get("exists"))

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        return [
            SearchHit(
                id=hit.get("id"),
                score=hit.get("score", 0.0),
                payload=hit.get("payload") or {},
            )
            for hit in raw_response.get("result", [])
        ]

    def extract_indexed_payload_fields(self, raw_response: dict) -> set[str]:
        schema = raw_response.get("result", {}).get("payload_schema") or {}
        return set(schema.keys())

    def is_already_exists_response(self, response: httpx.Response) -> bool:
        # qdrant answers 409 Conflict for an existing collection
        return response.status_code == 409
