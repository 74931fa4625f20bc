from shared.clients.embed.EmbedClientInterface import EmbedClientInterface, EmbeddingMode
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientGemini(EmbedClientInterface):
    TASK_TYPES = {
        EmbeddingMode.DOCUMENT: "RETRIEVAL_DOCUMENT",
        EmbeddingMode.QUERY: "RETRIEVAL_QUERY",
    }

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://generativelanguage.googleapis.com", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Gemini"

    def _get_default_model(self) -> str:
        return "text-embedding-004"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        # the key may also come from the user record on each request
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://generativelanguage.googleapis.com"),
            EnvConfig(env_key="API_KEY", val_type="string", default="")
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"x-goog-api-key": f"{self._api_key}"}
        else:
            return {}

    def _get_credential_header(self, api_key: str | None) -> dict:
        if api_key:
            return {"x-goog-api-key": f"{api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str | None:
        return self._base_url

    def _get_model_path(self) -> str:
        model = self.embed_model or self._get_default_model()
        return model if model.startswith("models/") else f"models/{model}"

    def _get_endpoint_healthcheck(self) -> str:
        return f"/v1beta/{self._get_model_path()}"

    def get_endpoint_embedding(self) -> str:
        return f"/v1beta/{self._get_model_path()}:embedContent"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, text: str, mode: EmbeddingMode) -> dict:
        """Build the Gemini embedContent request body.

        Returns:
            dict: {"model": "models/...", "content": {"parts": [{"text": "..."}]}, "taskType": "RETRIEVAL_QUERY"}
        """
        return {
            "model": self._get_model_path(),
            "content": {"parts": [{"text": text}]},
            "taskType": self.TASK_TYPES[mode],
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        values = (response_data.get("embedding") or {}).get("values")
        if not values:
            raise ValueError(
                "Gemini response does not contain a valid embedding. "
                f"Response keys: {list(response_data.keys())}"
            )
        return values
