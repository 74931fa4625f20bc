from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.health import ClientHealth


class ClientInterface(ABC):
    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        # missing configuration is reported, never raised, so the process can come up degraded
        self._config_problems = self.validate_full_configuration()
        for problem in self._config_problems:
            self.logging.warning("%s client '%s': %s", self.get_client_type().upper(), self.get_engine_name(), problem)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> list[str]:
        """
        Validates that all required configuration values for the client are set and valid.

        Returns:
            list[str]: One message per missing or invalid configuration value. Empty if the configuration is complete.
        """
        problems: list[str] = []
        for config in self._get_required_config():
            try:
                _ = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)
            except ValueError as e:
                problems.append(str(e))
        return problems

    def get_config_problems(self) -> list[str]:
        """Returns the configuration problems found when the client was constructed."""
        return list(self._config_problems)

    def is_configured(self) -> bool:
        return not self._config_problems

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "rag"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        pass

    def get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "qdrant"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "qdrant"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns all required configurations for the client.

        Returns:
            list[EnvConfig]: A list containing the details of each required configuration key.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full configuration key name for the client. E.g. "RAG_QDRANT_API_KEY"
        """
        key_prefix = f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}"
        return f"{key_prefix}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a configuration key for the client.

        Args:
            raw_key (str): The raw configuration key name
            default (Any): The default value to return if the configuration key is not set
            val_type (str): The type of the configuration value ("string", "number", "bool", "list")

        Raises:
            ValueError: If the key is required but not set, or the type is unsupported.
        """
        key = self._get_config_key_name(raw_key)
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        elif val_type == "bool":
            return self._helper_config.get_bool_val(key, default=default)
        elif val_type == "list":
            return self._helper_config.get_list_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in {self.get_client_type().upper()} client '{self.get_engine_name()}'.")

    def get_optional_config_val(self, raw_key: str, val_type: str = "string") -> Any:
        """
        Like get_config_val() but returns None instead of raising for a missing value.
        Used by subclasses to read required keys without aborting construction.
        """
        try:
            return self.get_config_val(raw_key, default=None, val_type=val_type)
        except ValueError:
            return None

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    @abstractmethod
    async def boot(self) -> None:
        """Initialise the connection and any other resources needed for making requests."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the connection and any other resources."""
        pass

    @abstractmethod
    async def do_healthcheck(self) -> bool:
        """Probe the backend.

        Returns:
            bool: True if the backend answered successfully.

        Raises:
            Exception: If the backend cannot be reached at all.
        """
        pass

    async def check_health(self) -> ClientHealth:
        """Run the health probe and fold the outcome and configuration problems into a report.

        Never raises: an unreachable backend is reported, not propagated.

        Returns:
            ClientHealth: Structured health of this client.
        """
        health = ClientHealth(
            client_type=self.get_client_type(),
            engine=self.get_engine_name(),
            configuration_problems=self.get_config_problems(),
        )
        try:
            health.reachable = await self.do_healthcheck()
            if not health.reachable:
                health.detail = "health probe returned an unsuccessful response"
        except Exception as e:
            health.reachable = False
            health.detail = str(e)
        return health
