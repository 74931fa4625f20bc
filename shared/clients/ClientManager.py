from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Resolves one backend client from the <TYPE>_ENGINE setting.

    Engines are looked up by convention: engine "qdrant" for client type "rag"
    resolves to class RAGClientQdrant in shared.clients.rag.qdrant.RAGClientQdrant.
    Subclasses only declare the naming parts and the default engine.
    """

    client_type: str = ""
    class_prefix: str = ""
    default_engine: str = ""
    label: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = self._get_engine_from_env()
        self.client = self._load_client(self.engine)

    def _get_engine_from_env(self) -> str:
        engine = self.helper_config.get_string_val(f"{self.client_type.upper()}_ENGINE", default=self.default_engine)
        return engine.strip().lower().capitalize()

    def _load_client(self, engine: str) -> ClientInterface:
        """
        Imports and instantiates the engine's client class.

        Raises:
            ValueError: If no module or class exists for the engine.
        """
        class_name = f"{self.class_prefix}{engine}"
        module_path = f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}"
        try:
            module = __import__(module_path, fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.label or self.class_prefix} engine specified: '{engine}'. Error: {e}")

        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> ClientInterface:
        return self.client
