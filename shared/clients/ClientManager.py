from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Instantiates the client configured for one client type.

    The engine is read from "{TYPE}_ENGINE" and resolved to the class
    "{Type}Client{Engine}" in the module shared.clients.{type}.{engine}.{Type}Client{Engine}.
    """

    client_type: str = ""
    class_prefix: str = ""
    default_engine: str | None = None

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Firestore").

        Raises:
            ValueError: If "{TYPE}_ENGINE" is not set and there is no default.
        """
        key = f"{self.client_type.upper()}_ENGINE"
        engine = self.helper_config.get_string_val(key, default=self.default_engine)
        if not engine:
            raise ValueError(f"No {self.client_type} engine specified in configuration ({key}).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """Instantiate the client for the configured engine.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type} engine '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client

    def get_client(self) -> ClientInterface:
        """Return the instantiated client."""
        return self.client
