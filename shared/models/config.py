from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required by a client.

    Attributes:
        env_key (str): The raw key of the environment variable, without the client prefix (e.g. "BASE_URL").
        val_type (str): The expected type of the value. Supported types are "string", "number", "bool", and "list".
        default (str | int | bool | list | None): An optional default value. If None, the variable is required and a
            missing value is reported as a configuration problem.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None
