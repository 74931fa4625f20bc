"""Environment-backed settings for the Deepen retrieval backend."""

import logging
import os
from typing import Any, Callable

from shared.logging.logging_setup import ColorLogger

_TRUTHY = ("true", "1", "yes", "on")


class HelperConfig:
    """Reads typed settings from environment variables.

    Keys are case-insensitive and an empty value counts as unset, so
    ``FOO=`` in a compose file falls back to the default like a missing key.
    """

    def __init__(self, logger: ColorLogger | logging.Logger) -> None:
        self._logger = logger if isinstance(logger, ColorLogger) else ColorLogger(logger)

    def _resolve(self, key: str, default: Any, parse: Callable[[str, str], Any]) -> Any:
        """Look up ``key`` and parse it, or fall back to ``default``.

        Raises:
            ValueError: If the key is unset and ``default`` is None.
        """
        env_key = key.upper()
        raw = (os.getenv(env_key) or "").strip()
        if not raw:
            if default is None:
                raise ValueError(f"Environment variable '{env_key}' is not set.")
            return default
        return parse(env_key, raw)

    def get_string_val(self, key: str, default: str | None = None) -> str:
        return self._resolve(key, default, lambda _k, raw: raw)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float when the value has a decimal point.

        Raises:
            ValueError: If unset without default, or not a valid number.
        """
        def parse(env_key: str, raw: str) -> float | int:
            try:
                return float(raw) if "." in raw else int(raw)
            except ValueError:
                raise ValueError(f"Environment variable '{env_key}' is not a valid number: '{raw}'.")

        return self._resolve(key, default, parse)

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        return self._resolve(key, default, lambda _k, raw: raw.lower() in _TRUTHY)

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a bracketed list such as ``[a,b,c]``.

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback if unset.
            separator (str): Element delimiter inside the brackets.
            element_type (type): Cast applied to every element.

        Raises:
            ValueError: If unset without default, not bracketed, or an element fails the cast.
        """
        def parse(env_key: str, raw: str) -> list:
            if not (raw.startswith("[") and raw.endswith("]")):
                raise ValueError(f"Environment variable '{env_key}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")
            items = [part.strip() for part in raw[1:-1].split(separator)]
            try:
                return [element_type(item) for item in items if item]
            except ValueError as e:
                raise ValueError(f"Environment variable '{env_key}' contains an element that is not {element_type.__name__}: {e}")

        return self._resolve(key, default, parse)

    def get_logger(self) -> ColorLogger:
        return self._logger
