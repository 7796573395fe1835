"""
Ledger Config Module

Settings for the LedgerSplit service, read from environment variables.
A .env file in the working directory is loaded first when present.

Environment:
    LEDGER_CURRENCY_SYMBOL - symbol used in formatted amounts (default: $)
    LEDGER_HOST            - bind address for the API (default: 127.0.0.1)
    LEDGER_PORT            - bind port for the API (default: 8000)
    LEDGER_LOG_LEVEL       - logging level name (default: INFO)

Functions:
    get_config: Return the shared LedgerConfig instance.
    reload_config: Re-read the environment and replace the shared instance.
"""

import os

from dotenv import load_dotenv


class LedgerConfig:
    """Settings snapshot taken from the environment."""

    def __init__(self, environ=None):
        environ = os.environ if environ is None else environ

        self.CURRENCY_SYMBOL = environ.get("LEDGER_CURRENCY_SYMBOL", "$")
        self.HOST = environ.get("LEDGER_HOST", "127.0.0.1")
        self.LOG_LEVEL = environ.get("LEDGER_LOG_LEVEL", "INFO").upper()

        port = environ.get("LEDGER_PORT", "8000")
        try:
            self.PORT = int(port)
        except ValueError:
            raise ValueError(f"LEDGER_PORT must be an integer, got: {port}")

    def __repr__(self) -> str:
        return (
            f"LedgerConfig(host='{self.HOST}', port={self.PORT}, "
            f"log_level='{self.LOG_LEVEL}', currency='{self.CURRENCY_SYMBOL}')"
        )


_config = None


def get_config() -> LedgerConfig:
    """Return the shared config, loading .env and the environment on first use."""
    global _config
    if _config is None:
        load_dotenv()
        _config = LedgerConfig()
    return _config


def reload_config(environ=None) -> LedgerConfig:
    """
    Rebuild the shared config.

    Args:
        environ: Mapping to read instead of os.environ (useful in tests).
    """
    global _config
    if environ is None:
        load_dotenv()
    _config = LedgerConfig(environ)
    return _config
