from .logging import setup_logger
from .price_stream import HermesPriceStream, parse_hermes_payload
from .settings import AppSettings

__all__ = [
    "AppSettings",
    "HermesPriceStream",
    "parse_hermes_payload",
    "setup_logger",
]
