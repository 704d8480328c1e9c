"""Classic API consumer: JWT-bearer access tokens for member identities."""

# exports
from .consumer import ClassicConsumer
from .config import ConsumerEnv

__all__ = [
    "ClassicConsumer",
    "ConsumerEnv",
]

__version__ = "1.0.0"
