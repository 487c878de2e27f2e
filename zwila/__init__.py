from zwila.client import Zwila
from zwila.config import Settings

__all__ = ["Settings", "Zwila"]
