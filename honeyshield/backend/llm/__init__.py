from .client import LLMClient
from .gatekeeper import LLMGatekeeper

__all__ = ["LLMClient", "LLMGatekeeper"]
