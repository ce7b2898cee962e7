"""
LLM provider boundary.

Adapters normalize OpenAI and Anthropic SDK calls into text chunk
streams or a single RawModelOutput; ProviderGateway picks the adapter
from the static capability table and owns the fallback chain.
"""

from diagrammaton.boundary.llm.clients import create_anthropic_client, create_openai_client
from diagrammaton.boundary.llm.gateway import ProviderGateway
from diagrammaton.boundary.llm.trace import AdapterState, AdapterTrace

__all__ = [
    "AdapterState",
    "AdapterTrace",
    "ProviderGateway",
    "create_anthropic_client",
    "create_openai_client",
]
