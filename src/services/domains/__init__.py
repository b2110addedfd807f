"""Init file for domain discovery services."""

from .completion_client import CompletionClient
from .godaddy import GoDaddyClient
from .pipeline import DomainStreamPipeline
from .suffix_matcher import get_domain_matcher, reset_domain_matcher


__all__ = [
    "CompletionClient",
    "DomainStreamPipeline",
    "GoDaddyClient",
    "get_domain_matcher",
    "reset_domain_matcher",
]
