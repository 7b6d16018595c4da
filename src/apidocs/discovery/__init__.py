"""Provider discovery: turn a provider name into a documentation URL.

* :class:`DiscoveryResolver` -- the lookup itself.
* :mod:`~apidocs.discovery.links` -- HTML heuristics it relies on, also
  used by the pipeline's API-reference follow-up.
"""

from apidocs.discovery.links import extract_docs_link, find_api_reference_url, find_best_candidate
from apidocs.discovery.resolver import DiscoveryResolver

__all__ = [
    "DiscoveryResolver",
    "extract_docs_link",
    "find_api_reference_url",
    "find_best_candidate",
]
