"""Fallback adapter for hand-written documentation pages.

There is no framework state, traffic or script convention to rely on, so
only the DOM heuristics in :class:`~apidocs.extractors.dom.GenericDomLayer`
run.
"""

from __future__ import annotations

from apidocs.extractors.base import FrameworkExtractor
from apidocs.extractors.dom import GenericDomLayer


def build_extractor() -> FrameworkExtractor:
    return FrameworkExtractor("generic", [GenericDomLayer()])
