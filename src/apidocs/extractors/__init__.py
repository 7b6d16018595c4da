"""Framework-specific endpoint extraction from rendered documentation pages.

Each supported UI has an adapter module exposing ``build_extractor()``:

* :mod:`~apidocs.extractors.swagger_ui`
* :mod:`~apidocs.extractors.redoc`
* :mod:`~apidocs.extractors.scalar`
* :mod:`~apidocs.extractors.generic`

Use :func:`get_extractor` to look one up by :class:`~apidocs.detect.Framework`.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from apidocs.detect import Framework
from apidocs.extractors import generic, redoc, scalar, swagger_ui
from apidocs.extractors.base import (
    ExtractionContext,
    ExtractionLayer,
    FrameworkExtractor,
    LayerOutput,
    check_auth_wall,
    dedupe_endpoints,
    is_auth_wall,
)

EXTRACTORS: dict[Framework, Callable[[], FrameworkExtractor]] = {
    Framework.SWAGGER_UI: swagger_ui.build_extractor,
    Framework.REDOC: redoc.build_extractor,
    Framework.SCALAR: scalar.build_extractor,
    Framework.GENERIC: generic.build_extractor,
}


def get_extractor(framework: Framework) -> Optional[FrameworkExtractor]:
    """Return a fresh extractor for *framework*, or ``None`` for ``UNDETECTED``."""
    factory = EXTRACTORS.get(framework)
    return factory() if factory is not None else None


def combined_capture_pattern() -> re.Pattern[str]:
    """One pattern matching any URL some framework's network layer wants.

    The framework is not known until the page has loaded, so recording has
    to start with the union of every adapter's pattern.
    """
    patterns = [
        extractor.capture_pattern
        for extractor in (factory() for factory in EXTRACTORS.values())
        if extractor.capture_pattern is not None
    ]
    return re.compile("|".join(f"(?:{p.pattern})" for p in patterns), re.IGNORECASE)


__all__ = [
    "EXTRACTORS",
    "ExtractionContext",
    "ExtractionLayer",
    "FrameworkExtractor",
    "LayerOutput",
    "check_auth_wall",
    "combined_capture_pattern",
    "dedupe_endpoints",
    "get_extractor",
    "is_auth_wall",
]
