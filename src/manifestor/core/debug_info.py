"""
Debug information listing for development tooling.
"""

from __future__ import annotations

from typing import Any

from .aliases import build_entry_aliases
from .ir import ArtifactCollection

FLAT = "FLAT"
COMPACT = "COMPACT"
DESC = "DESC"


def build_debug_infos(artifacts: ArtifactCollection) -> dict[str, Any]:
    """
    Build the debug listing of pages and widgets.

    Pages carry their flat and compact definitions plus, for assembled
    pages, the composition tree. Widgets carry their descriptor.
    """
    pages = [
        {
            "name": page.name,
            "path": page.path,
            COMPACT: page.definition,
            FLAT: page.definition,
            **(page.debug_info or {}),
        }
        for page in artifacts.pages
    ]
    widgets = [
        {"name": widget.name, "path": widget.path, DESC: widget.descriptor}
        for widget in artifacts.widgets
    ]
    return {
        "aliases": {
            "pages": build_entry_aliases(artifacts.pages),
            "widgets": build_entry_aliases(artifacts.widgets),
        },
        "pages": pages,
        "widgets": widgets,
    }
