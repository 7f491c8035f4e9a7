"""
Validation of collected artifacts.

Flow definitions and widget descriptors are checked against their schemas.
Entry pages (pages referenced directly by a flow) are assembled, which
validates them, their base pages, their compositions and the feature
configuration of every widget instance.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from . import validators as validators_module
from .ir import Artifact, ArtifactCollection
from .page_assembler import PageAssembler
from .validators import Validators

logger = logging.getLogger(__name__)


class ArtifactValidator:
    """
    Validates collected artifacts and assembles entry pages.

    Args:
        schemas: Optional replacements for the bundled ``page``, ``flow`` and
            ``widget`` schemas
    """

    def __init__(self, schemas: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self.schemas = dict(schemas or {})

    def build_validators(self, widgets: Sequence[Artifact] = ()) -> Validators:
        return validators_module.create(schemas=self.schemas, widgets=widgets)

    def validate_artifacts(self, artifacts: ArtifactCollection) -> ArtifactCollection:
        """
        Validate all artifacts.

        Returns:
            A collection whose pages are the assembled entry pages, with
            their debug info

        Raises:
            SchemaValidationError: For invalid flows, widgets, pages or features
            PageAssemblyError: For pages that cannot be assembled
        """
        validators = self.build_validators(artifacts.widgets)
        flows = self.validate_flows(artifacts.flows, validators)
        widgets = self.validate_widgets(artifacts.widgets, validators)
        pages = self.validate_pages(artifacts, validators)
        return artifacts.model_copy(update={"flows": flows, "widgets": widgets, "pages": pages})

    def validate_flows(self, flows: Sequence[Artifact], validators: Validators) -> list[Artifact]:
        for flow in flows:
            if validators.flow is not None:
                validators.flow.validate(flow.definition or {}, f'Validation failed for flow "{flow.name}"')
        return list(flows)

    def validate_widgets(self, widgets: Sequence[Artifact], validators: Validators) -> list[Artifact]:
        for widget in widgets:
            if validators.widget is not None:
                validators.widget.validate(
                    widget.descriptor or {}, f'Validation failed for widget "{widget.name}"'
                )
        return list(widgets)

    def validate_pages(self, artifacts: ArtifactCollection, validators: Validators) -> list[Artifact]:
        """
        Assemble every entry page (a page referenced by a flow).

        Only the assembled entry pages are returned: base pages and
        compositions are already merged into them.
        """
        entry_refs = {ref for flow in artifacts.flows for ref in flow.pages}
        assembler = PageAssembler(validators, artifacts)

        pages: list[Artifact] = []
        for page in artifacts.pages:
            if not any(ref in entry_refs for ref in page.refs):
                continue
            assembled = assembler.assemble(page)
            pages.append(
                page.model_copy(update={"definition": assembled.definition, "debug_info": assembled.debug_info})
            )
        logger.debug(f"Assembled {len(pages)} entry pages")
        return pages
