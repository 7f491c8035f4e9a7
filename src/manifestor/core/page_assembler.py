"""
Page assembler.

Flattens a page into the definition the runtime renders:

1. ``extends``: the base page is assembled first and the extending page's
   areas are merged into a copy of the base areas
2. ids are generated for items that have none (``<name>-id<N>``) and checked
   for uniqueness across the page
3. compositions are expanded: their items are prefixed with the instance id,
   their expressions are interpolated for the instance, and their areas are
   merged into the page (the ``.`` area replaces the composition item)
4. disabled items are dropped and widget features are validated, filling in
   schema defaults

Assembly works on a deep copy of the page and never touches the collected
artifacts. Any structural problem aborts the assembly with a
``PageAssemblyError`` naming the page.
"""

from __future__ import annotations

import copy
import logging
import posixpath
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import (
    CompositionCycleError,
    DuplicateIdError,
    ExtensionCycleError,
    InsertBeforeIdError,
    LayoutConflictError,
    PageAssemblyError,
)
from .expressions import MISSING, ExpressionInterpolator, lookup_path
from .ir import Artifact, ArtifactCategory, ArtifactCollection
from .validators import Validators

logger = logging.getLogger(__name__)

ID_SEPARATOR = "-"
SEGMENTS_MATCHER = re.compile(r"[_/-].")
NAMED_ITEM_KEYS = ("widget", "composition", "layout")


@dataclass
class AssembledPage:
    """
    A page (or composition) while and after it is assembled.

    Attributes:
        name: Page name
        path: Page file
        definition: The (assembled) definition
        debug_info: Composition tree with the flat and compact definitions
    """

    name: str
    path: str
    definition: dict[str, Any]
    debug_info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> AssembledPage:
        return cls(artifact.name, artifact.path, copy.deepcopy(artifact.definition or {}))

    @property
    def areas(self) -> dict[str, list[dict[str, Any]]]:
        return self.definition["areas"]


def _has(obj: Mapping[str, Any], key: str) -> bool:
    value = obj.get(key)
    return isinstance(value, str) and bool(value)


def _camel_case(name: str) -> str:
    return SEGMENTS_MATCHER.sub(lambda m: m.group(0)[1].upper(), name)


def _index_of(items: list[Any], entry: Any) -> int:
    return next(index for index, item in enumerate(items) if item is entry)


def set_path(obj: dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path, creating intermediate objects as needed."""
    *parents, last = path.split(".")
    for segment in parents:
        child = obj.get(segment)
        if not isinstance(child, dict):
            child = obj[segment] = {}
        obj = child
    obj[last] = value


def merge_item_lists(target: list[dict[str, Any]], source: list[dict[str, Any]], page_name: str) -> None:
    """
    Append ``source`` items to ``target``.

    Items with ``insertBeforeId`` are inserted right before the target item
    with that id instead.

    Raises:
        InsertBeforeIdError: If no item has the requested id
    """
    for item in source:
        before_id = item.get("insertBeforeId")
        if not before_id:
            target.append(item)
            continue
        for index, existing in enumerate(target):
            if existing.get("id") == before_id:
                target.insert(index, item)
                break
        else:
            raise InsertBeforeIdError(page_name, before_id)


class PageAssembler:
    """
    Assembles pages from the collected page, widget and layout artifacts.

    Args:
        validators: Page schema and widget feature validators
        artifacts: Collected artifacts; pages, widgets and layouts are
            looked up by any of their refs
        interpolator: Expression interpolator for compositions
    """

    def __init__(
        self,
        validators: Validators,
        artifacts: ArtifactCollection,
        interpolator: ExpressionInterpolator | None = None,
    ) -> None:
        self.validators = validators
        self.pages_by_ref = artifacts.by_ref(ArtifactCategory.PAGES)
        self.widgets_by_ref = artifacts.by_ref(ArtifactCategory.WIDGETS)
        self.layouts_by_ref = artifacts.by_ref(ArtifactCategory.LAYOUTS)
        self.interpolator = interpolator or ExpressionInterpolator()
        self._id_counter = 0

    def assemble(self, page: Artifact | str) -> AssembledPage:
        """
        Assemble a page.

        Args:
            page: A page artifact, or a ref to one

        Returns:
            The assembled page; the artifact itself is left unchanged

        Raises:
            PageAssemblyError: For cycles, duplicate ids, layout conflicts
                and unknown ``insertBeforeId`` targets
            SchemaValidationError: If the page or a feature configuration
                does not match its schema
        """
        if isinstance(page, str):
            page_ref = page
            page = self._find_page(page_ref, page_ref, page_ref)
        else:
            page_ref = page.refs[0] if page.refs else page.name
        self._id_counter = 0
        logger.debug(f"Assembling page {page_ref}")
        return self._load_page_recursively(AssembledPage.from_artifact(page), page_ref, [])

    # =========================================================================
    # Lookup
    # =========================================================================

    def _find_page(self, ref: str, context_ref: str, page_name: str) -> Artifact:
        artifact = self.pages_by_ref.get(ref)
        if artifact is None and posixpath.dirname(context_ref):
            relative = posixpath.normpath(posixpath.join(posixpath.dirname(context_ref), ref))
            artifact = self.pages_by_ref.get(relative)
        if artifact is None:
            raise PageAssemblyError(page_name, f'Page "{ref}" is not among the collected pages')
        return artifact

    def _lookup(self, ref: str, context_ref: str, page_name: str) -> AssembledPage:
        return AssembledPage.from_artifact(self._find_page(ref, context_ref, page_name))

    # =========================================================================
    # Pages
    # =========================================================================

    def _load_page_recursively(
        self, page: AssembledPage, page_ref: str, extension_chain: list[str]
    ) -> AssembledPage:
        if page.name in extension_chain:
            raise ExtensionCycleError(page.name, [*extension_chain, page.name])

        if self.validators.page is not None:
            self.validators.page.validate(page.definition, f'Validation failed for page "{page_ref}"')

        if not page.definition.get("areas"):
            page.definition["areas"] = {}

        self._process_extends(page, page_ref, extension_chain)
        self._generate_missing_ids(page)
        # ids are checked before and after compositions are expanded
        self._check_for_duplicate_ids(page)
        self._process_compositions(page, page_ref)
        self._check_for_duplicate_ids(page)
        self._remove_disabled_items(page)
        self._validate_widget_items(page, page_ref)
        return page

    def _process_extends(self, page: AssembledPage, page_ref: str, extension_chain: list[str]) -> None:
        if not _has(page.definition, "extends"):
            return
        base_ref = page.definition["extends"]
        base_page = self._lookup(base_ref, page_ref, page.name)
        self._load_page_recursively(base_page, base_ref, [*extension_chain, page.name])
        self._merge_page_with_base_page(page, base_page)

    def _merge_page_with_base_page(self, page: AssembledPage, base_page: AssembledPage) -> None:
        merged_areas = copy.deepcopy(base_page.areas)
        if _has(base_page.definition, "layout"):
            if _has(page.definition, "layout"):
                raise LayoutConflictError(page.name, base_page.name)
            page.definition["layout"] = base_page.definition["layout"]

        for area_name, items in page.areas.items():
            if area_name not in merged_areas:
                merged_areas[area_name] = items
                continue
            merge_item_lists(merged_areas[area_name], items, page.name)

        page.definition["areas"] = merged_areas

    # =========================================================================
    # Compositions
    # =========================================================================

    def _process_compositions(self, top_page: AssembledPage, page_ref: str) -> None:
        self._process_nested_compositions(top_page, page_ref, None, [], top_page)

    def _process_nested_compositions(
        self,
        page: AssembledPage,
        page_ref: str,
        instance_id: str | None,
        composition_chain: list[str],
        top_page: AssembledPage,
    ) -> AssembledPage:
        page.debug_info = {
            "id": instance_id,
            "name": page.name,
            "path": page.path,
            "FLAT": page.definition,
            "COMPACT": copy.deepcopy(page.definition),
            "compositions": [],
        }

        # Items are visited back to front so that replacing a composition
        # item by its contents leaves the positions of earlier items intact.
        pending: list[tuple[list[dict[str, Any]], dict[str, Any], str]] = []
        for area_name, items in page.areas.items():
            for index in range(len(items) - 1, -1, -1):
                item = items[index]
                if item.get("enabled") is False:
                    continue
                self._ensure_item_has_id(item)
                if not _has(item, "composition"):
                    continue
                name = self._page_name(item["composition"])
                if name in composition_chain:
                    raise CompositionCycleError(top_page.name, [*composition_chain, name])
                pending.append((items, item, f"/areas/{area_name}/{index}"))

        for items, item, item_pointer in pending:
            composition_ref = item["composition"]
            composition = self._prefix_composition_ids(
                self._lookup(composition_ref, page_ref, top_page.name), item
            )
            self._process_composition_expressions(composition, item, item_pointer, page_ref)
            self._process_nested_compositions(
                composition, composition_ref, item["id"], [*composition_chain, composition.name], top_page
            )
            page.debug_info["compositions"].append(composition.debug_info)
            self._merge_composition_areas(composition, page.definition, items, item, top_page)

        return page

    def _page_name(self, ref: str) -> str:
        artifact = self.pages_by_ref.get(ref)
        return artifact.name if artifact is not None else ref

    def _prefix_composition_ids(self, composition: AssembledPage, container_item: dict[str, Any]) -> AssembledPage:
        prefix = container_item["id"] + ID_SEPARATOR
        prefixed_areas: dict[str, list[dict[str, Any]]] = {}
        for area_name, items in (composition.definition.get("areas") or {}).items():
            for item in items:
                if _has(item, "id"):
                    item["id"] = prefix + item["id"]
            # areas of widgets inside the composition are named after the widget id
            if area_name.find(".") > 0:
                prefixed_areas[prefix + area_name] = items
            else:
                prefixed_areas[area_name] = items
        composition.definition["areas"] = prefixed_areas
        return composition

    def _process_composition_expressions(
        self,
        composition: AssembledPage,
        item: dict[str, Any],
        item_pointer: str,
        containing_page_ref: str,
    ) -> None:
        definition = composition.definition
        composition_ref = item["composition"]

        # feature schemas may use generated topics as defaults
        schema = definition.get("features")
        if schema:
            validate = self.validators.compile_features(
                self.interpolator.interpolate(item, schema), composition.name
            )
            validate.validate(
                item.setdefault("features", {}),
                f"Validation of page {containing_page_ref} failed for {composition_ref} features",
                f"{item_pointer}/features",
            )

        merged_features = definition.get("mergedFeatures")
        if isinstance(merged_features, Mapping):
            features = item.setdefault("features", {})
            for feature_path, values in self.interpolator.interpolate(item, merged_features).items():
                current = lookup_path(features, feature_path)
                if current is MISSING:
                    current = []
                elif not isinstance(current, list):
                    current = [current]
                set_path(features, feature_path, [*values, *current])

        definition["areas"] = self.interpolator.interpolate(item, definition["areas"])

    def _merge_composition_areas(
        self,
        composition: AssembledPage,
        definition: dict[str, Any],
        container_items: list[dict[str, Any]],
        composition_item: dict[str, Any],
        top_page: AssembledPage,
    ) -> None:
        for area_name, items in composition.areas.items():
            if area_name == ".":
                index = _index_of(container_items, composition_item)
                container_items[index:index] = items
                continue
            if area_name not in definition["areas"]:
                definition["areas"][area_name] = items
                continue
            merge_item_lists(definition["areas"][area_name], items, top_page.name)

        del container_items[_index_of(container_items, composition_item)]

    # =========================================================================
    # Ids, disabled items, features
    # =========================================================================

    def _item_name(self, item: Mapping[str, Any]) -> str:
        tables = {
            "widget": self.widgets_by_ref,
            "composition": self.pages_by_ref,
            "layout": self.layouts_by_ref,
        }
        for key in NAMED_ITEM_KEYS:
            if key in item:
                ref = str(item[key])
                artifact = tables[key].get(ref)
                return _camel_case(artifact.name if artifact is not None else posixpath.basename(ref))
        return ""

    def _next_id(self, prefix: str) -> str:
        next_id = f"{prefix}{ID_SEPARATOR}id{self._id_counter}"
        self._id_counter += 1
        return next_id

    def _ensure_item_has_id(self, item: dict[str, Any]) -> None:
        if "id" not in item:
            item["id"] = self._next_id(self._item_name(item))

    def _generate_missing_ids(self, page: AssembledPage) -> None:
        for items in page.areas.values():
            for item in items:
                self._ensure_item_has_id(item)

    def _check_for_duplicate_ids(self, page: AssembledPage) -> None:
        counts: dict[str, int] = {}
        for items in page.areas.values():
            for item in items:
                item_id = item.get("id")
                if item_id is not None:
                    counts[item_id] = counts.get(item_id, 0) + 1
        duplicates = [item_id for item_id, count in counts.items() if count > 1]
        if duplicates:
            raise DuplicateIdError(page.name, duplicates)

    def _remove_disabled_items(self, page: AssembledPage) -> None:
        for area_name, items in page.areas.items():
            page.areas[area_name] = [item for item in items if item.get("enabled") is not False]

    def _validate_widget_items(self, page: AssembledPage, page_ref: str) -> None:
        for area_name, items in page.areas.items():
            widget_items = [item for item in items if item.get("widget")]
            for index, item in enumerate(widget_items):
                name = item["widget"]
                features = item.setdefault("features", {})
                validate = self.validators.features.widgets.get(name)
                if validate is not None:
                    validate.validate(
                        features,
                        f"Validation of page {page_ref} failed for {name} features",
                        f"/areas/{area_name}/{index}/features",
                    )
                if not item["features"]:
                    del item["features"]
