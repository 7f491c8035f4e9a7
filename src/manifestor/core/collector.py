"""
Artifact collector.

Determines the application artifacts reachable from a set of entries by
inspecting flows, pages and widget/control descriptors:

    flows ──> pages ──> layouts
      │         │ └───> widgets ──> controls
    themes      └─(extends, compositions)─> pages

Sibling references are followed concurrently. Every category walk uses a
fresh visit memo, so each reference is resolved and read at most once per
``collect_*`` call, and cyclic references terminate.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from .ir import Artifact, ArtifactCategory, ArtifactCollection, Entry
from .memo import once
from .options import Options
from .references import FALLBACK_ERRORS, ReferenceResolver

logger = logging.getLogger(__name__)

Follow = Callable[[str], Awaitable[list[Artifact]]]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])|(?<=[A-Z])([A-Z])(?=[a-z])")


def dash_case(name: str) -> str:
    """
    Normalize a camelCase module name to dash-case.

    >>> dash_case("axTestWidget")
    'ax-test-widget'
    >>> dash_case("MyWidget")
    'my-widget'
    """
    return _CAMEL_BOUNDARY.sub(lambda m: "-" + (m.group(1) or m.group(2)), name).lower()


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _area_items(definition: Mapping[str, Any]) -> list[dict[str, Any]]:
    areas = definition.get("areas") or {}
    return [item for items in areas.values() for item in (items or [])]


def dedupe(artifacts: Sequence[Artifact]) -> list[Artifact]:
    """
    Merge artifact records by name.

    The first record for a name is kept (including its path); the refs of
    later records with the same name are appended to it without repetition.
    Applying ``dedupe`` to its own output changes nothing.

    Records that end up with distinct names but the same path are reported
    with a warning.
    """
    merged: dict[str, Artifact] = {}
    for artifact in artifacts:
        kept = merged.get(artifact.name)
        if kept is None:
            merged[artifact.name] = artifact.model_copy(update={"refs": _unique(artifact.refs)})
            continue
        if kept.path != artifact.path:
            logger.debug(
                f'{artifact.category} "{artifact.name}": keeping "{kept.path}", '
                f'ignoring "{artifact.path}"'
            )
        merged[artifact.name] = kept.model_copy(update={"refs": _unique([*kept.refs, *artifact.refs])})

    by_path: dict[str, list[str]] = {}
    for artifact in merged.values():
        by_path.setdefault(artifact.path, []).append(artifact.name)
    for path, names in by_path.items():
        if len(names) > 1:
            logger.warning(f"Duplicate artifact path {path} (names: {', '.join(names)})")

    return list(merged.values())


def follow_entry_refs(key: str, follow: Follow) -> Callable[[Any], Awaitable[list[Artifact]]]:
    """
    Build a function following the refs listed under ``key`` of an entry.

    The entry may be an ``Entry`` or an ``Artifact``; a missing key counts
    as an empty list.
    """

    async def follow_refs(entry: Any) -> list[Artifact]:
        refs = list(getattr(entry, key, None) or [])
        results = await asyncio.gather(*(follow(ref) for ref in refs))
        return [artifact for result in results for artifact in result]

    return follow_refs


class ArtifactCollector:
    """
    Walks the artifact graph starting from entries.

    Args:
        options: ``Options`` instance (or keyword mapping for one)
    """

    def __init__(self, options: Options | Mapping[str, Any] | None = None) -> None:
        self.options = Options.coerce(options)
        self.paths = self.options.paths
        self.references = ReferenceResolver(self.options.resolve)

    async def _read_json(self, path: str) -> Any:
        return await self.options.read_json(path)

    # =========================================================================
    # Orchestration
    # =========================================================================

    async def collect_artifacts(self, entries: Sequence[Entry | Mapping[str, Any]]) -> ArtifactCollection:
        """
        Collect all artifacts reachable from the given entries.

        Flows and themes are collected concurrently, then pages, then layouts
        and widgets concurrently, then controls. Any failure aborts the walk.
        """
        entries = [Entry.model_validate(entry) for entry in entries]

        async def follow_flows() -> tuple[list[Artifact], ...]:
            flows = await self.collect_flows(entries)
            pages = await self.collect_pages(flows)
            layouts, (widgets, controls) = await asyncio.gather(
                self.collect_layouts(pages),
                self._collect_widgets_and_controls(pages),
            )
            return flows, pages, layouts, widgets, controls

        (flows, pages, layouts, widgets, controls), themes = await asyncio.gather(
            follow_flows(), self.collect_themes(entries)
        )

        logger.debug(
            f"Collected {len(flows)} flows, {len(themes)} themes, {len(pages)} pages, "
            f"{len(layouts)} layouts, {len(widgets)} widgets, {len(controls)} controls"
        )
        return ArtifactCollection(
            flows=flows,
            themes=themes,
            pages=pages,
            layouts=layouts,
            widgets=widgets,
            controls=controls,
        )

    async def _collect_widgets_and_controls(
        self, pages: list[Artifact]
    ) -> tuple[list[Artifact], list[Artifact]]:
        widgets = await self.collect_widgets(pages)
        controls = await self.collect_controls(widgets)
        return widgets, controls

    # =========================================================================
    # Flows
    # =========================================================================

    async def collect_flows(self, entries: Sequence[Entry | Mapping[str, Any]]) -> list[Artifact]:
        """Collect the flows listed by the entries."""
        entries = [Entry.model_validate(entry) for entry in entries]
        follow_entry_to_flows = follow_entry_refs("flows", once(self._follow_flow))
        results = await asyncio.gather(*(follow_entry_to_flows(entry) for entry in entries))
        return dedupe([flow for result in results for flow in result])

    async def _follow_flow(self, flow_ref: str) -> list[Artifact]:
        flow_path = await self.references.resolve(f"{flow_ref}.json", self.paths["flows"])
        flow = await self._read_json(flow_path)
        places = (flow or {}).get("places") or {}
        pages = _unique(
            place["page"] for place in places.values() if isinstance(place, Mapping) and "page" in place
        )
        return [
            Artifact(
                category=ArtifactCategory.FLOWS,
                name=posixpath.basename(flow_ref),
                path=flow_path,
                refs=[flow_ref],
                pages=pages,
                definition=flow,
            )
        ]

    # =========================================================================
    # Themes
    # =========================================================================

    async def collect_themes(self, entries: Sequence[Entry | Mapping[str, Any]]) -> list[Artifact]:
        """
        Collect the themes listed by the entries.

        The ref ``default`` is looked up at ``paths["default-theme"]``, every
        other ref as ``<ref>.theme`` below the themes root.
        """
        entries = [Entry.model_validate(entry) for entry in entries]
        follow_entry_to_themes = follow_entry_refs("themes", once(self._follow_theme))
        results = await asyncio.gather(*(follow_entry_to_themes(entry) for entry in entries))
        return dedupe([theme for result in results for theme in result])

    async def _follow_theme(self, theme_ref: str) -> list[Artifact]:
        lookup_ref = self.paths["default-theme"] if theme_ref == "default" else f"{theme_ref}.theme"
        return [
            await self._follow_descriptor_dir(
                ArtifactCategory.THEMES, theme_ref, lookup_ref, "theme.json", self.paths["themes"]
            )
        ]

    async def _follow_descriptor_dir(
        self,
        category: ArtifactCategory,
        ref: str,
        lookup_ref: str,
        descriptor_file: str,
        lookup_path: str,
    ) -> Artifact:
        """Follow a directory artifact whose descriptor file is optional."""
        try:
            descriptor_path = await self.references.resolve(
                posixpath.join(lookup_ref, descriptor_file), lookup_path
            )
        except FALLBACK_ERRORS as e:
            logger.debug(f'No {descriptor_file} for {category} "{ref}" ({e})')
            directory = await self.references.resolve(lookup_ref, lookup_path)
            return Artifact(
                category=category,
                name=posixpath.basename(directory.rstrip("/")),
                path=directory,
                refs=[ref],
            )

        descriptor = await self._read_json(descriptor_path)
        directory = posixpath.dirname(descriptor_path)
        return Artifact(
            category=category,
            name=descriptor.get("name") or posixpath.basename(directory),
            path=directory,
            refs=[ref],
            desc=descriptor_path,
            descriptor=descriptor,
        )

    # =========================================================================
    # Pages
    # =========================================================================

    async def collect_pages(self, flows: Sequence[Artifact]) -> list[Artifact]:
        """
        Collect the pages reachable from the given flows.

        Pages referenced through ``extends`` or area ``composition`` entries
        are followed recursively.
        """
        async def follow_page_recursively(page_ref: str) -> list[Artifact]:
            pages = await self._follow_page(page_ref)
            nested = await asyncio.gather(*(follow_page_to_pages(page) for page in pages))
            return pages + [page for result in nested for page in result]

        follow_page_once = once(follow_page_recursively)
        follow_page_to_pages = follow_entry_refs("pages", follow_page_once)

        results = await asyncio.gather(*(follow_page_to_pages(flow) for flow in flows))
        return dedupe([page for result in results for page in result])

    async def _follow_page(self, page_ref: str) -> list[Artifact]:
        page_path = await self.references.resolve(f"{page_ref}.json", self.paths["pages"])
        page = await self._read_json(page_path)
        items = _area_items(page)

        pages = [item["composition"] for item in items if "composition" in item]
        if page.get("extends"):
            pages.append(page["extends"])

        layouts = [item["layout"] for item in items if "layout" in item]
        if page.get("layout"):
            layouts.append(page["layout"])

        widgets = [item["widget"] for item in items if "widget" in item]

        return [
            Artifact(
                category=ArtifactCategory.PAGES,
                name=posixpath.basename(page_ref),
                path=page_path,
                refs=[page_ref],
                pages=_unique(pages),
                layouts=_unique(layouts),
                widgets=_unique(widgets),
                definition=page,
            )
        ]

    # =========================================================================
    # Layouts
    # =========================================================================

    async def collect_layouts(self, pages: Sequence[Artifact]) -> list[Artifact]:
        """Collect the layouts referenced by the given pages."""
        follow_page_to_layouts = follow_entry_refs("layouts", once(self._follow_layout))
        results = await asyncio.gather(*(follow_page_to_layouts(page) for page in pages))
        return dedupe([layout for result in results for layout in result])

    async def _follow_layout(self, layout_ref: str) -> list[Artifact]:
        return [
            await self._follow_descriptor_dir(
                ArtifactCategory.LAYOUTS, layout_ref, layout_ref, "layout.json", self.paths["layouts"]
            )
        ]

    # =========================================================================
    # Widgets and controls
    # =========================================================================

    async def collect_widgets(self, pages: Sequence[Artifact]) -> list[Artifact]:
        """Collect the widgets referenced by the given pages."""
        follow_page_to_widgets = follow_entry_refs("widgets", once(self._follow_widget))
        results = await asyncio.gather(*(follow_page_to_widgets(page) for page in pages))
        return dedupe([widget for result in results for widget in result])

    async def _follow_widget(self, widget_ref: str) -> list[Artifact]:
        return [await self._follow_module(ArtifactCategory.WIDGETS, widget_ref, "widget.json")]

    async def collect_controls(self, widgets: Sequence[Artifact]) -> list[Artifact]:
        """
        Collect the controls referenced by the given widgets.

        Controls referenced by controls are followed recursively.
        """

        async def follow_control_recursively(control_ref: str) -> list[Artifact]:
            controls = [await self._follow_module(ArtifactCategory.CONTROLS, control_ref, "control.json")]
            nested = await asyncio.gather(*(follow_control_to_controls(control) for control in controls))
            return controls + [control for result in nested for control in result]

        follow_control_to_controls = follow_entry_refs("controls", once(follow_control_recursively))

        results = await asyncio.gather(*(follow_control_to_controls(widget) for widget in widgets))
        return dedupe([control for result in results for control in result])

    async def _follow_module(self, category: ArtifactCategory, ref: str, descriptor_file: str) -> Artifact:
        descriptor_path = await self.references.resolve(
            posixpath.join(ref, descriptor_file), self.paths[category.value]
        )
        descriptor = await self._read_json(descriptor_path)
        directory = posixpath.dirname(descriptor_path)
        name = descriptor.get("name")
        return Artifact(
            category=category,
            name=dash_case(name) if name else posixpath.basename(directory),
            path=directory,
            refs=[ref],
            desc=descriptor_path,
            controls=_unique(descriptor.get("controls") or []),
            descriptor=descriptor,
        )
