"""
Loader results and initial data

Normalizes whatever a page loader returns into the payload the render
step consumes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from .context import RedirectResult

_LOADER_KEYS = {"props", "metadata", "redirect", "notFound", "className", "class_name"}


@dataclass(frozen=True)
class LoaderResult:
    """
    Normalized return value of ``get_server_side_props``.

    Attributes:
        props: Component props (never None)
        metadata: Document metadata such as ``title``/``description``
        redirect: Redirect that short-circuits rendering
        class_name: CSS class for the page root element
    """

    props: Dict[str, Any] = field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None
    redirect: Optional[RedirectResult] = None
    class_name: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LoaderResult":
        """
        Build a LoaderResult from a plain mapping.

        Accepts ``props``, ``metadata``, ``redirect`` and ``className`` (or
        ``class_name``). A redirect may be a RedirectResult or a mapping
        with ``location`` (or ``destination``) and ``permanent``.

        Raises:
            ValueError: If a key holds a value of the wrong type
        """
        unknown = set(data) - _LOADER_KEYS
        if unknown:
            raise ValueError(f"unexpected loader result keys: {', '.join(sorted(unknown))}")

        props = data.get("props")
        if props is None:
            props = {}
        elif not isinstance(props, Mapping):
            raise ValueError(f"props must be a mapping, got {type(props).__name__}")

        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValueError(f"metadata must be a mapping, got {type(metadata).__name__}")

        class_name = data.get("className", data.get("class_name"))
        if class_name is None:
            class_name = ""
        elif not isinstance(class_name, str):
            raise ValueError(f"className must be a string, got {type(class_name).__name__}")

        return cls(
            props=dict(props),
            metadata=dict(metadata) if metadata is not None else None,
            redirect=_parse_redirect(data.get("redirect")),
            class_name=class_name,
        )


@dataclass(frozen=True)
class InitialData:
    """Payload handed to the renderer and embedded in the document."""

    pathname: str
    params: Dict[str, str]
    props: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None
    class_name: str = ""
    not_found: bool = False
    error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pathname": self.pathname,
            "params": dict(self.params),
            "props": self.props,
            "metadata": self.metadata,
            "className": self.class_name,
            "notFound": self.not_found,
            "error": self.error,
        }


def build_initial_data(
    pathname: str,
    params: Mapping[str, str],
    loader_result: Optional[LoaderResult] = None,
    not_found: bool = False,
    error: bool = False,
) -> InitialData:
    """
    Assemble initial data from a loader result.

    A missing loader result behaves like an empty one: props ``{}``,
    metadata None, class name ``""``.

    Raises:
        ValueError: If the loader result carries a redirect
    """
    result = loader_result or LoaderResult()
    if result.redirect is not None:
        raise ValueError("redirect results are not rendered")

    return InitialData(
        pathname=pathname,
        params=dict(params),
        props=dict(result.props) if result.props is not None else {},
        metadata=result.metadata,
        class_name=result.class_name or "",
        not_found=not_found,
        error=error,
    )


def merge_metadata(
    base: Optional[Mapping[str, Any]],
    override: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, Any]]:
    """
    Merge document metadata, *override* winning key by key.

    Keys set to None in *override* keep the base value. Nested mappings
    such as ``openGraph`` are merged one level deep.
    """
    if base is None and override is None:
        return None
    merged: Dict[str, Any] = dict(base or {})
    for key, value in (override or {}).items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def merge_loader_results(results: Sequence[LoaderResult]) -> LoaderResult:
    """
    Combine layout and page loader results, outermost first.

    Later results override earlier ones: props key by key, metadata via
    ``merge_metadata`` and the class name when set.
    """
    props: Dict[str, Any] = {}
    metadata: Optional[Dict[str, Any]] = None
    class_name = ""
    for result in results:
        props.update(result.props)
        metadata = merge_metadata(metadata, result.metadata)
        if result.class_name:
            class_name = result.class_name
    return LoaderResult(props=props, metadata=metadata, class_name=class_name)


def _parse_redirect(value: Any) -> Optional[RedirectResult]:
    if value is None or isinstance(value, RedirectResult):
        return value
    if isinstance(value, Mapping):
        location = value.get("location", value.get("destination"))
        if not isinstance(location, str) or not location:
            raise ValueError("redirect requires a non-empty location")
        return RedirectResult(location=location, permanent=bool(value.get("permanent", False)))
    raise ValueError(f"redirect must be a mapping, got {type(value).__name__}")
