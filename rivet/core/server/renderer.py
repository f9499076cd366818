"""
Document rendering boundary

Component rendering and hydration belong to an external pipeline. The
default DocumentRenderer emits the HTML shell that pipeline hydrates: a
root element plus the initial data serialized into a JSON script tag.
"""

import html
import json
from typing import Optional, Protocol

from ..constants import DEFAULT_DESCRIPTION, DEFAULT_TITLE, HOT_RELOAD_PATH, INITIAL_DATA_SCRIPT_ID
from ..routing.table import RouteDefinition
from .data import InitialData

_HOT_RELOAD_SCRIPT = """
    <script>
      (function () {
        var source = new EventSource("%s");
        source.onmessage = function (event) {
          if (event.data && event.data.indexOf("reload:") === 0) {
            window.location.reload();
          }
        };
      })();
    </script>""" % HOT_RELOAD_PATH


class PageRenderer(Protocol):
    """Anything that turns initial data into an HTML document."""

    async def render(self, route: Optional[RouteDefinition], initial_data: InitialData) -> str:
        ...


def serialize_initial_data(initial_data: InitialData) -> str:
    """
    Serialize initial data for embedding inside a ``<script>`` element.

    ``<``, ``>`` and ``&`` are escaped so props can never close the tag.
    """
    payload = json.dumps(initial_data.to_dict(), ensure_ascii=True)
    return (
        payload.replace("&", "\\u0026")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
    )


class DocumentRenderer:
    """Default PageRenderer producing the HTML shell for a page."""

    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        description: str = DEFAULT_DESCRIPTION,
        dev: bool = False,
        lang: str = "en",
    ):
        self.title = title
        self.description = description
        self.dev = dev
        self.lang = lang

    async def render(self, route: Optional[RouteDefinition], initial_data: InitialData) -> str:
        metadata = initial_data.metadata or {}
        title = metadata.get("title") or self.title
        description = metadata.get("description") or self.description
        page = route.pathname if route is not None else ""
        class_attr = f' class="{html.escape(initial_data.class_name)}"' if initial_data.class_name else ""

        return f"""<!DOCTYPE html>
<html lang="{html.escape(self.lang)}">
  <head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(str(title))}</title>
    <meta name="description" content="{html.escape(str(description))}">
  </head>
  <body>
    <div id="root"{class_attr} data-route="{html.escape(page)}"></div>
    <script id="{INITIAL_DATA_SCRIPT_ID}" type="application/json">{serialize_initial_data(initial_data)}</script>{_HOT_RELOAD_SCRIPT if self.dev else ""}
  </body>
</html>"""
