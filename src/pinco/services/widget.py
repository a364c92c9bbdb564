"""Bootstrap script loaded by sites embedding the widget."""

import json

from pinco.core.auth.types import USER_COLORS

WIDGET_FEATURES = ("screenshots", "details")

_LOADER = """(function() {
    var root = document.createElement('div');
    root.id = 'pinco-ui';
    root.dir = 'ltr';
    document.body.appendChild(root);
    var script = document.createElement('script');
    script.src = %s;
    script.type = 'text/javascript';
    document.head.appendChild(script);
})();"""


def render_widget_script(key: str, api_root: str, widget_url: str) -> str:
    """Render the ``widget.js`` bootstrap.

    The script exposes the widget configuration as the global ``Pinco``
    and then injects the UI bundle into the page.

    Args:
        key: Site key passed by the embedding page.
        api_root: Public base URL of the API.
        widget_url: URL of the widget UI bundle.
    """
    config = {
        "apiRoot": api_root,
        "key": key,
        "colors": list(USER_COLORS),
        "features": list(WIDGET_FEATURES),
    }
    return f"var Pinco = {json.dumps(config, indent=4)};\n" + _LOADER % json.dumps(widget_url)
