"""Widget bootstrap route, served without the API prefix."""

from fastapi import APIRouter, Response

from pinco.entrypoints.api.deps import SettingsDep
from pinco.services.widget import render_widget_script

router = APIRouter(tags=["widget"])

WIDGET_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Credentials": "true",
}


@router.get("/widget.js")
async def get_widget_script(settings: SettingsDep, key: str = "") -> Response:
    """Serve the script that embeds the widget in a site."""
    script = render_widget_script(key, settings.app_url, settings.widget_url)
    return Response(content=script, media_type="application/javascript", headers=WIDGET_HEADERS)
