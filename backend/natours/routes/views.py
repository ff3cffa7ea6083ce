"""
Placeholder view group.

Stands in for the template-rendered site until the real view collaborator
is mounted. Pages are plain HTML so the guard chain, CSP and error pages
can be exercised from a browser.
"""

import html

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from natours.middleware.pipeline import GuardContext, get_guarded_request

router = APIRouter(tags=["Views"])

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Natours | {title}</title></head>
<body>
<main class="main"><h1>{title}</h1><p>Requested at {requested_at}</p></main>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, summary="Tour overview page")
async def overview(guarded: GuardContext = Depends(get_guarded_request)) -> HTMLResponse:
    page = PAGE_TEMPLATE.format(
        title="All Tours",
        requested_at=html.escape(guarded.request_time or ""),
    )
    return HTMLResponse(page)
