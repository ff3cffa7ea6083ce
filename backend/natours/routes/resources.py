"""
Placeholder API resource groups.

Each router answers with the guarded request it received, wrapped in the
usual `{status, requestedAt, data}` envelope. They keep the pipeline
observable end to end until the domain handlers replace them through
`create_app(route_groups=...)`.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from natours.middleware.pipeline import GuardContext, get_guarded_request


def _envelope(guarded: GuardContext, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"status": "success", "requestedAt": guarded.request_time, "data": data}


def build_resource_router(resource: str) -> APIRouter:
    router = APIRouter(tags=[resource.capitalize()])

    @router.get("", summary=f"List {resource}")
    async def list_items(guarded: GuardContext = Depends(get_guarded_request)) -> Dict[str, Any]:
        return _envelope(
            guarded,
            {"resource": resource, "query": guarded.query, "polluted": guarded.query_polluted},
        )

    @router.post("", status_code=201, summary=f"Create {resource}")
    async def create_item(guarded: GuardContext = Depends(get_guarded_request)) -> Dict[str, Any]:
        return _envelope(guarded, {"resource": resource, "body": guarded.body})

    @router.get("/{item_id}", summary=f"Get one of {resource}")
    async def get_item(guarded: GuardContext = Depends(get_guarded_request)) -> Dict[str, Any]:
        return _envelope(guarded, {"resource": resource, "params": guarded.params})

    return router
