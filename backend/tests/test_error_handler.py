"""
Natours Backend — Global Error Responder Tests
===============================================

What:  The decision table of the error responder, end to end.
Why:   Production responses must never leak internals; development
       responses must carry everything needed to debug.

Test Strategy:
    ✅ Production defect → exactly {"status": "error", "message": "Something went very wrong!"}
    ✅ Production operational error → its own status and message
    ✅ Development → message, classification and stack for both kinds
    ✅ Framework validation errors become operational 400s
    ✅ Browsers get an error page, /api clients always get JSON
"""

import logging

import pytest
from fastapi import APIRouter
from starlette.exceptions import HTTPException
from starlette.requests import Request

from natours.config import Environment
from natours.error_handler import ErrorResponder, translate_error, wants_html
from natours.exceptions import AppError, InvalidInputError
from natours.routes import RouteGroup, default_route_groups


def make_request(path: str, accept: str = "*/*") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": b"",
            "headers": [(b"accept", accept.encode())],
        }
    )


class TestTranslateError:
    def test_app_error_unchanged(self):
        error = AppError("No tour found with that ID", 404)
        assert translate_error(error) is error

    def test_http_exception_keeps_status(self):
        translated = translate_error(HTTPException(status_code=405, detail="Method Not Allowed"))
        assert isinstance(translated, AppError)
        assert translated.status_code == 405
        assert translated.message == "Method Not Allowed"

    def test_programming_error_unchanged(self):
        error = KeyError("tour")
        assert translate_error(error) is error


class TestWantsHtml:
    @pytest.mark.parametrize(
        "path, accept, expected",
        [
            ("/tour/the-forest-hiker", "text/html,application/xhtml+xml", True),
            ("/tour/the-forest-hiker", "application/json", False),
            ("/api/v1/tours", "text/html", False),
            ("/api", "text/html", False),
        ],
    )
    def test_decision(self, path, accept, expected):
        assert wants_html(make_request(path, accept)) is expected


class TestProductionResponses:
    @pytest.mark.asyncio
    async def test_defect_is_generic(self, prod_client, secret_message):
        response = await prod_client.get("/api/v1/failures/defect")
        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Something went very wrong!"}
        assert secret_message not in response.text

    @pytest.mark.asyncio
    async def test_defect_logged_server_side(self, prod_client, secret_message, caplog):
        with caplog.at_level(logging.ERROR, logger="natours.error_handler"):
            await prod_client.get("/api/v1/failures/defect")
        records = [r for r in caplog.records if r.name == "natours.error_handler"]
        assert any(secret_message in r.getMessage() and r.exc_info for r in records)

    @pytest.mark.asyncio
    async def test_operational_error_forwarded(self, prod_client):
        response = await prod_client.get("/api/v1/failures/operational")
        assert response.status_code == 404
        assert response.json() == {"status": "fail", "message": "No tour found with that ID"}

    @pytest.mark.asyncio
    async def test_validation_error_is_400(self, prod_client):
        response = await prod_client.get("/api/v1/failures/validate", params={"limit": "many"})
        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"status", "message"}
        assert body["status"] == "fail"
        assert body["message"].startswith("Invalid input data.")
        assert "limit" in body["message"]

    @pytest.mark.asyncio
    async def test_browser_gets_error_page(self, prod_client):
        response = await prod_client.get("/nowhere", headers={"Accept": "text/html"})
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Something went wrong!" in response.text
        assert "/nowhere on this server!" in response.text

    @pytest.mark.asyncio
    async def test_browser_defect_page_is_generic(self, client_for, prod_settings, secret_message):
        broken = APIRouter()

        @broken.get("/tour")
        async def tour():
            raise RuntimeError(secret_message)

        groups = default_route_groups() + [RouteGroup("broken", "/broken", broken)]
        async with client_for(prod_settings, route_groups=groups) as client:
            response = await client.get("/broken/tour", headers={"Accept": "text/html"})

        assert response.status_code == 500
        assert "Please try again later." in response.text
        assert secret_message not in response.text


class TestDevelopmentResponses:
    @pytest.mark.asyncio
    async def test_defect_fully_detailed(self, dev_client, secret_message):
        response = await dev_client.get("/api/v1/failures/defect")
        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == secret_message
        assert body["error"]["name"] == "RuntimeError"
        assert body["error"]["statusCode"] == 500
        assert body["error"]["isOperational"] is False
        assert "RuntimeError" in body["stack"]

    @pytest.mark.asyncio
    async def test_operational_error_detailed(self, dev_client):
        response = await dev_client.get(
            "/api/v1/failures/operational", headers={"X-Request-ID": "dev-req-1"}
        )
        assert response.status_code == 404
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"] == "No tour found with that ID"
        assert body["error"]["name"] == "AppError"
        assert body["error"]["isOperational"] is True
        assert body["error"]["requestId"] == "dev-req-1"
        assert body["stack"]

    @pytest.mark.asyncio
    async def test_not_found_detailed(self, dev_client):
        response = await dev_client.get("/api/v2/tours")
        body = response.json()
        assert body["message"] == "Can't find /api/v2/tours on this server!"
        assert body["error"]["name"] == "NotFoundError"


class TestResponderDirect:
    @pytest.mark.asyncio
    async def test_headers_of_error_kept(self):
        responder = ErrorResponder(mode=Environment.PRODUCTION)
        error = AppError("Slow down", 429, headers={"Retry-After": "30"})
        response = await responder(make_request("/api/v1/tours"), error)
        assert response.status_code == 429
        assert response.headers["retry-after"] == "30"

    @pytest.mark.asyncio
    async def test_modes_differ_only_in_detail(self):
        error = InvalidInputError("Invalid input data. name: too short")
        request = make_request("/api/v1/tours")
        prod = await ErrorResponder(Environment.PRODUCTION)(request, error)
        dev = await ErrorResponder(Environment.DEVELOPMENT)(request, error)
        assert prod.status_code == dev.status_code == 400

        assert b'"stack"' in dev.body
        assert b'"stack"' not in prod.body
