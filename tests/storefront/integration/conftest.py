import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import register_exception_handlers, routers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def as_user():
    def _headers(user_id="user-1"):
        return {"X-User-Id": user_id}

    return _headers
