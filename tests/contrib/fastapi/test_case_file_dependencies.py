import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from case_file_auth.application.access import CaseFileAccessChecker
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.context import get_access_token, get_identity
from case_file_auth.contrib.fastapi import (
    CaseFileContextMiddleware,
    get_optional_token,
    register_exception_handlers,
    rejection_to_response,
    require_case_file_access,
)
from case_file_auth.domain.errors import FeatureNotAvailableError
from case_file_auth.identity import AuthenticatedIdentity
from case_file_auth.middleware.authorization import AuthRejection, CaseFileAuthorizer

EMAIL_UUID = "0b4c2e7a-91d3-4f6e-8a2b-5c7d9e1f3a4b"
UNKNOWN_UUID = "7e2f9c41-6b8a-4d3e-9f10-000000000000"


@pytest.fixture
def mock_checker():
    mock = MagicMock(spec=CaseFileAccessChecker)
    mock.check_case_file_access = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def client(store, mock_checker):
    authorizer = CaseFileAuthorizer(AccountMapper(store, CaseFileIdResolver(store)), mock_checker)
    app = FastAPI()

    @app.get("/api/email/{email_id}")
    async def read_email(user_id: int = Depends(require_case_file_access(authorizer))):
        return {"user_id": user_id}

    @app.put("/api/email/{email_id}")
    async def write_email(
        user_id: int = Depends(require_case_file_access(authorizer, "write", allow_missing=True)),
    ):
        return {"user_id": user_id}

    @app.get("/api/units/{unit_id}")
    async def read_unit(
        user_id: int = Depends(
            require_case_file_access(authorizer, param="unit_id", document_unit=True)
        ),
    ):
        return {"user_id": user_id}

    @app.get("/api/token")
    async def token(value=Depends(get_optional_token)):
        return {"token": value}

    return TestClient(app)


def test_authorized_route(client):
    response = client.get(f"/api/email/{EMAIL_UUID}", headers={"Authorization": "Bearer t"})
    assert response.status_code == 200
    assert response.json() == {"user_id": 42}


def test_cookie_token(client, mock_checker):
    response = client.get(f"/api/email/{EMAIL_UUID}", headers={"Cookie": "access_token=cookie-token"})
    assert response.status_code == 200
    assert mock_checker.check_case_file_access.await_args.args[0] == "cookie-token"


def test_not_found_route(client):
    response = client.get(f"/api/email/{UNKNOWN_UUID}", headers={"Authorization": "Bearer t"})
    assert response.status_code == 404
    assert response.json() == {"detail": {"error": "Case file not found for this email"}}


def test_unauthorized_route(client):
    response = client.get(f"/api/email/{EMAIL_UUID}")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "Unauthorized - No access token"


def test_forbidden_route(client, mock_checker):
    mock_checker.check_case_file_access.return_value = False
    response = client.put(f"/api/email/{EMAIL_UUID}", headers={"Authorization": "Bearer t"})
    assert response.status_code == 403
    assert response.json()["detail"]["requiredScope"] == "case-file:write"


def test_allow_missing_route(client):
    response = client.put(f"/api/email/{UNKNOWN_UUID}")
    assert response.status_code == 200
    assert response.json() == {"user_id": -1}


def test_document_unit_route(client):
    response = client.get("/api/units/1000", headers={"Authorization": "Bearer t"})
    assert response.json() == {"user_id": 7}

    response = client.get(f"/api/units/{EMAIL_UUID}", headers={"Authorization": "Bearer t"})
    assert response.json()["detail"]["error"] == "Case file not found for this document"


def test_optional_token(client):
    assert client.get("/api/token").json() == {"token": None}
    assert client.get("/api/token", headers={"Authorization": "Bearer abc"}).json() == {"token": "abc"}


def test_rejection_to_response():
    response = rejection_to_response(AuthRejection.with_reason(403, "nope", requiredScope="case-file:read"))
    assert response.status_code == 403
    assert response.body == b'{"error":"nope","requiredScope":"case-file:read"}'


# -----------------------------------------------------------------------------
# Context middleware and exception handlers
# -----------------------------------------------------------------------------


def test_context_middleware_binds_identity():
    async def loader(request, token):
        return AuthenticatedIdentity(user_id=42, subject="ext-42")

    app = FastAPI()
    app.add_middleware(CaseFileContextMiddleware, identity_loader=loader)

    @app.get("/whoami")
    async def whoami():
        identity = get_identity()
        return {"user_id": identity.user_id, "token": get_access_token()}

    client = TestClient(app)
    assert client.get("/whoami", headers={"Authorization": "Bearer abc"}).json() == {
        "user_id": 42,
        "token": "abc",
    }
    assert client.get("/whoami").json() == {"user_id": None, "token": None}


def test_context_middleware_loader_failure_is_anonymous():
    async def loader(request, token):
        raise RuntimeError("lookup failed")

    app = FastAPI()
    app.add_middleware(CaseFileContextMiddleware, identity_loader=loader)

    @app.get("/whoami")
    async def whoami():
        return {"authenticated": get_identity().is_authenticated}

    client = TestClient(app)
    assert client.get("/whoami", headers={"Authorization": "Bearer abc"}).json() == {
        "authenticated": False
    }


def test_feature_not_available_handler():
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/share")
    async def share():
        raise FeatureNotAvailableError("Sharing case files is not available yet")

    response = TestClient(app).post("/share")
    assert response.status_code == 501
    assert response.json()["error"] == "NOT_AVAILABLE"
