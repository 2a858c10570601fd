"""Tests for the access gate and HTTP Basic parsing."""

import base64

import pytest
from fastapi.security import HTTPBasicCredentials
from fastapi.testclient import TestClient

from errors import AuthenticationFailure, AuthorizationFailure
from main import create_app
from security import AccessGate, AccessRule, UserDirectory

from conftest import NON_OWNER, OWNER


def creds(username, password):
    return HTTPBasicCredentials(username=username, password=password)


@pytest.fixture
def gate(directory):
    return AccessGate(directory, [AccessRule("/cashcards", "CARD-OWNER")])


class TestBasicHeaderHandling:
    def test_password_may_contain_colon(self, store, settings):
        users = UserDirectory()
        users.add("colon-user", "a:b", ["CARD-OWNER"])
        client = TestClient(create_app(store=store, directory=users, settings=settings))

        response = client.get("/cashcards", auth=("colon-user", "a:b"))
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "header",
        ["", "Bearer abc", "Basic", "Basic !!!notbase64", "Basic " + base64.b64encode(b"nocolon").decode()],
    )
    def test_malformed_headers_are_401(self, client, header):
        response = client.get("/cashcards", headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_FAILURE"


class TestAccessRule:
    def test_matches_prefix_and_children(self):
        rule = AccessRule("/cashcards", "CARD-OWNER")

        assert rule.matches("/cashcards")
        assert rule.matches("/cashcards/42")
        assert rule.matches("/cashcards/42/anything")

    def test_does_not_match_lookalike_paths(self):
        rule = AccessRule("/cashcards", "CARD-OWNER")

        assert not rule.matches("/cashcardsx")
        assert not rule.matches("/health")


class TestAccessGate:
    def test_owner_is_admitted(self, gate):
        principal = gate.admit("/cashcards/1", creds(*OWNER))

        assert principal.username == OWNER[0]
        assert "CARD-OWNER" in principal.roles

    def test_ungated_path_needs_no_credentials(self, gate):
        assert gate.admit("/health", None) is None

    def test_missing_credentials_fail_authentication(self, gate):
        with pytest.raises(AuthenticationFailure):
            gate.admit("/cashcards", None)

    def test_bad_password_fails_authentication(self, gate):
        with pytest.raises(AuthenticationFailure):
            gate.admit("/cashcards", creds(OWNER[0], "nope"))

    def test_missing_role_fails_authorization(self, gate):
        with pytest.raises(AuthorizationFailure):
            gate.admit("/cashcards", creds(*NON_OWNER))

    def test_failures_are_logged_distinctly(self, gate, caplog):
        with pytest.raises(AuthenticationFailure):
            gate.admit("/cashcards", creds(OWNER[0], "nope"))
        with pytest.raises(AuthorizationFailure):
            gate.admit("/cashcards", creds(*NON_OWNER))

        messages = [record.getMessage() for record in caplog.records]
        assert any("Authentication failed" in m for m in messages)
        assert any("Authorization failed" in m and NON_OWNER[0] in m for m in messages)

    def test_role_comes_from_rule(self, directory):
        gate = AccessGate(directory, [AccessRule("/cashcards", "NON-OWNER")])

        assert gate.admit("/cashcards", creds(*NON_OWNER)).username == NON_OWNER[0]
        with pytest.raises(AuthorizationFailure):
            gate.admit("/cashcards", creds(*OWNER))
