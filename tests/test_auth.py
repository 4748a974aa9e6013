"""Tests for registry authentication."""

import base64
import io
import json
import urllib.error
from unittest.mock import patch

import pytest
from conftest import AUTH_ENV, TEST_REGISTRY, FakeWhoami

from npm_release_plugin.auth import fetch_whoami, get_registry, set_npmrc_auth, verify_auth, verify_token
from npm_release_plugin.errors import InvalidTokenError, MissingTokenError
from npm_release_plugin.utils.npmrc import AuthInfo
from npm_release_plugin.utils.package import Manifest
from npm_release_plugin.utils.registry import RegistryConfig


def _manifest(tmp_path, name="widget", registry=TEST_REGISTRY) -> Manifest:
    return Manifest(name=name, version="1.0.0", path=tmp_path / "package.json", publish_registry=registry)


class TestSetNpmrcAuth:
    """Test writing credentials to the working-directory .npmrc."""

    def test_writes_token(self, tmp_path, make_context):
        context = make_context(env={"NPM_TOKEN": "t0k3n"})
        registry = RegistryConfig(TEST_REGISTRY)

        auth = set_npmrc_auth(registry, _manifest(tmp_path), context)

        assert auth == AuthInfo("t0k3n", "Bearer")
        assert (tmp_path / ".npmrc").read_text() == "//localhost:4873/:_authToken = ${NPM_TOKEN}\n"

    def test_token_written_once(self, tmp_path, make_context):
        context = make_context(env={"NPM_TOKEN": "t0k3n"})
        registry = RegistryConfig(TEST_REGISTRY)

        set_npmrc_auth(registry, _manifest(tmp_path), context)
        auth = set_npmrc_auth(registry, _manifest(tmp_path), context)

        assert auth == AuthInfo("t0k3n", "Bearer")
        assert (tmp_path / ".npmrc").read_text().count(":_authToken") == 1

    def test_writes_username_password_and_email(self, tmp_path, make_context):
        context = make_context(env=AUTH_ENV)
        registry = RegistryConfig(TEST_REGISTRY)

        auth = set_npmrc_auth(registry, _manifest(tmp_path), context)

        expected = base64.b64encode(b"integration:suchsecure").decode()
        assert auth == AuthInfo(expected, "Basic")
        npmrc = (tmp_path / ".npmrc").read_text()
        assert f"//localhost:4873/:_auth = {expected}" in npmrc
        assert "email = ${NPM_EMAIL}" in npmrc

    def test_token_takes_precedence_over_username(self, tmp_path, make_context):
        context = make_context(env={**AUTH_ENV, "NPM_TOKEN": "t0k3n"})

        auth = set_npmrc_auth(RegistryConfig(TEST_REGISTRY), _manifest(tmp_path), context)

        assert auth.type == "Bearer"
        assert "_auth =" not in (tmp_path / ".npmrc").read_text()

    def test_incomplete_username_credentials_are_ignored(self, tmp_path, make_context):
        context = make_context(env={"NPM_USERNAME": "integration", "NPM_PASSWORD": "suchsecure"})

        with pytest.raises(MissingTokenError):
            set_npmrc_auth(RegistryConfig("https://registry.npmjs.org/"), _manifest(tmp_path, registry=None), context)

    def test_lower_case_token_variable_is_ignored(self, tmp_path, make_context):
        context = make_context(env={"npm_token": "t0k3n", "DEFAULT_NPM_REGISTRY": TEST_REGISTRY})

        with pytest.raises(MissingTokenError):
            set_npmrc_auth(RegistryConfig(TEST_REGISTRY), _manifest(tmp_path), context)

        assert not (tmp_path / ".npmrc").exists()

    def test_existing_credentials_are_kept(self, tmp_path, make_context):
        (tmp_path / ".npmrc").write_text("//localhost:4873/:_authToken = existing\n")
        context = make_context(env={"NPM_TOKEN": "t0k3n"})

        auth = set_npmrc_auth(RegistryConfig(TEST_REGISTRY), _manifest(tmp_path), context)

        assert auth == AuthInfo("existing")
        assert (tmp_path / ".npmrc").read_text() == "//localhost:4873/:_authToken = existing\n"

    def test_user_config_credentials_are_used(self, tmp_path, make_context):
        user_npmrc = tmp_path / "home" / ".npmrc"
        user_npmrc.parent.mkdir()
        user_npmrc.write_text("//localhost:4873/:_authToken = from-home\n")

        auth = set_npmrc_auth(RegistryConfig(TEST_REGISTRY), _manifest(tmp_path), make_context())

        assert auth == AuthInfo("from-home")
        assert not (tmp_path / ".npmrc").exists()

    def test_unrelated_entries_are_preserved(self, tmp_path, make_context):
        (tmp_path / ".npmrc").write_text("//other.test/:_authToken = other\nsave-exact = true\n")
        context = make_context(env={"NPM_TOKEN": "t0k3n"})

        set_npmrc_auth(RegistryConfig(TEST_REGISTRY), _manifest(tmp_path), context)

        npmrc = (tmp_path / ".npmrc").read_text()
        assert npmrc.startswith("//other.test/:_authToken = other\nsave-exact = true\n")
        assert "//localhost:4873/:_authToken = ${NPM_TOKEN}" in npmrc

    def test_missing_credentials_for_default_registry(self, tmp_path, make_context):
        context = make_context()

        with pytest.raises(MissingTokenError) as exc_info:
            set_npmrc_auth(
                RegistryConfig("https://registry.npmjs.org/"), _manifest(tmp_path, registry=None), context
            )

        assert exc_info.value.code == "ENONPMTOKEN"
        assert exc_info.value.message == "No npm token specified."
        assert not (tmp_path / ".npmrc").exists()

    def test_missing_credentials_for_custom_registry(self, tmp_path, make_context, logger):
        context = make_context()

        custom = "http://custom-registry.com/"

        auth = set_npmrc_auth(RegistryConfig(custom), _manifest(tmp_path, registry=custom), context)

        assert auth is None
        logger.warning.assert_called_once()


class TestVerifyToken:
    """Test the whoami probe."""

    def test_accepted_token(self, make_context, logger):
        whoami = FakeWhoami()

        verify_token(RegistryConfig(TEST_REGISTRY), AuthInfo("t0k3n"), make_context(), whoami)

        assert whoami.calls == [(TEST_REGISTRY, AuthInfo("t0k3n"))]
        logger.info.assert_called_once()

    def test_rejected_token(self, make_context):
        with pytest.raises(InvalidTokenError) as exc_info:
            verify_token(RegistryConfig(TEST_REGISTRY), AuthInfo("wrong"), make_context(), FakeWhoami(reject=True))

        assert exc_info.value.code == "EINVALIDNPMTOKEN"
        assert exc_info.value.message == "Invalid npm token."
        assert "regenerate" in exc_info.value.details

    def test_unreachable_registry_propagates(self, make_context):
        whoami = FakeWhoami(error=urllib.error.URLError("Name or service not known"))

        with pytest.raises(urllib.error.URLError) as exc_info:
            verify_token(RegistryConfig(TEST_REGISTRY), AuthInfo("t0k3n"), make_context(), whoami)

        assert not isinstance(exc_info.value, urllib.error.HTTPError)


class TestVerifyAuth:
    """Test auth setup plus token check."""

    def test_default_registry_is_probed(self, tmp_path, make_context):
        whoami = FakeWhoami()
        context = make_context(env={"NPM_TOKEN": "t0k3n", "DEFAULT_NPM_REGISTRY": TEST_REGISTRY})

        registry = verify_auth(_manifest(tmp_path), context, whoami)

        assert registry.registry == TEST_REGISTRY
        assert len(whoami.calls) == 1

    def test_custom_registry_is_not_probed(self, tmp_path, make_context):
        whoami = FakeWhoami(reject=True)
        context = make_context(env={"NPM_TOKEN": "wrong_token"})

        verify_auth(_manifest(tmp_path, registry="http://custom-registry.com/"), context, whoami)

        assert whoami.calls == []
        assert ":_authToken" in (tmp_path / ".npmrc").read_text()

    def test_invalid_token_still_writes_npmrc(self, tmp_path, make_context):
        context = make_context(env={"NPM_TOKEN": "wrong_token", "DEFAULT_NPM_REGISTRY": TEST_REGISTRY})

        with pytest.raises(InvalidTokenError):
            verify_auth(_manifest(tmp_path), context, FakeWhoami(reject=True))

        assert ":_authToken" in (tmp_path / ".npmrc").read_text()

    def test_get_registry_reads_npmrc(self, tmp_path, make_context):
        (tmp_path / ".npmrc").write_text("@acme:registry = http://acme.test\n")

        registry = get_registry(_manifest(tmp_path, name="@acme/widget", registry=None), make_context())

        assert registry == RegistryConfig("http://acme.test/", scope="@acme")


class TestFetchWhoami:
    """Test the HTTP request made to the registry."""

    def test_request(self):
        response = io.BytesIO(json.dumps({"username": "integration"}).encode())

        with patch("urllib.request.urlopen", return_value=response) as mock_urlopen:
            username = fetch_whoami(TEST_REGISTRY, AuthInfo("t0k3n"))

        assert username == "integration"
        request = mock_urlopen.call_args.args[0]
        assert request.full_url == "http://localhost:4873/-/whoami"
        assert request.get_header("Authorization") == "Bearer t0k3n"
