from forge.core.exceptions import (
    ConcurrentRestoreError,
    ForgeError,
    NotFoundError,
    ProviderCredentialError,
    ProviderUnavailableError,
    RuntimeUnavailableError,
)


def test_forge_error_to_dict():
    err = ForgeError(code="test_error", message="Something broke", status=500)
    d = err.to_dict()
    assert d["error"]["code"] == "test_error"
    assert d["error"]["message"] == "Something broke"
    assert d["error"]["status"] == 500
    assert "details" not in d["error"]


def test_forge_error_with_details():
    err = ForgeError(code="x", message="y", status=400, details={"hint": "try again"})
    d = err.to_dict()
    assert d["error"]["details"]["hint"] == "try again"


def test_not_found_error_defaults():
    err = NotFoundError()
    assert err.status == 404
    assert err.code == "not_found"


def test_concurrent_restore_error_defaults():
    err = ConcurrentRestoreError()
    assert err.status == 409
    assert err.code == "concurrent_restore"
    assert "suggestion" in err.details


def test_provider_credential_error_defaults():
    err = ProviderCredentialError()
    assert err.status == 401
    assert err.code == "credential_required"


def test_provider_unavailable_error_defaults():
    err = ProviderUnavailableError()
    assert err.status == 503
    assert err.code == "provider_unavailable"


def test_runtime_unavailable_error_defaults():
    err = RuntimeUnavailableError()
    assert err.status == 503
    assert "suggestion" in err.details


def test_subclasses_are_forge_errors():
    for cls in (NotFoundError, ConcurrentRestoreError, ProviderCredentialError, ProviderUnavailableError):
        assert isinstance(cls(), ForgeError)
