import pytest

from roleguard import errors


@pytest.mark.parametrize("name", errors.__all__)
def test_every_error_is_documented_and_rooted(name):
    cls = getattr(errors, name)
    assert issubclass(cls, errors.RoleGuardError)
    assert cls.__doc__ and cls.__doc__.strip()


def test_authority_errors_share_a_base():
    for cls in (errors.AuthorityTimeout, errors.AuthorityResponseInvalid, errors.AuthorityHTTPError):
        assert issubclass(cls, errors.AuthorityError)
    assert errors.AuthorityHTTPError(503).status_code == 503
