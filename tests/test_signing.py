import pytest

from geoapi import Credentials, RequestDescriptor, RequestSigner, ValidationError, sign_path

SIGNING_KEY = "vNIXE0xscrmjlyV-12Nj_BvUPaw="
MESSAGE = "/maps/api/geocode/json?address=New+York&client=clientID"
SIGNATURE = "chaRF2hTJKOScPr-RQCEhZbSzIE="


def test_sign_path_known_vector():
    assert sign_path(MESSAGE, SIGNING_KEY) == SIGNATURE


def test_sign_path_accepts_unpadded_secret():
    assert sign_path(MESSAGE, SIGNING_KEY.rstrip("=")) == SIGNATURE


def test_api_key_mode_appends_key():
    signer = RequestSigner(Credentials(api_key="AIza-k"))
    d = RequestDescriptor.of("/p", "a", "1")
    assert signer.sign(d).params == (("a", "1"), ("key", "AIza-k"))
    # the original descriptor is untouched
    assert d.params == (("a", "1"),)


def test_signed_mode_appends_client_then_signature():
    signer = RequestSigner(Credentials(client_id="clientID", client_secret=SIGNING_KEY))
    signed = signer.sign(RequestDescriptor.of("/maps/api/geocode/json", "address", "New York"))
    assert signed.params == (
        ("address", "New York"),
        ("client", "clientID"),
        ("signature", SIGNATURE),
    )


def test_channel_is_covered_by_signature():
    creds = Credentials(client_id="clientID", client_secret=SIGNING_KEY, channel="web")
    signed = RequestSigner(creds).sign(RequestDescriptor.of("/p", "q", "x"))
    names = [k for k, _ in signed.params]
    assert names == ["q", "client", "channel", "signature"]
    assert signed.params[-1][1] == sign_path("/p?q=x&client=clientID&channel=web", SIGNING_KEY)


def test_bad_secret_rejected_at_construction():
    with pytest.raises(ValidationError):
        RequestSigner(Credentials(client_id="c", client_secret="not*base64!"))


def test_credentials_are_mutually_exclusive():
    with pytest.raises(ValidationError):
        Credentials(api_key="k", client_id="c", client_secret=SIGNING_KEY)
    with pytest.raises(ValidationError):
        Credentials(client_id="c")
    with pytest.raises(ValidationError):
        Credentials()
