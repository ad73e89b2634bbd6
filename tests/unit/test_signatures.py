"""Tests for clearsigned message verification against service keys."""

import shutil
from pathlib import Path

import pytest

if shutil.which("gpg") is None:
    pytest.skip("gpg binary not installed", allow_module_level=True)

from app.models.schemas import PublicKey, Service
from domains.service_registry.errors import IdNotExistsError, SignatureError
from domains.service_registry.signatures import verify_signed_message
from domains.service_registry.store import ServiceRegistry

DATA_DIR = Path(__file__).parent / "data"
FINGERPRINT = "F01FED47979554C92D9F56B2E4B6CAC49B242A44"


@pytest.fixture
def public_key():
    return PublicKey(
        id="E4B6CAC49B242A44",
        user_id="Onion Limited <onionltd@protonmail.com>",
        fingerprint=FINGERPRINT,
        value=(DATA_DIR / "oniontree.asc").read_text(),
    )


@pytest.fixture
def signed_text():
    return (DATA_DIR / "oniontree-urls.txt.asc").read_text()


@pytest.fixture
def registry(tmp_path, public_key):
    reg = ServiceRegistry(tmp_path / "registry")
    reg.init()

    service = Service(id="oniontree", name="OnionTree")
    service.set_urls(["http://onions53ehmf4q75.onion"])
    service.set_public_keys([public_key])
    reg.add_service(service)
    return reg


def test_verify_signed_message(registry, signed_text):
    assert registry.verify_signed_message("oniontree", signed_text) == FINGERPRINT


def test_verify_tampered_message_fails(registry, signed_text):
    tampered = signed_text.replace("https://oniontree.org", "https://oniontree.com")

    with pytest.raises(SignatureError) as exc_info:
        registry.verify_signed_message("oniontree", tampered)

    assert exc_info.value.id == "oniontree"


def test_verify_with_foreign_keyring_fails(registry, signed_text):
    registry.add_service(Service(id="other", public_keys=[PublicKey(id="X", value="not a key")]))

    with pytest.raises(SignatureError):
        registry.verify_signed_message("other", signed_text)


def test_verify_without_keys_fails(signed_text):
    with pytest.raises(SignatureError) as exc_info:
        verify_signed_message(Service(id="bare"), signed_text)

    assert "no public keys" in exc_info.value.reason


def test_verify_unsigned_text_fails(registry):
    with pytest.raises(SignatureError):
        registry.verify_signed_message("oniontree", "http://onions53ehmf4q75.onion\n")


def test_verify_unknown_service(registry, signed_text):
    with pytest.raises(IdNotExistsError):
        registry.verify_signed_message("missing", signed_text)
