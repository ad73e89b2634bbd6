"""
Signed message verification for registry services.

A service's public keys act as its keyring: a clearsigned message is
accepted only if one of them produced a good signature over it. The
OpenPGP work is delegated to GnuPG through python-gnupg, using a
throwaway home directory per check so no global keyring is touched.
"""

import tempfile

import gnupg
from loguru import logger

from app.models.schemas import Service
from domains.service_registry.errors import SignatureError


def verify_signed_message(service: Service, signed_text: str) -> str:
    """
    Verify a clearsigned message against the public keys of ``service``.

    Args:
        service: Service whose keys form the keyring
        signed_text: ASCII-armored clearsigned message

    Returns:
        Fingerprint of the key that made the signature

    Raises:
        SignatureError: If the service has no usable keys or the signature
            is missing, bad, or made by a key outside the keyring
    """
    keys = [key.value for key in service.public_keys if key.value.strip()]
    if not keys:
        raise SignatureError(service.id, "service has no public keys")

    with tempfile.TemporaryDirectory(prefix="registry-gpg-") as home:
        try:
            gpg = gnupg.GPG(gnupghome=home)
        except (OSError, ValueError) as e:
            raise SignatureError(service.id, f"gpg is not available: {e}") from e

        imported = gpg.import_keys("\n".join(keys))
        if not imported.fingerprints:
            raise SignatureError(service.id, "no public key could be imported")

        verified = gpg.verify(signed_text)

    if not verified.valid:
        raise SignatureError(service.id, verified.status or "no valid signature")

    logger.debug(f"Signature by {verified.fingerprint} verified for {service.id}")
    return verified.fingerprint
