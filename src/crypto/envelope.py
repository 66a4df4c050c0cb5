"""
Hybrid encryption envelope for transporting a finished game log.

Client side (once per game): a fresh AES-256 key and a fresh 96-bit IV encrypt the canonical JSON of the whole log with AES-GCM.
The 16-byte authentication tag is appended to the ciphertext. The AES key itself is wrapped with the session's RSA public key (OAEP).

Server side: unwrap the AES key with the session's private key, split off the trailing tag, decrypt and authenticate.
Any failure is a DecryptionError. Plaintext is only returned after the tag has been verified.
"""

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from typing import Self

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from src.core.exceptions import CanonicalizationError, DecryptionError, EncryptionError
from src.crypto.keys import OAEP_PADDING, load_private_key, load_public_key
from src.ledger.canonical import serialize
from src.ledger.entries import GameLog, game_log_to_wire, parse_game_log

logger = logging.getLogger(__name__)

AES_KEY_BYTES = 32
IV_BYTES = 12
TAG_BYTES = 16


@dataclass(frozen=True)
class EncryptedEnvelope:
    encrypted_log: bytes  # ciphertext || tag
    encrypted_key: bytes
    iv: bytes

    def to_wire(self) -> dict[str, str]:
        return {
            "encryptedLog": _b64encode(self.encrypted_log),
            "encryptedKey": _b64encode(self.encrypted_key),
            "iv": _b64encode(self.iv),
        }

    @classmethod
    def from_wire(cls, encrypted_log: str, encrypted_key: str, iv: str) -> Self:
        try:
            return cls(
                encrypted_log=base64.b64decode(encrypted_log, validate=True),
                encrypted_key=base64.b64decode(encrypted_key, validate=True),
                iv=base64.b64decode(iv, validate=True),
            )
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError("Envelope fields are not valid base64.") from exc


def encrypt_log(log: GameLog, public_key_pem: str) -> EncryptedEnvelope:
    """Seal the full log for the holder of the session's private key."""
    public_key = load_public_key(public_key_pem)
    try:
        plaintext = serialize(game_log_to_wire(log)).encode("utf-8")
    except (CanonicalizationError, UnicodeEncodeError) as exc:
        raise EncryptionError("Game log cannot be serialized for encryption.") from exc

    aes_key = os.urandom(AES_KEY_BYTES)
    iv = os.urandom(IV_BYTES)
    encryptor = Cipher(algorithms.AES(aes_key), modes.GCM(iv)).encryptor()
    ciphertext = encryptor.update(plaintext) + encryptor.finalize()

    encrypted_key = public_key.encrypt(aes_key, OAEP_PADDING)
    logger.info("Game log (%d entries) encrypted for submission.", len(log))
    return EncryptedEnvelope(
        encrypted_log=ciphertext + encryptor.tag,
        encrypted_key=encrypted_key,
        iv=iv,
    )


def decrypt_log(envelope: EncryptedEnvelope, private_key_pem: str) -> str:
    """Recover the log text. Fails closed: nothing is returned unless the GCM tag verifies."""
    private_key = load_private_key(private_key_pem)

    try:
        aes_key = private_key.decrypt(envelope.encrypted_key, OAEP_PADDING)
    except ValueError as exc:
        raise DecryptionError("Symmetric key could not be unwrapped.") from exc
    if len(aes_key) != AES_KEY_BYTES:
        raise DecryptionError(f"Unwrapped key has {len(aes_key)} bytes, expected {AES_KEY_BYTES}.")
    if len(envelope.iv) != IV_BYTES:
        raise DecryptionError(f"IV has {len(envelope.iv)} bytes, expected {IV_BYTES}.")
    if len(envelope.encrypted_log) < TAG_BYTES:
        raise DecryptionError("Encrypted log is shorter than its authentication tag.")

    ciphertext = envelope.encrypted_log[:-TAG_BYTES]
    tag = envelope.encrypted_log[-TAG_BYTES:]
    decryptor = Cipher(algorithms.AES(aes_key), modes.GCM(envelope.iv, tag)).decryptor()
    try:
        plaintext = decryptor.update(ciphertext) + decryptor.finalize()
    except InvalidTag as exc:
        raise DecryptionError("Authentication tag mismatch.") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted log is not valid UTF-8 text.") from exc


def open_envelope(envelope: EncryptedEnvelope, private_key_pem: str) -> GameLog:
    """Decrypt and parse into log entries, ready for chain and replay verification."""
    return parse_game_log(decrypt_log(envelope, private_key_pem))


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
