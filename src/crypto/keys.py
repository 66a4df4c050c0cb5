"""Per-session RSA keypairs, exchanged as PEM text (SPKI public half, PKCS#8 private half)."""

from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from src.core.config import RSA_KEY_SIZE, RSA_PUBLIC_EXPONENT
from src.core.exceptions import EncryptionError, KeyUnavailableError

# RSA-OAEP with SHA-256 as both the OAEP digest and the MGF1 digest
OAEP_PADDING = padding.OAEP(
    mgf=padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)


@dataclass(frozen=True)
class KeyPair:
    public_key_pem: str
    private_key_pem: str


def generate_keypair() -> KeyPair:
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(public_key_pem=public_pem.decode("ascii"), private_key_pem=private_pem.decode("ascii"))


def load_public_key(public_key_pem: str) -> rsa.RSAPublicKey:
    try:
        key = serialization.load_pem_public_key(public_key_pem.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as exc:
        raise EncryptionError("Public key is not a valid PEM encoded key.") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise EncryptionError(f"Expected an RSA public key, got {type(key).__name__}.")
    return key


def load_private_key(private_key_pem: str) -> rsa.RSAPrivateKey:
    """A session's private key that cannot be loaded counts as unavailable (internal inconsistency)."""
    try:
        key = serialization.load_pem_private_key(private_key_pem.encode("ascii"), password=None)
    except (ValueError, TypeError, UnicodeEncodeError) as exc:
        raise KeyUnavailableError("Session private key cannot be loaded.") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyUnavailableError(f"Expected an RSA private key, got {type(key).__name__}.")
    return key
