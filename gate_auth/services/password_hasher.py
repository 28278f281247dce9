# =======================================================================================
# gate_auth/services/password_hasher.py - Password Hashing
# =======================================================================================
from typing import Optional

from passlib.context import CryptContext

from ..config import Config, config as default_config


class PasswordHasher:
    """
    Salted, adaptive one-way hashing (pbkdf2_sha256 via passlib).

    Both hash() and verify() are deliberately slow. Call them from worker
    threads (plain `def` routes), never from code running on the event loop.
    """

    def __init__(self, cfg: Optional[Config] = None):
        cfg = cfg or default_config
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=cfg.PASSWORD_HASH_ROUNDS,
        )
        # verified against when the identity is unknown so both paths cost the same
        self._dummy_hash = self._context.hash("not-a-real-password")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # unrecognised or corrupt hash string
            return False

    def burn(self, password: str) -> None:
        """Spend the same time as a real verify without matching anything."""
        self._context.verify(password, self._dummy_hash)
