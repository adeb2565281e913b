"""Token revocation list (jti blocklist)"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from roleboard.models.revoked_token import RevokedToken
from roleboard.storage import MemoryStore, Storage


def revoke_token(storage: Storage, jti: str, expires_at: datetime) -> None:
    """Blocklist a token id until its natural expiry. Revoking twice is a no-op."""

    def _persistent(db: Session) -> None:
        if db.query(RevokedToken).filter(RevokedToken.jti == jti).first():
            return
        db.add(RevokedToken(jti=jti, expires_at=expires_at))

    def _memory(mem: MemoryStore) -> None:
        with mem.lock:
            mem.revoked_tokens[jti] = expires_at

    storage.with_database(_persistent, _memory)


def is_token_revoked(storage: Storage, jti: str) -> bool:
    def _persistent(db: Session) -> bool:
        return db.query(RevokedToken.id).filter(RevokedToken.jti == jti).first() is not None

    def _memory(mem: MemoryStore) -> bool:
        with mem.lock:
            return jti in mem.revoked_tokens

    return storage.with_database(_persistent, _memory)


def purge_expired_tokens(storage: Storage, now: Optional[datetime] = None) -> int:
    """Drop blocklist rows for tokens that have expired anyway."""
    now = now or datetime.utcnow()

    def _persistent(db: Session) -> int:
        return db.query(RevokedToken).filter(RevokedToken.expires_at <= now).delete(synchronize_session=False)

    def _memory(mem: MemoryStore) -> int:
        with mem.lock:
            expired = [jti for jti, exp in mem.revoked_tokens.items() if exp <= now]
            for jti in expired:
                del mem.revoked_tokens[jti]
            return len(expired)

    return storage.with_database(_persistent, _memory)
