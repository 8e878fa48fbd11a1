# app/core/security.py
# Mots de passe (bcrypt) + jetons de session (JWT)
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import AuthCfg
from portal.errors import Unauthorized


def get_password_hash(password: str, rounds: int = 12) -> str:
    # bcrypt est limité à 72 octets
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
    except ValueError:  # hash illisible
        return False


def create_access_token(data: Dict[str, Any], cfg: AuthCfg, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=cfg.token_expire_minutes))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)


def decode_token(token: str, cfg: AuthCfg) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, cfg.jwt_secret, algorithms=[cfg.jwt_algorithm])
    except JWTError:
        raise Unauthorized("Could not validate credentials")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise Unauthorized("Invalid token type")
    return payload
