"""
安全相关功能
JWT 签发/校验和管理员权限依赖
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .exceptions import AuthenticationError
from ..config.settings import settings

ADMIN_ROLE = "admin"


class SecurityManager:
    """安全管理器"""

    def create_jwt_token(self, subject: str, role: str = "user",
                         additional_claims: Dict[str, Any] = None) -> str:
        """创建JWT token"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "role": role,
            "exp": now + timedelta(hours=settings.jwt_expire_hours),
            "iat": now,
        }
        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        """解码JWT token"""
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")


# 全局安全管理器实例
security_manager = SecurityManager()

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Dict[str, Any]:
    """从Authorization header中提取并验证token"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        claims = security_manager.decode_jwt_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)

    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token missing subject")
    return claims


async def require_admin(claims: Dict[str, Any] = Depends(get_token_claims)) -> str:
    """检查管理员权限，返回操作者标识"""
    if claims.get("role") != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="需要管理员权限")
    return claims["sub"]
