"""
自定义异常类
提供更精确的错误处理和异常信息
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """应用基础异常类"""

    code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.code
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    """数据库相关异常"""
    code = "DATABASE_ERROR"


class AuthenticationError(BaseApplicationError):
    """认证相关异常"""
    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(BaseApplicationError):
    """授权相关异常"""
    code = "PERMISSION_DENIED"


class ValidationError(BaseApplicationError):
    """数据验证异常"""
    code = "VALIDATION_ERROR"


class BusinessLogicError(BaseApplicationError):
    """业务逻辑异常"""
    code = "BUSINESS_RULE_VIOLATION"


class DiscountGroupNotFoundError(BusinessLogicError):
    """折扣组不存在异常"""
    code = "DISCOUNT_GROUP_NOT_FOUND"

    def __init__(self, group_id: str):
        super().__init__(f"折扣组不存在: {group_id}", details={"group_id": group_id})


class DuplicateDiscountGroupError(BusinessLogicError):
    """折扣组名称重复异常"""
    code = "DUPLICATE_DISCOUNT_GROUP"

    def __init__(self, name: str):
        super().__init__(f"折扣组名称已存在: {name}", details={"name": name})
