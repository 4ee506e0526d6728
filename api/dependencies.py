"""
API依赖项 - 凭据、目录客户端与按凭据划分的购买账户
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from application.ports.payment_gateway import CredentialProvider, PaymentDirectory
from application.services.account_registry import PurchaseAccount, PurchaseAccountRegistry
from application.services.purchase_session import PurchaseSession
from infrastructure.adapters.credentials import StaticCredentialProvider

# HTTP Bearer for direct API calls; absence is allowed (anonymous purchases)
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="Bearer credential forwarded to the purchases service",
    auto_error=False,
)


async def get_credentials(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> CredentialProvider:
    """从Bearer token中提取凭据（可为空）"""
    token = bearer_token.credentials if bearer_token and bearer_token.credentials else None
    return StaticCredentialProvider(token)


def get_payment_directory(request: Request) -> PaymentDirectory:
    return request.app.state.payment_directory


def get_account_registry(request: Request) -> PurchaseAccountRegistry:
    return request.app.state.purchase_accounts


async def get_purchase_session(
    directory: PaymentDirectory = Depends(get_payment_directory),
):
    session = PurchaseSession(directory)
    try:
        yield session
    finally:
        session.close()


async def get_purchase_account(
    credentials: CredentialProvider = Depends(get_credentials),
    registry: PurchaseAccountRegistry = Depends(get_account_registry),
) -> PurchaseAccount:
    """写操作使用：不存在则创建账户"""
    return await registry.account_for(credentials)


async def find_purchase_account(
    credentials: CredentialProvider = Depends(get_credentials),
    registry: PurchaseAccountRegistry = Depends(get_account_registry),
) -> Optional[PurchaseAccount]:
    """只读查找：不会为未知凭据创建账户"""
    return registry.get(credentials)
