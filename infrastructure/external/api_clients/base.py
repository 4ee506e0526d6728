"""
REST API客户端基类

支付目录与购买服务共用的 httpx 封装：
- 超时控制（httpx.Timeout）
- 仅对幂等请求（retry=True）做 tenacity 重试：网络错误与 429/5xx
- 非2xx 响应映射为 APIError，无响应的失败映射为 APIConnectionError
- 调试模式下的请求/响应日志（不记录 Authorization）
"""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass
class APIResponse:
    """API响应封装"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float
    request_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """已解析的JSON；content-type 不是 JSON 时回退解析原始内容，失败抛 ValueError"""
        if self.data is not None:
            return self.data
        if not self.raw_content:
            return None
        return json.loads(self.raw_content)


class APIError(Exception):
    """上游返回了非2xx，或请求以意外方式失败"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[APIResponse] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(message)

    @property
    def request_id(self) -> Optional[str]:
        return self.response.request_id if self.response else None

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return " | ".join(parts)


class APIConnectionError(APIError):
    """请求没有得到任何响应（连接失败）"""


class APITimeoutError(APIConnectionError):
    """请求超时，对调用方而言与连接失败等价"""


class RetryableAPIError(APIError):
    """可重试的瞬时错误（仅在 retry=True 时于内部抛出）"""


class BaseAPIClient:
    """
    REST API客户端基类

    子类提供端点逻辑；transport 可注入（测试用 httpx.MockTransport）
    """

    def __init__(
        self,
        base_url: str,
        timeout: Union[float, httpx.Timeout] = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.2,
        headers: Optional[Dict[str, str]] = None,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API基础URL
            timeout: 超时（秒）或 httpx.Timeout
            max_retries: 最大重试次数（仅对 retry=True 的请求生效）
            retry_delay: 指数退避的基础延迟（秒）
            headers: 默认请求头
            debug: 是否记录请求/响应调试日志
            transport: 自定义 httpx transport
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.debug = debug
        self._transport = transport

        # 所有调用都发送 JSON
        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "Plaque-Payments/1.0",
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    @property
    async def client(self) -> httpx.AsyncClient:
        """懒加载HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _log_request(self, method: str, url: str, params: Any, body: Any):
        if self.debug:
            logger.debug(
                f"API Request: {method} {url}",
                extra={"method": method, "url": url, "params": params, "json": body},
            )

    def _log_response(self, method: str, url: str, response: APIResponse):
        if self.debug:
            logger.debug(
                f"API Response: {response.status_code} {method} {url}",
                extra={
                    "status_code": response.status_code,
                    "elapsed_ms": response.elapsed_ms,
                    "request_id": response.request_id,
                },
            )

    @staticmethod
    def extract_error_message(response: APIResponse) -> Optional[str]:
        """尝试从错误响应体中提取消息"""
        if isinstance(response.data, dict):
            for key in ("message", "error", "detail"):
                value = response.data.get(key)
                if isinstance(value, str) and value:
                    return value
        return None

    def _raise_for_status(self, response: APIResponse):
        message = self.extract_error_message(response) or f"API request failed with status {response.status_code}"
        raise APIError(message=message, status_code=response.status_code, response=response)

    async def _send_once(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]],
        body: Any,
        headers: Dict[str, str],
        retry: bool,
    ) -> APIResponse:
        started = time.monotonic()
        client = await self.client
        response = await client.request(method, url, params=params, json=body, headers=headers)

        data = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except json.JSONDecodeError:
                data = None

        api_response = APIResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            data=data,
            raw_content=response.content,
            elapsed_ms=(time.monotonic() - started) * 1000,
            request_id=response.headers.get("x-request-id"),
        )
        self._log_response(method, url, api_response)

        if not api_response.is_success:
            if retry and api_response.status_code in RETRY_STATUS_CODES:
                raise RetryableAPIError(
                    f"Transient API error with status {api_response.status_code}",
                    status_code=api_response.status_code,
                    response=api_response,
                )
            self._raise_for_status(api_response)
        return api_response

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Union[Dict[str, Any], BaseModel]] = None,
        headers: Optional[Dict[str, str]] = None,
        retry: bool = False,
    ) -> APIResponse:
        """
        发送HTTP请求

        Args:
            retry: 是否在网络错误/429/5xx时自动重试（只用于幂等请求）

        Raises:
            APIConnectionError: 超时或网络错误（重试耗尽后）
            APIError: 非2xx响应
        """
        url = self._build_url(endpoint)
        request_headers = {**self.default_headers, **(headers or {})}
        if isinstance(json_data, BaseModel):
            json_data = json_data.model_dump(by_alias=True, exclude_none=True, mode="json")

        self._log_request(method, url, params, json_data)

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries + 1 if retry else 1),
            wait=wait_exponential(multiplier=self.retry_delay, min=self.retry_delay, max=self.retry_delay * 8),
            retry=retry_if_exception_type((httpx.TransportError, RetryableAPIError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send_once(
                        method, url, params=params, body=json_data, headers=request_headers, retry=retry
                    )
        except httpx.TimeoutException as exc:
            raise APITimeoutError(f"Request timeout after {self.timeout.read}s") from exc
        except httpx.TransportError as exc:
            raise APIConnectionError(f"Network error: {exc}") from exc
        except RetryableAPIError as exc:
            # 重试耗尽，按普通错误响应抛出
            self._raise_for_status(exc.response)
        except (APIError, asyncio.CancelledError):
            raise
        except Exception as exc:
            logger.error(f"Unexpected error during API request: {exc}")
            raise APIError(f"Unexpected error: {exc}") from exc

    async def get(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request("POST", endpoint, **kwargs)
