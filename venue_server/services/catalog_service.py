"""
目录与预约后端客户端
目录（套餐、餐食、主题、背景板、附加项）和预约的读写都走外部后端的 HTTP 接口
"""

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

import requests
from pydantic import ValidationError as PydanticValidationError

from ..config.settings import settings
from ..core.exceptions import (
    BackendUnavailableError, CatalogError, ReservationNotFoundError, ReservationRejectedError
)
from ..models.catalog import (
    CatalogEntity, CatalogSnapshot, ExistingReservation, Extra, FoodOption, Mampara, Package, Theme
)
from ..models.reservation import ReservationPayload

# 目录路径 -> (快照字段, 模型)
CATALOG_ENDPOINTS = {
    "/packages": ("packages", Package),
    "/food-options": ("food_options", FoodOption),
    "/themes": ("themes", Theme),
    "/mamparas": ("mamparas", Mampara),
    "/extras": ("extras", Extra),
}

# 这些状态码表示后端拒绝了请求内容，错误消息原样给用户看
REJECTION_STATUS_CODES = frozenset({400, 409, 422})


def _error_message(response: requests.Response) -> str:
    """取后端返回的错误消息：JSON 的 error/message/detail，否则原始文本"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.text or f"HTTP {response.status_code}"


def _unwrap_list(body: Any) -> List[Any]:
    """列表接口可能直接返回数组，也可能包在 data 里"""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


def parse_entries(items: List[Any], model: Type[CatalogEntity], name: str) -> List[CatalogEntity]:
    """逐条解析，校验失败的条目跳过"""
    result = []
    for item in items:
        try:
            result.append(model.model_validate(item))
        except PydanticValidationError as e:
            print(f"跳过无效的{name}条目: {item!r} ({e.error_count()} 个错误)")
    return result


class ReservationBackendClient:
    """预约后端客户端，无重试"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None, token: Optional[str] = None):
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.backend_timeout_seconds
        self.session = session or requests.Session()
        token = token or settings.backend_api_token
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, path: str, reservation_id: Optional[int] = None,
                 **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendUnavailableError(
                f"预约后端不可用: {e}", {"method": method, "path": path})

        if response.status_code == 404:
            raise ReservationNotFoundError(reservation_id)
        if response.status_code in REJECTION_STATUS_CODES:
            raise ReservationRejectedError(
                _error_message(response), response.status_code, {"path": path})
        if response.status_code >= 400:
            raise BackendUnavailableError(
                _error_message(response),
                {"method": method, "path": path, "status_code": response.status_code})

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise BackendUnavailableError("预约后端返回了无法解析的响应", {"path": path})

    def fetch_catalog(self) -> CatalogSnapshot:
        """拉取全部目录，组装为快照"""
        data: Dict[str, Any] = {}
        for path, (field, model) in CATALOG_ENDPOINTS.items():
            try:
                body = self._request("GET", path)
            except ReservationNotFoundError:
                raise CatalogError(f"目录接口不存在: {path}", {"path": path})
            data[field] = tuple(parse_entries(_unwrap_list(body), model, field))
        return CatalogSnapshot(loaded_at=datetime.now(), **data)

    def fetch_reservations(self) -> List[ExistingReservation]:
        """已有预约列表，用于时段占用判断"""
        body = self._request("GET", "/reservations")
        return parse_entries(_unwrap_list(body), ExistingReservation, "reservations")

    def get_reservation(self, reservation_id: int) -> Dict[str, Any]:
        body = self._request("GET", f"/reservations/{reservation_id}", reservation_id)
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return body["data"]
        if not isinstance(body, dict):
            raise ReservationNotFoundError(reservation_id)
        return body

    def create_reservation(self, payload: ReservationPayload) -> Dict[str, Any]:
        """新建预约，返回后端保存的记录"""
        body = self._request("POST", "/reservations", json=payload.to_api_dict())
        return body if isinstance(body, dict) else {}

    def update_reservation(self, reservation_id: int,
                           payload: ReservationPayload) -> Dict[str, Any]:
        """修改预约"""
        body = self._request("PUT", f"/reservations/{reservation_id}", reservation_id,
                             json=payload.to_api_dict())
        return body if isinstance(body, dict) else {}


class CatalogService:
    """目录快照缓存，显式 refresh 才重新拉取"""

    def __init__(self, client: Optional[ReservationBackendClient] = None):
        self.client = client or ReservationBackendClient()
        self._snapshot: Optional[CatalogSnapshot] = None
        self._lock = threading.Lock()

    def get_snapshot(self) -> CatalogSnapshot:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self.client.fetch_catalog()
                print(f"目录已加载: {self._snapshot.summary()}")
            return self._snapshot

    def refresh(self) -> None:
        """丢弃缓存，下次访问时重新拉取"""
        with self._lock:
            self._snapshot = None

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None


catalog_service = CatalogService()
