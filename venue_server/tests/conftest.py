"""
测试配置文件
提供测试所需的fixtures和配置
"""

import os

# 必须在导入应用模块之前设置，全局设置实例在导入时创建
os.environ.setdefault("DATABASE_URL", ":memory:")

import json
from datetime import date, timedelta
from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient

from ..api import deps
from ..app import create_app
from ..core.database import DatabaseManager
from ..models.catalog import (
    CatalogSnapshot, ExistingReservation, Extra, FoodOption, Mampara, Package, Theme
)
from ..services.catalog_service import CatalogService, ReservationBackendClient

BACKEND_URL = "http://backend.test/api"


class FakeResponse:
    """模拟 requests.Response"""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        if body is None:
            self.text = ""
        elif isinstance(body, str):
            self.text = body
        else:
            self.text = json.dumps(body)
        self.content = self.text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    模拟预约后端

    routes: {(METHOD, path): FakeResponse 或 Exception}
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.headers = {}
        self.calls = []

    def add(self, method, path, status_code=200, body=None):
        self.routes[(method, path)] = FakeResponse(status_code, body)

    def fail(self, method, path, error=None):
        self.routes[(method, path)] = error or requests.ConnectionError("connection refused")

    def request(self, method, url, timeout=None, **kwargs):
        path = url[len(BACKEND_URL):]
        self.calls.append({"method": method, "path": path, "json": kwargs.get("json"),
                           "timeout": timeout})
        route = self.routes.get((method, path))
        if route is None:
            return FakeResponse(404, {"error": "not found"})
        if isinstance(route, Exception):
            raise route
        return route

    def last_call(self, method):
        matches = [c for c in self.calls if c["method"] == method]
        return matches[-1] if matches else None


def next_weekday(start: date, weekday: int) -> date:
    """start 当天或之后的第一个指定星期几（周一=0）"""
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture
def today():
    """固定的“今天”：2025-06-02，周一"""
    return date(2025, 6, 2)


@pytest.fixture
def catalog():
    """示例目录"""
    return CatalogSnapshot(
        packages=(
            Package(id=1, name="Básico", price_weekday=Decimal("5000"), price_weekend=Decimal("6500")),
            Package(id=2, name="Premium", price_weekday=Decimal("8000"), price_weekend=Decimal("9500")),
            Package(id=3, name="Antiguo", price_weekday=Decimal("4000"), price_weekend=Decimal("4000"),
                    active=False),
        ),
        food_options=(
            FoodOption(id=1, name="Tacos", extra_price=Decimal("500"), shift="morning"),
            FoodOption(id=2, name="Pizza", extra_price=Decimal("800"), shift="afternoon"),
            FoodOption(id=3, name="Hot dogs", extra_price=Decimal("0"), shift="both"),
            FoodOption(id=4, name="Sushi", extra_price=Decimal("1500"), active=False),
        ),
        themes=(
            Theme(id=1, name="Frozen"),
            Theme(id=2, name="Cars"),
            Theme(id=3, name="Retirado", active=False),
        ),
        mamparas=(
            Mampara(id=10, theme_id=1, pieces=3, price=Decimal("1200")),
            Mampara(id=11, theme_id=1, pieces=5, price=Decimal("1800")),
            Mampara(id=20, theme_id=2, pieces=3, price=Decimal("1000")),
            Mampara(id=21, theme_id=2, pieces=5, price=Decimal("1600"), active=False),
        ),
        extras=(
            Extra(id=1, name="Piñata", price=Decimal("350")),
            Extra(id=2, name="Inflable", price=Decimal("1200")),
            Extra(id=3, name="Pastel", price=Decimal("450.50")),
        ),
    )


@pytest.fixture
def reservation_records():
    """后端返回的已有预约（西班牙语字段）"""
    return [
        # 6月12日（周四）上午已约
        {"id": 101, "fecha_reserva": "2025-06-12T00:00:00.000Z", "hora_inicio": "11:00:00",
         "hora_fin": "16:00:00", "estado": "confirmada", "activo": True},
        # 6月13日（周五）全天约满
        {"id": 102, "fecha_reserva": "2025-06-13", "hora_inicio": "11:00:00",
         "hora_fin": "16:00:00", "estado": "pendiente", "activo": True},
        {"id": 103, "fecha_reserva": "2025-06-13", "hora_inicio": "17:00:00",
         "hora_fin": "22:00:00", "estado": "confirmada", "activo": True},
        # 已取消、已停用的不占用时段
        {"id": 104, "fecha_reserva": "2025-06-14", "hora_inicio": "17:00:00",
         "hora_fin": "22:00:00", "estado": "cancelada", "activo": True},
        {"id": 105, "fecha_reserva": "2025-06-16", "hora_inicio": "11:00:00",
         "hora_fin": "16:00:00", "estado": "confirmada", "activo": False},
    ]


@pytest.fixture
def reservations(reservation_records):
    return [ExistingReservation.model_validate(r) for r in reservation_records]


@pytest.fixture
def test_db():
    """测试数据库（内存）"""
    db_manager = DatabaseManager(":memory:")
    db_manager.init_database()

    yield db_manager

    # 清理
    db_manager.close()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def backend_client(fake_session):
    return ReservationBackendClient(base_url=BACKEND_URL, timeout=5, session=fake_session)


@pytest.fixture
def api_day():
    """API 测试用的日期：一个月后的周四，满足客户流程的提前天数"""
    return next_weekday(date.today() + timedelta(days=30), 3)


@pytest.fixture
def api_reservations(api_day):
    """API 测试用的已有预约：api_day 上午已约"""
    return [
        ExistingReservation(id=201, date=api_day, start_time="11:00:00", end_time="16:00:00",
                            status="confirmed"),
    ]


@pytest.fixture
def app_instance(catalog, api_reservations, backend_client, test_db):
    """测试应用，目录、已有预约、后端与日志库都替换为测试数据"""
    app = create_app()
    catalog_service = CatalogService(client=backend_client)

    app.dependency_overrides[deps.get_catalog_service] = lambda: catalog_service
    app.dependency_overrides[deps.get_catalog_snapshot] = lambda: catalog
    app.dependency_overrides[deps.get_reservations] = lambda: list(api_reservations)
    app.dependency_overrides[deps.get_backend_client] = lambda: backend_client
    app.dependency_overrides[deps.get_db] = lambda: test_db

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app_instance):
    """测试客户端"""
    return TestClient(app_instance)
