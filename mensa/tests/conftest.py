"""
测试配置文件
提供测试所需的fixtures和配置
"""

import pytest
from fastapi.testclient import TestClient

from ..app import create_app
from ..core.database import DatabaseManager
from ..core.exceptions import DatabaseError
from ..core.security import security_manager
from ..models.discount import DiscountGroup, DiscountGroupCreate
from ..services.discount_engine import DiscountEngine, DiscountGroupCache, get_discount_engine
from ..services.discount_group_repository import DiscountGroupRepository
from ..services.discount_group_service import DiscountGroupService, get_discount_group_service

CACHE_TTL = 300.0


class ManualClock:
    """可手动推进的时钟"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeRepository:
    """内存折扣组仓储，记录查询次数，可切换为失败状态"""

    def __init__(self, groups=None):
        self.groups = list(groups or [])
        self.calls = 0
        self.fail = False

    def list_ordered_by_name(self):
        self.calls += 1
        if self.fail:
            raise DatabaseError("connection refused")
        return sorted(self.groups, key=lambda g: g.name)


def make_group(name: str, percentage: float, group_id: str = None) -> DiscountGroup:
    return DiscountGroup(
        id=group_id or f"id-{name}",
        name=name,
        description=f"{name} Rabatt",
        discount_percentage=percentage,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_repository():
    return FakeRepository([
        make_group("Schüler", 15.0),
        make_group("Lehrer", 10.0),
        make_group("Externe", 0.0),
    ])


@pytest.fixture
def fake_engine(fake_repository, clock):
    """基于内存仓储的折扣引擎"""
    return DiscountEngine(fake_repository, DiscountGroupCache(ttl_seconds=CACHE_TTL, clock=clock))


@pytest.fixture
def test_db():
    """测试数据库（内存）"""
    db = DatabaseManager(db_path=":memory:")
    db.init_database()
    yield db
    db.close()


@pytest.fixture
def engine(test_db, clock):
    """基于测试数据库的折扣引擎"""
    return DiscountEngine(
        DiscountGroupRepository(test_db),
        DiscountGroupCache(ttl_seconds=CACHE_TTL, clock=clock),
    )


@pytest.fixture
def service(test_db, engine):
    return DiscountGroupService(db=test_db, engine=engine)


@pytest.fixture
def sample_groups(service):
    """示例折扣组"""
    return [
        service.create_group(DiscountGroupCreate(name=name, description=desc, discount_percentage=pct))
        for name, desc, pct in [
            ("Schüler", "Rabatt für Schülerinnen und Schüler", 15.0),
            ("Lehrer", "Rabatt für Lehrkräfte", 10.0),
            ("Externe", "Keine Rabatte für externe Besucher", 0.0),
        ]
    ]


@pytest.fixture
def app_instance(engine, service):
    """测试应用"""
    app = create_app()
    app.dependency_overrides[get_discount_engine] = lambda: engine
    app.dependency_overrides[get_discount_group_service] = lambda: service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_instance):
    """测试客户端"""
    return TestClient(app_instance)


@pytest.fixture
def admin_headers():
    token = security_manager.create_jwt_token("admin@mensa.test", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = security_manager.create_jwt_token("student@mensa.test", role="user")
    return {"Authorization": f"Bearer {token}"}
