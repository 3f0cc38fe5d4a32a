"""
目录API集成测试
"""


class TestCatalogAPI:
    """目录API测试"""

    def test_active_themes(self, client):
        response = client.get("/api/v1/catalog/themes")
        assert response.status_code == 200
        assert [t["id"] for t in response.json()["data"]] == [1, 2]

    def test_mamparas_of_theme(self, client):
        response = client.get("/api/v1/catalog/themes/1/mamparas")
        data = response.json()["data"]
        assert [m["id"] for m in data] == [10, 11]
        assert data[0]["price"] == 1200

    def test_mamparas_of_unknown_theme(self, client):
        response = client.get("/api/v1/catalog/themes/99/mamparas")
        assert response.json()["data"] == []

    def test_food_options_by_slot(self, client):
        response = client.get("/api/v1/catalog/food-options", params={"slot": "morning"})
        assert [o["id"] for o in response.json()["data"]] == [1, 3]

    def test_food_options_invalid_slot(self, client):
        response = client.get("/api/v1/catalog/food-options", params={"slot": "noche"})
        assert response.status_code == 400

    def test_refresh(self, client):
        response = client.post("/api/v1/catalog/refresh")
        assert response.status_code == 200
        assert response.json()["success"] is True


class TestHealthAPI:
    """健康检查测试"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert "name" in client.get("/").json()
