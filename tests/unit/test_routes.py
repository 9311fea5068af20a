"""
API tests for the list routes.

Run: pytest tests/unit/test_routes.py -v
"""

from unittest.mock import patch

from tests.factories import PLUItemFactory, VersionFactory


class TestVersionRoutes:
    """Tests for /api/{list_kind}/versions"""

    def test_active_version_not_found(self, test_client_with_mock_db):
        """Should return 404 in the standard error format."""
        response = test_client_with_mock_db.get("/api/produce/versions/active")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "VERSION_NOT_FOUND"

    def test_active_version(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("versions", [VersionFactory.create_active(id="v1")])

        response = test_client_with_mock_db.get("/api/produce/versions/active")

        assert response.status_code == 200
        assert response.json()["id"] == "v1"

    def test_lists_are_separate(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("versions", [VersionFactory.create_active(id="v1")])

        response = test_client_with_mock_db.get("/api/bakery/versions")

        assert response.status_code == 200
        assert response.json() == []

    def test_suggested_week_stays_selectable(self, test_client_with_mock_db, mock_supabase):
        """Should clamp the next free week into the offered weeks."""
        # Arrange
        mock_supabase.set_table_data("versions", [
            VersionFactory.create_frozen(id=f"v{week}", week_number=week) for week in range(10, 15)
        ])

        # Act
        with patch("routes.versions.current_week_and_year", return_value=(10, 2026)):
            response = test_client_with_mock_db.get("/api/produce/versions/week-options")

        # Assert
        body = response.json()
        assert body["weeks"] == [7, 8, 9, 10, 11, 12, 13]
        assert body["suggested_week"] == 13

    def test_unknown_list_kind_rejected(self, test_client_with_mock_db):
        response = test_client_with_mock_db.get("/api/dairy/versions")

        assert response.status_code == 422


class TestUploadRoutes:
    """Tests for /api/{list_kind}/uploads"""

    def test_compare_then_publish(self, test_client_with_mock_db, mock_supabase):
        """Should publish the previewed items as the active version."""
        # Arrange
        compare_body = {
            "files": [{
                "file_name": "gewicht.xlsx",
                "item_type": "WEIGHT",
                "rows": [
                    {"plu": "10001", "system_name": "Banane"},
                    {"plu": "10002", "system_name": "Apfel"},
                ],
            }],
            "week_number": 10,
            "year": 2026,
        }

        # Act
        preview = test_client_with_mock_db.post("/api/produce/uploads/compare", json=compare_body)
        published = test_client_with_mock_db.post(
            "/api/produce/uploads/publish",
            json={"preview": preview.json(), "created_by": "user-admin"},
        )

        # Assert
        assert preview.status_code == 200
        assert published.status_code == 201
        assert published.json()["item_count"] == 2
        versions = mock_supabase.get_table_data("versions")
        assert [v["status"] for v in versions] == ["active"]

    def test_publish_existing_week_conflict(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("versions", [VersionFactory.create_active(id="v1", week_number=10)])
        mock_supabase.set_table_data("master_plu_items", [
            PLUItemFactory.create_row(version_id="v1", plu="10001", system_name="Banane"),
        ])
        compare_body = {
            "files": [{"file_name": "gewicht.xlsx", "item_type": "WEIGHT",
                       "rows": [{"plu": "10001", "system_name": "Banane"}]}],
            "week_number": 10,
            "year": 2026,
        }

        preview = test_client_with_mock_db.post("/api/produce/uploads/compare", json=compare_body)
        published = test_client_with_mock_db.post(
            "/api/produce/uploads/publish",
            json={"preview": preview.json(), "created_by": "user-admin"},
        )

        assert preview.json()["version_exists"] is True
        assert published.status_code == 409
        assert published.json()["error"]["code"] == "VERSION_EXISTS"


class TestCatalogRoutes:
    """Tests for hidden items and custom products."""

    def test_hide_and_list(self, test_client_with_mock_db):
        created = test_client_with_mock_db.post("/api/produce/hidden-items", json={"plu": "20000"})
        listed = test_client_with_mock_db.get("/api/produce/hidden-items")

        assert created.status_code == 201
        assert [h["plu"] for h in listed.json()] == ["20000"]

    def test_invalid_custom_plu_rejected(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post(
            "/api/produce/custom-products",
            json={"plu": "123", "name": "Zu kurz"},
        )

        assert response.status_code == 422


class TestServiceRoutes:
    """Tests for / and /health"""

    def test_root_lists_every_list_kind(self, test_client_with_mock_db):
        response = test_client_with_mock_db.get("/")

        lists = response.json()["lists"]
        assert lists["produce"]["item_types"] == ["PIECE", "WEIGHT"]
        assert lists["bakery"] == {"item_types": ["PIECE"], "base_path": "/api/bakery"}

    def test_health_counts_versions_per_list(self, test_client_with_mock_db, mock_supabase):
        """Should count each list's versions table separately."""
        mock_supabase.set_table_data("versions", [VersionFactory.create_active(id="v1")])
        mock_supabase.set_table_data("bakery_versions", [])

        response = test_client_with_mock_db.get("/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"]["produce_versions"] == 1
        assert body["database"]["bakery_versions"] == 0
