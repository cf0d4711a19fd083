# tests/api/test_admin_api.py
"""
Admin handlers: every method requires a bearer token.
"""
import pytest

from api.admin import activity_log_handler, admin_posts_handler, admin_welcome_handler
from api.admin_projects import (
    admin_project_handler,
    admin_projects_handler,
    bulk_handler,
    export_handler,
    import_handler,
)
from core.dispatch import ApiRequest
from models.db_models import ActivityLog, Post, Project


@pytest.fixture
def admin_request(auth_headers):
    def build(method, **kwargs):
        return ApiRequest(method, headers=auth_headers, **kwargs)
    return build


@pytest.mark.asyncio
@pytest.mark.parametrize("handler", [admin_projects_handler, bulk_handler, import_handler, admin_posts_handler])
async def test_requires_token(mock_store, handler):
    method = "GET" if handler in (admin_projects_handler, admin_posts_handler) else "POST"

    response = await handler(ApiRequest(method, headers={"authorization": "Bearer not-a-jwt"}), mock_store)

    assert response.status == 401
    assert response.body == {"message": "Unauthorized"}
    assert not mock_store.mock_calls


class TestProjects:
    @pytest.mark.asyncio
    async def test_delete_missing_project(self, mock_store, admin_request):
        mock_store.find_unique.return_value = None

        response = await admin_project_handler(admin_request("DELETE", path_params={"id": "missing"}), mock_store)

        assert response.status == 404
        assert response.body == {"message": "Project not found"}
        mock_store.create.assert_not_called()
        mock_store.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_logs_with_caller_email(self, mock_store, admin_request):
        mock_store.find_unique.return_value = {"id": "p1", "title": "A", "slug": "a"}

        response = await admin_project_handler(admin_request("DELETE", path_params={"id": "p1"}), mock_store)

        assert response.status == 204
        model, entry = mock_store.create.await_args.args
        assert model is ActivityLog
        assert entry["user_id"] == "admin@example.com"
        assert entry["action"] == "delete"

    @pytest.mark.asyncio
    async def test_update_missing_project_is_404(self, mock_store, admin_request):
        mock_store.find_unique.return_value = None

        response = await admin_project_handler(
            admin_request("PUT", path_params={"id": "missing"}, body={"title": "x"}),
            mock_store,
        )

        assert response.status == 404

    @pytest.mark.asyncio
    async def test_create_invalid_status(self, mock_store, admin_request):
        response = await admin_projects_handler(
            admin_request("POST", body={"title": "A", "slug": "a", "status": "Unknown"}),
            mock_store,
        )

        assert response.status == 400
        assert response.body == {"message": "Invalid project status: Unknown"}
        mock_store.create.assert_not_called()


class TestImport:
    @pytest.mark.asyncio
    async def test_partial_import(self, mock_store, admin_request):
        created = {"id": "p1", "title": "A", "slug": "a", "status": "Draft"}
        mock_store.create.return_value = created

        response = await import_handler(
            admin_request("POST", body={"projects": [{"title": "A", "slug": "a"}, {"title": "B"}]}),
            mock_store,
        )

        assert response.status == 200
        assert response.body == {
            "message": "Imported 1 project(s), 1 failed",
            "results": {
                "successful": [created],
                "failed": [{"project": {"title": "B"}, "error": "Title and slug are required"}],
            },
        }

    @pytest.mark.asyncio
    async def test_projects_must_be_array(self, mock_store, admin_request):
        response = await import_handler(admin_request("POST", body={"projects": "nope"}), mock_store)
        assert response.status == 400


class TestBulk:
    @pytest.mark.asyncio
    async def test_featured(self, mock_store, admin_request):
        response = await bulk_handler(
            admin_request("POST", body={"action": "updateFeatured", "projectIds": ["p1", "p2"], "data": {"featured": True}}),
            mock_store,
        )

        assert response.body == {"message": "2 project(s) updated successfully"}
        mock_store.update_many.assert_awaited_once_with(Project, {"id": {"in": ["p1", "p2"]}}, {"featured": True})
        assert mock_store.create.await_count == 2

    @pytest.mark.asyncio
    async def test_no_selection(self, mock_store, admin_request):
        response = await bulk_handler(admin_request("POST", body={"action": "delete", "projectIds": []}), mock_store)

        assert response.status == 400
        assert response.body == {"message": "No projects selected"}


class TestExport:
    @pytest.mark.asyncio
    async def test_csv(self, mock_store, admin_request):
        mock_store.find_many.return_value = [{"title": "A", "slug": "a", "status": "Draft", "featured": False}]

        response = await export_handler(admin_request("GET", query={"format": "csv"}), mock_store)

        assert response.media_type == "text/csv"
        assert response.headers["Content-Disposition"].startswith('attachment; filename="projects-')
        assert response.headers["Content-Disposition"].endswith('.csv"')
        assert response.body.splitlines()[1] == '"A","a","","Draft","No","","","","","",""'

    @pytest.mark.asyncio
    async def test_json(self, mock_store, admin_request):
        mock_store.find_many.return_value = [{"title": "A"}]

        response = await export_handler(admin_request("GET"), mock_store)

        assert response.body == [{"title": "A"}]
        assert response.headers["Content-Disposition"].endswith('.json"')

    @pytest.mark.asyncio
    async def test_unknown_format(self, mock_store, admin_request):
        response = await export_handler(admin_request("GET", query={"format": "xml"}), mock_store)
        assert response.status == 400


class TestAdminPosts:
    @pytest.mark.asyncio
    async def test_lists_every_status_with_default_limit(self, mock_store, admin_request):
        mock_store.find_many.return_value = []
        mock_store.count.return_value = 0

        response = await admin_posts_handler(admin_request("GET"), mock_store)

        model, query = mock_store.find_many.await_args.args
        assert model is Post
        assert "status" not in query["where"]
        assert query["take"] == 100
        assert response.body["limit"] == 100

    @pytest.mark.asyncio
    async def test_status_filter(self, mock_store, admin_request):
        mock_store.find_many.return_value = []
        mock_store.count.return_value = 0

        await admin_posts_handler(admin_request("GET", query={"status": "Draft"}), mock_store)

        assert mock_store.find_many.await_args.args[1]["where"] == {"status": "Draft"}


class TestActivityLog:
    @pytest.mark.asyncio
    async def test_filters_and_defaults(self, mock_store, admin_request):
        mock_store.find_many.return_value = [{"id": "log-1"}]
        mock_store.count.return_value = 1

        response = await activity_log_handler(
            admin_request("GET", query={"entityType": "Project", "projectId": "p1"}),
            mock_store,
        )

        model, query = mock_store.find_many.await_args.args
        assert model is ActivityLog
        assert query["where"] == {"entity_type": "Project", "project_id": "p1"}
        assert query["take"] == 50
        assert response.body == {"logs": [{"id": "log-1"}], "total": 1, "limit": 50, "offset": 0}


class TestAdminWelcome:
    @pytest.mark.asyncio
    async def test_requires_name_and_bio(self, mock_store, admin_request):
        response = await admin_welcome_handler(admin_request("PUT", body={"name": "Ada"}), mock_store)

        assert response.status == 400
        assert response.body == {"message": "Name and briefBio are required"}
        mock_store.replace_singleton.assert_not_called()

    @pytest.mark.asyncio
    async def test_replace(self, mock_store, admin_request):
        mock_store.replace_singleton.return_value = {"id": "w1"}

        response = await admin_welcome_handler(
            admin_request("PUT", body={"name": "Ada", "briefBio": "Engineer"}),
            mock_store,
        )

        assert response.status == 200
