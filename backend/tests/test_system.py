# Overview: Pytest coverage for the system endpoints and the bootstrap CLI.

from millet.models import User


class TestSystemRoutes:
    def test_banner(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.get_json()["success"] is True

    def test_healthcheck(self, client, db_session):
        response = client.get("/api/healthcheck")
        body = response.get_json()
        assert response.status_code == 200
        assert body["database"]["status"] == "healthy"

    def test_cors_headers_for_allowed_origin(self, client):
        response = client.get("/", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        other = client.get("/", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in other.headers


class TestCli:
    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        args = ["system", "init", "--admin-email", "root@millet.test", "--admin-password", "Password123"]

        first = runner.invoke(args=args)
        second = runner.invoke(args=args)

        assert first.exit_code == 0
        assert "Created admin: root@millet.test" in first.output
        assert second.exit_code == 0
        assert "already exists" in second.output
        db_session.expire_all()
        assert db_session.query(User).filter_by(role="admin").count() == 1

    def test_create_admin_rejects_weak_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["users", "create-admin", "--email", "x@millet.test", "--password", "weak"])
        assert result.exit_code != 0
        assert "at least 8 characters" in result.output

    def test_list_users(self, app, warehouse, admin_user):
        result = app.test_cli_runner().invoke(args=["users", "list"])
        assert result.exit_code == 0
        assert "admin@millet.test" in result.output
        assert "warehouse Central Depot" in result.output
