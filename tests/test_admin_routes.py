"""End-to-end tests for the admin blueprint."""

from __future__ import annotations

from models import db
from models.project import Project
from services import projects


def test_admin_routes_require_admin(client, roles, auth_headers):
    for path in ("/admin/dashboard", "/admin/projects", "/admin/developers", "/admin/analytics"):
        response = client.get(path, headers=auth_headers(roles["owner"]))
        assert response.status_code == 403


def test_dashboard_stats(client, roles, make_project, auth_headers):
    first = make_project(roles["owner"])
    make_project(roles["stranger"])
    projects.record_payment(first, roles["owner"], 300)

    response = client.get("/admin/dashboard", headers=auth_headers(roles["admin"]))

    assert response.status_code == 200
    data = response.get_json()
    assert data["stats"]["total_projects"] == 2
    assert data["stats"]["active_projects"] == 1
    assert data["stats"]["total_users"] == 2
    assert data["stats"]["total_developers"] == 1
    assert data["stats"]["monthly_revenue"] == 300.0
    assert data["project_status_stats"] == {"draft": 1, "prototype": 1}
    assert len(data["recent_projects"]) == 2


def test_list_all_projects_filters(client, roles, make_project, auth_headers):
    assigned = make_project(roles["owner"])
    make_project(roles["stranger"])
    projects.assign_developer(assigned, roles["admin"], roles["developer"])
    headers = auth_headers(roles["admin"])

    unassigned = client.get("/admin/projects?assigned=false", headers=headers).get_json()
    developing = client.get("/admin/projects?status=in-development", headers=headers).get_json()

    assert unassigned["pagination"]["total"] == 1
    assert [p["id"] for p in developing["projects"]] == [assigned.id]


def test_assign_developer(client, roles, make_project, auth_headers, publisher):
    project = make_project(roles["owner"])

    response = client.put(
        f"/admin/projects/{project.id}/assign",
        json={"developer_id": roles["developer"].id},
        headers=auth_headers(roles["admin"]),
    )

    assert response.status_code == 200
    data = response.get_json()["project"]
    assert data["status"] == "in-development"
    assert data["assigned_developer"]["id"] == roles["developer"].id
    ((channel, _, payload),) = publisher.named("project-assigned")
    assert channel == f"project-{project.id}"
    assert payload["status"] == "in-development"


def test_assign_developer_errors(client, roles, make_project, auth_headers, publisher):
    project = make_project(roles["owner"])
    headers = auth_headers(roles["admin"])
    url = f"/admin/projects/{project.id}/assign"

    assert client.put(url, json={"developer_id": "abc"}, headers=headers).status_code == 400
    assert (
        client.put(url, json={"developer_id": roles["stranger"].id}, headers=headers).status_code
        == 400
    )
    assert (
        client.put(
            "/admin/projects/9999/assign",
            json={"developer_id": roles["developer"].id},
            headers=headers,
        ).status_code
        == 404
    )

    project.status = "deployed"
    db.session.commit()
    conflict = client.put(url, json={"developer_id": roles["developer"].id}, headers=headers)
    assert conflict.status_code == 409
    assert publisher.events == []


def test_status_update_by_assigned_developer(client, roles, make_project, auth_headers, publisher):
    project = make_project(roles["owner"])
    projects.assign_developer(project, roles["admin"], roles["developer"])

    response = client.put(
        f"/admin/projects/{project.id}/status",
        json={"status": "testing", "notes": "Feature complete"},
        headers=auth_headers(roles["developer"]),
    )

    assert response.status_code == 200
    assert response.get_json()["project"]["status"] == "testing"
    ((_, _, payload),) = publisher.named("status-update")
    assert payload["status"] == "testing"
    assert payload["updated_by"] == "Dev Eloper"
    last = project.communication.all()[-1]
    assert last.content == "Status updated to testing: Feature complete"


def test_status_update_rejections(client, roles, make_project, auth_headers, publisher):
    project = make_project(roles["owner"])
    url = f"/admin/projects/{project.id}/status"

    illegal = client.put(url, json={"status": "deployed"}, headers=auth_headers(roles["admin"]))
    by_owner = client.put(
        url, json={"status": "cancelled"}, headers=auth_headers(roles["owner"])
    )
    unknown = client.put(url, json={"status": "shipped"}, headers=auth_headers(roles["admin"]))
    long_notes = client.put(
        url,
        json={"status": "cancelled", "notes": "x" * 501},
        headers=auth_headers(roles["admin"]),
    )

    assert illegal.status_code == 409
    assert by_owner.status_code == 404
    assert unknown.status_code == 400
    assert long_notes.status_code == 400
    assert db.session.get(Project, project.id).status == "draft"
    assert publisher.events == []


def test_create_and_list_developers(client, roles, make_project, auth_headers):
    headers = auth_headers(roles["admin"])
    payload = {"name": "Fresh Dev", "email": "fresh@example.com", "password": "DevPass1"}

    created = client.post("/admin/developers", json=payload, headers=headers)
    duplicate = client.post("/admin/developers", json=payload, headers=headers)

    assert created.status_code == 201
    assert created.get_json()["developer"]["role"] == "developer"
    assert duplicate.status_code == 409

    project = make_project(roles["owner"])
    projects.assign_developer(project, roles["admin"], roles["developer"])

    developers = client.get("/admin/developers", headers=headers).get_json()["developers"]
    workload = {dev["email"]: dev["active_projects"] for dev in developers}
    assert workload == {roles["developer"].email: 1, "fresh@example.com": 0}


def test_analytics(client, roles, make_project, auth_headers):
    project = make_project(roles["owner"])
    projects.assign_developer(project, roles["admin"], roles["developer"])
    projects.transition_status(project, roles["developer"], "testing")
    projects.transition_status(project, roles["developer"], "deployed")

    response = client.get("/admin/analytics?period=7", headers=auth_headers(roles["admin"]))

    assert response.status_code == 200
    data = response.get_json()
    assert data["period_days"] == 7
    assert sum(item["count"] for item in data["project_trends"]) == 1
    assert data["category_stats"] == {"mobile-app": 1}
    (performance,) = data["developer_performance"]
    assert performance["developer_id"] == roles["developer"].id
    assert performance["completed_projects"] == 1


def test_status_update_rejects_non_string_notes(client, roles, make_project, auth_headers):
    project = make_project(roles["owner"])

    response = client.put(
        f"/admin/projects/{project.id}/status",
        json={"status": "cancelled", "notes": 5},
        headers=auth_headers(roles["admin"]),
    )

    assert response.status_code == 400
    assert response.get_json()["errors"] == [
        {"field": "notes", "message": "notes must be a string"}
    ]
    assert db.session.get(Project, project.id).status == "draft"
