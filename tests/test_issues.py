"""
Tests for the issues API
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.issue import IssueCategory, IssueStatus, Priority
from app.models.user import User
from app.services.issue_service import can_transition
from tests.conftest import make_issue


def _parse(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def issue_payload(**overrides) -> dict:
    payload = {
        "title": "Broken projector",
        "description": "The projector in room 101 does not turn on",
        "location": "Engineering Block, Room 101",
        "category": "Equipment",
    }
    payload.update(overrides)
    return payload


class TestCreateIssue:
    """Tests for reporting issues"""

    @pytest.mark.asyncio
    async def test_create_with_defaults(
        self, client: AsyncClient, student: User, student_headers: dict
    ):
        response = await client.post("/api/issues", json=issue_payload(), headers=student_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Pending"
        assert data["priority"] == "Medium"
        assert data["category"] == "Equipment"
        assert data["media"] == []
        assert data["comments"] == []
        assert data["resolution_details"] is None
        assert data["reporter"]["id"] == student.id
        assert data["reporter"]["department"] == "Computer Science"

    @pytest.mark.asyncio
    async def test_create_with_priority_and_media(self, client: AsyncClient, student_headers: dict):
        media = [{
            "kind": "image",
            "url": "https://media.test/campusfix/image/abc.jpg",
            "external_id": "campusfix/image/abc.jpg",
        }]
        response = await client.post(
            "/api/issues",
            json=issue_payload(priority="Critical", media=media),
            headers=student_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["priority"] == "Critical"
        assert data["media"] == media

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, student_headers: dict):
        response = await client.post("/api/issues", json={}, headers=student_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["msg"] == "Validation failed"
        fields = {error["field"] for error in data["errors"]}
        assert {"title", "description", "location", "category"} <= fields

    @pytest.mark.asyncio
    async def test_title_too_long(self, client: AsyncClient, student_headers: dict):
        response = await client.post(
            "/api/issues", json=issue_payload(title="x" * 101), headers=student_headers
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "title"

    @pytest.mark.asyncio
    async def test_unknown_category(self, client: AsyncClient, student_headers: dict):
        response = await client.post(
            "/api/issues", json=issue_payload(category="Gardening"), headers=student_headers
        )

        assert response.status_code == 400


class TestListIssues:
    """Tests for listing issues"""

    @pytest.mark.asyncio
    async def test_student_sees_only_own_issues(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        other_student: User,
        student_headers: dict,
    ):
        await make_issue(db_session, student)
        await make_issue(db_session, other_student)
        await make_issue(db_session, other_student)

        response = await client.get("/api/issues", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["data"][0]["reporter"]["id"] == student.id

    @pytest.mark.asyncio
    async def test_staff_sees_all_issues(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        other_student: User,
        staff_headers: dict,
    ):
        await make_issue(db_session, student)
        await make_issue(db_session, other_student)

        response = await client.get("/api/issues", headers=staff_headers)

        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_pagination(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        base = datetime.now(timezone.utc) - timedelta(days=1)
        for i in range(12):
            await make_issue(db_session, student, created_at=base + timedelta(minutes=i))

        response = await client.get(
            "/api/issues", params={"page": 2, "limit": 5}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 5
        assert data["total"] == 12
        assert data["pagination"] == {"current": 2, "limit": 5, "pages": 3}
        created = [_parse(issue["created_at"]) for issue in data["data"]]
        assert created == sorted(created, reverse=True)

    @pytest.mark.asyncio
    async def test_empty_list(self, client: AsyncClient, staff_headers: dict):
        response = await client.get("/api/issues", headers=staff_headers)

        data = response.json()
        assert data["count"] == 0
        assert data["total"] == 0
        assert data["pagination"]["pages"] == 0

    @pytest.mark.asyncio
    async def test_filters(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        await make_issue(
            db_session, student, title="Leaking tap", category=IssueCategory.PLUMBING,
            priority=Priority.HIGH,
        )
        await make_issue(
            db_session, student, title="Flickering light", category=IssueCategory.ELECTRICAL,
            status=IssueStatus.IN_PROGRESS,
        )

        response = await client.get(
            "/api/issues", params={"category": "Plumbing"}, headers=staff_headers
        )
        assert [i["title"] for i in response.json()["data"]] == ["Leaking tap"]

        response = await client.get(
            "/api/issues", params={"status": "In Progress"}, headers=staff_headers
        )
        assert [i["title"] for i in response.json()["data"]] == ["Flickering light"]

        response = await client.get(
            "/api/issues", params={"priority": "High"}, headers=staff_headers
        )
        assert [i["title"] for i in response.json()["data"]] == ["Leaking tap"]

        response = await client.get(
            "/api/issues", params={"search": "flicker"}, headers=staff_headers
        )
        assert [i["title"] for i in response.json()["data"]] == ["Flickering light"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        await make_issue(db_session, student, title="Heater stuck at 100% power")
        await make_issue(db_session, student, title="Door hinge loose")

        response = await client.get("/api/issues", params={"search": "%"}, headers=staff_headers)
        data = response.json()
        assert data["total"] == 1
        assert data["data"][0]["title"] == "Heater stuck at 100% power"

        response = await client.get("/api/issues", params={"search": "_"}, headers=staff_headers)
        assert response.json()["total"] == 0

        response = await client.get(
            "/api/issues", params={"search": "100%"}, headers=staff_headers
        )
        assert response.json()["total"] == 1


class TestGetIssue:
    """Tests for reading one issue"""

    @pytest.mark.asyncio
    async def test_reporter_can_read(
        self, client: AsyncClient, db_session: AsyncSession, student: User, student_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.get(f"/api/issues/{issue.id}", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["id"] == issue.id

    @pytest.mark.asyncio
    async def test_other_student_is_forbidden(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        other_student_headers: dict,
    ):
        issue = await make_issue(db_session, student)

        response = await client.get(f"/api/issues/{issue.id}", headers=other_student_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_issue(self, client: AsyncClient, staff_headers: dict):
        response = await client.get("/api/issues/9999", headers=staff_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "msg": "Issue not found"}


class TestUpdateIssue:
    """Tests for staff updates"""

    @pytest.mark.asyncio
    async def test_student_cannot_update(
        self, client: AsyncClient, db_session: AsyncSession, student: User, student_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Resolved"}, headers=student_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_assign_and_prioritize(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        staff_user: User,
        staff_headers: dict,
    ):
        issue = await make_issue(db_session, student)

        response = await client.put(
            f"/api/issues/{issue.id}",
            json={"status": "Assigned", "priority": "High", "assigned_to": staff_user.id},
            headers=staff_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Assigned"
        assert data["priority"] == "High"
        assert data["assigned_to"]["id"] == staff_user.id
        assert data["resolution_details"] is None

    @pytest.mark.asyncio
    async def test_assign_unknown_user(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.put(
            f"/api/issues/{issue.id}",
            json={"status": "Assigned", "assigned_to": 9999},
            headers=staff_headers,
        )

        assert response.status_code == 404
        assert response.json()["msg"] == "Assigned user not found"

        response = await client.get(f"/api/issues/{issue.id}", headers=staff_headers)
        assert response.json()["status"] == "Pending"

    @pytest.mark.asyncio
    async def test_resolve_stamps_resolution_once(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        staff_user: User,
        staff_headers: dict,
        admin_headers: dict,
    ):
        issue = await make_issue(db_session, student)
        before = datetime.now(timezone.utc) - timedelta(seconds=5)

        response = await client.put(
            f"/api/issues/{issue.id}",
            json={"status": "Resolved", "resolution_details": "Replaced the bulb"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        resolution = response.json()["resolution_details"]
        assert resolution["description"] == "Replaced the bulb"
        assert resolution["resolved_by"]["id"] == staff_user.id
        resolved_at = _parse(resolution["resolved_at"])
        assert before <= resolved_at <= datetime.now(timezone.utc) + timedelta(seconds=5)

        # Re-sending Resolved leaves the first stamp in place
        response = await client.put(
            f"/api/issues/{issue.id}",
            json={"status": "Resolved", "resolution_details": "Something else"},
            headers=admin_headers,
        )

        again = response.json()["resolution_details"]
        assert again["description"] == "Replaced the bulb"
        assert again["resolved_by"]["id"] == staff_user.id
        assert _parse(again["resolved_at"]) == resolved_at

    @pytest.mark.asyncio
    async def test_resolve_without_details_uses_default(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Resolved"}, headers=staff_headers
        )

        assert response.json()["resolution_details"]["description"] == "Issue resolved"

    @pytest.mark.asyncio
    async def test_leaving_resolved_keeps_resolution_record(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        staff_user: User,
        staff_headers: dict,
    ):
        issue = await make_issue(db_session, student)
        response = await client.put(
            f"/api/issues/{issue.id}",
            json={"status": "Resolved", "resolution_details": "Reset the breaker"},
            headers=staff_headers,
        )
        resolution = response.json()["resolution_details"]

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "In Progress"}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "In Progress"
        assert data["resolution_details"] == resolution
        assert data["resolution_details"]["resolved_by"]["id"] == staff_user.id

    @pytest.mark.asyncio
    async def test_updated_at_refreshed_on_comment_and_update(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        student_headers: dict,
        staff_headers: dict,
    ):
        issue = await make_issue(db_session, student)
        response = await client.get(f"/api/issues/{issue.id}", headers=student_headers)
        created_stamp = _parse(response.json()["updated_at"])

        await client.post(
            f"/api/issues/{issue.id}/comments", json={"text": "Still broken"},
            headers=student_headers,
        )
        response = await client.get(f"/api/issues/{issue.id}", headers=student_headers)
        commented_stamp = _parse(response.json()["updated_at"])
        assert commented_stamp > created_stamp

        response = await client.put(
            f"/api/issues/{issue.id}", json={"priority": "High"}, headers=staff_headers
        )
        updated_stamp = _parse(response.json()["updated_at"])
        assert updated_stamp > commented_stamp

    @pytest.mark.asyncio
    async def test_free_transitions_by_default(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        issue = await make_issue(db_session, student, status=IssueStatus.RESOLVED)

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Pending"}, headers=staff_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Pending"

    @pytest.mark.asyncio
    async def test_strict_transitions(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        staff_headers: dict,
        monkeypatch,
    ):
        monkeypatch.setattr(get_settings(), "strict_status_transitions", True)
        issue = await make_issue(db_session, student)

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Resolved"}, headers=staff_headers
        )
        assert response.status_code == 400
        assert response.json()["msg"] == "Cannot change status from Pending to Resolved"

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Under Review"}, headers=staff_headers
        )
        assert response.status_code == 200

        response = await client.put(
            f"/api/issues/{issue.id}", json={"status": "Closed"}, headers=staff_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Closed"


class TestTransitionTable:
    """Allowed-from table used in strict mode"""

    def test_forward_path(self):
        assert can_transition(IssueStatus.PENDING, IssueStatus.UNDER_REVIEW)
        assert can_transition(IssueStatus.PENDING, IssueStatus.ASSIGNED)
        assert can_transition(IssueStatus.ASSIGNED, IssueStatus.IN_PROGRESS)
        assert can_transition(IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED)

    def test_skipping_steps_is_refused(self):
        assert not can_transition(IssueStatus.PENDING, IssueStatus.RESOLVED)
        assert not can_transition(IssueStatus.RESOLVED, IssueStatus.PENDING)

    def test_rejected_and_closed_reachable_from_anywhere(self):
        for status in IssueStatus:
            assert can_transition(status, IssueStatus.REJECTED)
            assert can_transition(status, IssueStatus.CLOSED)

    def test_rejected_reopens_into_in_progress(self):
        assert can_transition(IssueStatus.REJECTED, IssueStatus.IN_PROGRESS)
        assert not can_transition(IssueStatus.REJECTED, IssueStatus.RESOLVED)

    def test_same_status_is_allowed(self):
        for status in IssueStatus:
            assert can_transition(status, status)


class TestComments:
    """Tests for issue comments"""

    @pytest.mark.asyncio
    async def test_comments_newest_first(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        staff_user: User,
        student_headers: dict,
        staff_headers: dict,
    ):
        issue = await make_issue(db_session, student)

        response = await client.post(
            f"/api/issues/{issue.id}/comments", json={"text": "First"}, headers=student_headers
        )
        assert response.status_code == 200
        assert [c["text"] for c in response.json()] == ["First"]

        response = await client.post(
            f"/api/issues/{issue.id}/comments", json={"text": "Second"}, headers=staff_headers
        )

        comments = response.json()
        assert [c["text"] for c in comments] == ["Second", "First"]
        assert comments[0]["author"]["id"] == staff_user.id
        assert comments[0]["author"]["role"] == "staff"

        response = await client.get(f"/api/issues/{issue.id}", headers=student_headers)
        assert [c["text"] for c in response.json()["comments"]] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_other_student_cannot_comment(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        student: User,
        other_student_headers: dict,
    ):
        issue = await make_issue(db_session, student)

        response = await client.post(
            f"/api/issues/{issue.id}/comments", json={"text": "Me too"},
            headers=other_student_headers,
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_blank_comment(
        self, client: AsyncClient, db_session: AsyncSession, student: User, student_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.post(
            f"/api/issues/{issue.id}/comments", json={"text": "   "}, headers=student_headers
        )

        assert response.status_code == 400


class TestDeleteIssue:
    """Tests for removing issues"""

    @pytest.mark.asyncio
    async def test_admin_deletes(
        self, client: AsyncClient, db_session: AsyncSession, student: User, admin_headers: dict
    ):
        issue = await make_issue(db_session, student)
        issue_id = issue.id

        response = await client.delete(f"/api/issues/{issue_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "msg": "Issue removed"}

        response = await client.get(f"/api/issues/{issue_id}", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_staff_cannot_delete(
        self, client: AsyncClient, db_session: AsyncSession, student: User, staff_headers: dict
    ):
        issue = await make_issue(db_session, student)

        response = await client.delete(f"/api/issues/{issue.id}", headers=staff_headers)

        assert response.status_code == 403
