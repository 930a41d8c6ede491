"""Integration tests for catalog, bookmark, contribution and admin endpoints."""

import uuid

import pytest
from httpx import AsyncClient

API = "/api/v1"


async def submit(client: AsyncClient, headers: dict, payload: dict) -> dict:
    response = await client.post(f"{API}/contributions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def review(client: AsyncClient, headers: dict, contribution_id: str, action: str, **extra):
    return await client.post(
        f"{API}/admin/contributions/{contribution_id}/review",
        json={"action": action, **extra},
        headers=headers,
    )


class TestContributionsAPI:

    @pytest.mark.asyncio
    async def test_submit_requires_auth(self, client: AsyncClient, valid_submission):
        response = await client.post(f"{API}/contributions", json=valid_submission)

        assert response.status_code == 401
        assert response.json()["kind"] == "authentication_error"

    @pytest.mark.asyncio
    async def test_submit_returns_receipt_only(self, client, auth_headers, valid_submission):
        body = await submit(client, auth_headers, valid_submission)

        assert set(body) == {"id", "status", "submitted_at"}
        assert body["status"] == "pending"

    @pytest.mark.asyncio
    async def test_submit_reports_every_violation(self, client, auth_headers):
        response = await client.post(
            f"{API}/contributions",
            json={"name": "", "industry": "Nope", "founded": "", "website": "not a url"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["kind"] == "validation_error"
        fields = {error["field"] for error in body["errors"]}
        assert fields == {"name", "industry", "scale", "location", "description", "website"}

    @pytest.mark.asyncio
    async def test_type_errors_reported_with_field_errors(self, client, auth_headers):
        response = await client.post(
            f"{API}/contributions",
            json={
                "name": "",
                "industry": "Space",
                "scale": "Seed",
                "location": "X",
                "description": "short",
                "founded": "abc",
                "tech_stack": ["React"],
            },
            headers=auth_headers,
        )

        assert response.status_code == 422
        errors = {error["field"]: error["type"] for error in response.json()["errors"]}
        assert set(errors) == {"name", "industry", "description", "founded", "tech_stack"}
        assert errors["founded"] == "type_error"
        assert errors["tech_stack"] == "type_error"

    @pytest.mark.asyncio
    async def test_pending_submission_not_in_catalog(self, client, auth_headers, valid_submission):
        await submit(client, auth_headers, valid_submission)

        response = await client.get(f"{API}/stacks")

        assert response.status_code == 200
        assert response.json()["total"] == 0


class TestAdminAPI:

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, client, auth_headers):
        for method, path in [
            ("GET", f"{API}/admin/contributions"),
            ("GET", f"{API}/admin/stats"),
            ("POST", f"{API}/admin/consistency-check"),
        ]:
            response = await client.request(method, path, headers=auth_headers)
            assert response.status_code == 403
            assert response.json()["kind"] == "authorization_error"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_review(self, client, auth_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)

        response = await review(client, auth_headers, receipt["id"], "approve")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_non_admin_with_malformed_body_is_forbidden(self, client, auth_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)
        url = f"{API}/admin/contributions/{receipt['id']}/review"

        for content in (b"{not json", b"", b'{"notes": 5}'):
            response = await client.post(
                url,
                content=content,
                headers={**auth_headers, "Content-Type": "application/json"},
            )
            assert response.status_code == 403
            assert response.json()["kind"] == "authorization_error"

    @pytest.mark.asyncio
    async def test_admin_with_malformed_body_gets_validation_error(
        self, client, auth_headers, admin_headers, valid_submission
    ):
        receipt = await submit(client, auth_headers, valid_submission)

        response = await client.post(
            f"{API}/admin/contributions/{receipt['id']}/review",
            content=b"{not json",
            headers={**admin_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create_stack_with_bad_body(self, client, auth_headers):
        response = await client.post(
            f"{API}/stacks",
            content=b"[1, 2",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_approve_flow(self, client, auth_headers, admin_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)

        queue = (await client.get(f"{API}/admin/contributions", headers=admin_headers)).json()
        assert queue["total"] == 1
        assert queue["pages"] == 1
        assert queue["has_more"] is False
        assert queue["items"][0]["contributor_username"] == "testuser"

        response = await review(client, admin_headers, receipt["id"], "approve", notes="Great")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "approved"
        assert body["message"] == "Contribution approved and stack created"

        stack = (await client.get(f"{API}/stacks/{body['stack_id']}")).json()
        assert stack["name"] == "Linear"
        assert stack["status"] == "approved"
        assert stack["contributor_username"] == "testuser"
        assert stack["tech_stack"]["frontend"] == ["React", "TypeScript"]

        listing = (await client.get(f"{API}/stacks", params={"search": "linear"})).json()
        assert [item["id"] for item in listing["items"]] == [body["stack_id"]]

        detail = (await client.get(f"{API}/admin/contributions/{receipt['id']}", headers=admin_headers)).json()
        assert detail["status"] == "approved"
        assert detail["admin_notes"] == "Great"
        assert detail["reviewer_username"] == "admin"

        events = (await client.get(
            f"{API}/admin/contributions/{receipt['id']}/events", headers=admin_headers
        )).json()
        assert {event["event_type"] for event in events} == {"contribution.submitted", "contribution.approved"}

    @pytest.mark.asyncio
    async def test_reject_then_review_again(self, client, auth_headers, admin_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)

        response = await review(client, admin_headers, receipt["id"], "reject")
        assert response.status_code == 200
        assert response.json() == {"message": "Contribution rejected", "status": "rejected", "stack_id": None}

        again = await review(client, admin_headers, receipt["id"], "approve")
        assert again.status_code == 409
        assert again.json()["kind"] == "conflict"

        assert (await client.get(f"{API}/stacks")).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_review_errors(self, client, auth_headers, admin_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)

        invalid = await review(client, admin_headers, receipt["id"], "archive")
        assert invalid.status_code == 400
        assert invalid.json()["kind"] == "invalid_action"

        missing = await review(client, admin_headers, str(uuid.uuid4()), "approve")
        assert missing.status_code == 404
        assert missing.json()["kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_status_filter(self, client, auth_headers, admin_headers, valid_submission):
        first = await submit(client, auth_headers, valid_submission)
        await submit(client, auth_headers, valid_submission)
        await review(client, admin_headers, first["id"], "reject")

        rejected = (await client.get(
            f"{API}/admin/contributions", params={"status": "rejected"}, headers=admin_headers
        )).json()
        assert [item["id"] for item in rejected["items"]] == [first["id"]]

        everything = (await client.get(
            f"{API}/admin/contributions", params={"status": "all", "limit": 1}, headers=admin_headers
        )).json()
        assert everything["total"] == 2
        assert everything["pages"] == 2
        assert everything["has_more"] is True

        bad = await client.get(f"{API}/admin/contributions", params={"status": "bogus"}, headers=admin_headers)
        assert bad.status_code == 422

    @pytest.mark.asyncio
    async def test_stats(self, client, auth_headers, admin_headers, valid_submission):
        receipt = await submit(client, auth_headers, valid_submission)
        await submit(client, auth_headers, valid_submission)
        await review(client, admin_headers, receipt["id"], "approve")

        stats = (await client.get(f"{API}/admin/stats", headers=admin_headers)).json()

        assert stats["total_stacks"] == 1
        assert stats["pending_contributions"] == 1
        assert stats["total_users"] == 2
        assert stats["industry_stats"] == [{"_id": "SaaS", "count": 1}]
        assert stats["scale_stats"] == [{"_id": "Series B", "count": 1}]

    @pytest.mark.asyncio
    async def test_consistency_check(self, client, admin_headers):
        response = await client.post(f"{API}/admin/consistency-check", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["is_clean"] is True


class TestStacksAPI:

    @pytest.mark.asyncio
    async def test_admin_creates_stack(self, client, admin_headers, auth_headers, valid_submission):
        payload = {**valid_submission, "logo_url": "https://linear.app/logo.png"}

        forbidden = await client.post(f"{API}/stacks", json=payload, headers=auth_headers)
        assert forbidden.status_code == 403

        response = await client.post(f"{API}/stacks", json=payload, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["logo_url"] == "https://linear.app/logo.png"

    @pytest.mark.asyncio
    async def test_options(self, client):
        response = await client.get(f"{API}/stacks/options")

        assert response.status_code == 200
        assert "Fintech" in response.json()["industries"]

    @pytest.mark.asyncio
    async def test_unknown_stack(self, client):
        response = await client.get(f"{API}/stacks/{uuid.uuid4()}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bookmark_toggle(self, client, admin_headers, auth_headers, valid_submission):
        stack = (await client.post(f"{API}/stacks", json=valid_submission, headers=admin_headers)).json()

        added = await client.post(f"{API}/bookmarks", json={"stack_id": stack["id"]}, headers=auth_headers)
        assert added.json() == {"message": "Stack bookmarked", "bookmarked": True}

        me = (await client.get(f"{API}/auth/me", headers=auth_headers)).json()
        assert me["bookmark_ids"] == [stack["id"]]

        listed = (await client.get(f"{API}/bookmarks", headers=auth_headers)).json()
        assert [item["id"] for item in listed] == [stack["id"]]

        removed = await client.post(f"{API}/bookmarks", json={"stack_id": stack["id"]}, headers=auth_headers)
        assert removed.json()["bookmarked"] is False

        missing = await client.post(f"{API}/bookmarks", json={"stack_id": str(uuid.uuid4())}, headers=auth_headers)
        assert missing.status_code == 404
