"""Tests for /api/customers/{id}/interests routes."""

import pytest

from shared_types import InterestCategory


@pytest.fixture
def url(customer):
    return f"/api/customers/{customer.id}/interests"


@pytest.fixture
def golf(interests, customer):
    return interests.create_manual(customer.id, InterestCategory.PERSONAL, "Golf", actor_id="rm-1")


class TestCreate:
    def test_actor_from_header(self, client, url, rm_headers, interests):
        res = client.post(
            url,
            json={"category": "financial", "label": "  Tax saving  ", "description": "ELSS before March"},
            headers=rm_headers,
        )
        assert res.status_code == 201
        interest = res.json()["interest"]
        assert interest["label"] == "Tax saving"
        assert interest["sourceType"] == "manual"
        assert interest["createdById"] == "rm-7"
        assert interests.get(interest["id"]).description == "ELSS before March"

    def test_actor_from_body(self, client, url):
        res = client.post(url, json={"category": "personal", "label": "Cricket", "rmId": "rm-2"})
        assert res.status_code == 201
        assert res.json()["interest"]["createdById"] == "rm-2"

    def test_requires_actor(self, client, url):
        res = client.post(url, json={"category": "personal", "label": "Cricket"})
        assert res.status_code == 400

    def test_rejects_unknown_category(self, client, url, rm_headers):
        res = client.post(url, json={"category": "sporty", "label": "Cricket"}, headers=rm_headers)
        assert res.status_code == 422

    def test_unknown_customer(self, client, rm_headers):
        res = client.post(
            "/api/customers/missing/interests",
            json={"category": "personal", "label": "Cricket"},
            headers=rm_headers,
        )
        assert res.status_code == 404


class TestList:
    def test_active_only_by_default(self, client, url, golf, interests, customer):
        travel = interests.create_manual(customer.id, InterestCategory.PERSONAL, "Travel")
        interests.archive(travel.id)

        assert [i["label"] for i in client.get(url).json()["interests"]] == ["Golf"]
        archived = client.get(url, params={"includeArchived": "true"}).json()["interests"]
        assert [(i["label"], i["status"]) for i in archived] == [("Golf", "active"), ("Travel", "archived")]

    def test_unknown_customer(self, client):
        assert client.get("/api/customers/missing/interests").status_code == 404


class TestGet:
    def test_get(self, client, url, golf):
        res = client.get(f"{url}/{golf.id}")
        assert res.status_code == 200
        assert res.json()["interest"]["label"] == "Golf"

    def test_other_customers_interest_hidden(self, client, golf, profiles):
        other = profiles.create_customer("Vikram Shah")
        res = client.get(f"/api/customers/{other.id}/interests/{golf.id}")
        assert res.status_code == 404
        assert res.json()["detail"] == "Interest not found"


class TestUpdate:
    def test_label(self, client, url, golf, rm_headers, interests):
        res = client.patch(f"{url}/{golf.id}", json={"label": "Golf (weekends)"}, headers=rm_headers)
        assert res.status_code == 200
        assert res.json()["interest"]["label"] == "Golf (weekends)"
        assert interests.get(golf.id).description is None

    def test_requires_a_change(self, client, url, golf):
        res = client.patch(f"{url}/{golf.id}", json={})
        assert res.status_code == 400

    def test_missing_interest(self, client, url):
        assert client.patch(f"{url}/nope", json={"label": "x"}).status_code == 404


class TestArchive:
    def test_archive(self, client, url, golf, rm_headers, interests):
        res = client.delete(f"{url}/{golf.id}", headers=rm_headers)
        assert res.status_code == 204
        assert interests.get(golf.id).status == "archived"
        # a second archive finds nothing active
        assert client.delete(f"{url}/{golf.id}", headers=rm_headers).status_code == 404

    def test_missing_interest(self, client, url):
        assert client.delete(f"{url}/nope").status_code == 404


class TestAudit:
    def test_trail_records_each_action(self, client, url, golf, rm_headers):
        client.patch(f"{url}/{golf.id}", json={"description": "Sunday mornings"}, headers=rm_headers)
        client.delete(f"{url}/{golf.id}", headers=rm_headers)

        entries = client.get(f"{url}/{golf.id}/audit").json()["entries"]
        assert [(e["action"], e["actorId"]) for e in entries] == [
            ("created", "rm-1"),
            ("edited", "rm-7"),
            ("archived", "rm-7"),
        ]
        assert entries[1]["changes"] == {"description": "Sunday mornings"}
