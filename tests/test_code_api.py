import uuid
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from app.models import CodeSnippet

SNIPPET = {
    "title": "Quick sort",
    "code": "def qsort(xs):\n    return sorted(xs)\n",
    "language": "python",
    "category": "Algorithms",
    "tags": ["sorting", "recursion"],
}


@pytest.fixture
def post_snippet(client):
    def _post(headers=None, **overrides):
        response = client.post("/api/code", json={**SNIPPET, **overrides}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _post


class TestCreate:
    def test_anonymous_snippet(self, post_snippet):
        data = post_snippet()
        assert data["ownerId"] is None
        assert data["views"] == 0
        assert data["likes"] == 0
        assert data["tags"] == ["sorting", "recursion"]
        assert data["isPublic"] is True
        assert data["allowComments"] is True

    def test_owned_snippet(self, post_snippet, register_user):
        user, headers = register_user()
        data = post_snippet(headers=headers)
        assert data["ownerId"] == user["user"]["id"]

    def test_stale_token_is_rejected(self, client, register_user):
        _, headers = register_user()
        client.post("/api/auth/logout", headers=headers)

        stale = client.post("/api/code", json=SNIPPET, headers=headers)
        garbage = client.post(
            "/api/code", json=SNIPPET, headers={"Authorization": "Bearer not-a-session"}
        )
        assert stale.status_code == garbage.status_code == 401
        assert client.get("/api/code").json() == []

    def test_visibility_flags_use_camel_case_keys(self, client, post_snippet):
        data = post_snippet(title="secret", isPublic=False, allowComments=False)
        assert data["isPublic"] is False
        assert data["allowComments"] is False
        assert "createdAt" in data

        assert client.get("/api/search", params={"q": "secret"}).json() == []
        assert client.get("/api/code").json() == []

    def test_field_names_accepted_unknown_keys_rejected(self, client, post_snippet):
        data = post_snippet(is_public=False)
        assert data["isPublic"] is False

        response = client.post("/api/code", json={**SNIPPET, "visibility": "private"})
        assert response.status_code == 400
        assert client.get("/api/code").json() == []

    def test_validation(self, client):
        for overrides in ({"title": ""}, {"title": "   "}, {"code": ""}, {"title": "x" * 201}):
            response = client.post("/api/code", json={**SNIPPET, **overrides})
            assert response.status_code == 400, overrides
            assert response.json()["error"] == "validation_error"

        missing = {k: v for k, v in SNIPPET.items() if k != "language"}
        assert client.post("/api/code", json=missing).status_code == 400


class TestList:
    def test_only_public_newest_first(self, client, post_snippet):
        post_snippet(title="first")
        post_snippet(title="hidden", isPublic=False)
        post_snippet(title="second")

        titles = [s["title"] for s in client.get("/api/code").json()]
        assert titles == ["second", "first"]

    def test_sort_and_filters(self, client, post_snippet):
        viewed = post_snippet(title="viewed", language="go")
        liked = post_snippet(title="liked")
        client.get(f"/api/code/{viewed['id']}")
        client.post(f"/api/code/{liked['id']}/like")
        client.post(f"/api/code/{liked['id']}/like")

        popular = client.get("/api/code", params={"sort": "popular"}).json()
        most_liked = client.get("/api/code", params={"sort": "liked"}).json()
        go_only = client.get("/api/code", params={"language": "go"}).json()

        assert popular[0]["title"] == "viewed"
        assert most_liked[0]["title"] == "liked"
        assert [s["title"] for s in go_only] == ["viewed"]

    def test_pagination_bounds(self, client, post_snippet):
        for i in range(3):
            post_snippet(title=f"s{i}")
        assert len(client.get("/api/code", params={"limit": 2}).json()) == 2
        assert len(client.get("/api/code", params={"limit": 2, "offset": 2}).json()) == 1
        assert client.get("/api/code", params={"limit": 0}).status_code == 400
        assert client.get("/api/code", params={"limit": 101}).status_code == 400
        assert client.get("/api/code", params={"sort": "random"}).status_code == 400


class TestGetById:
    def test_each_fetch_counts_one_view(self, client, post_snippet):
        snippet = post_snippet()

        first = client.get(f"/api/code/{snippet['id']}")
        second = client.get(f"/api/code/{snippet['id']}")

        assert first.status_code == 200
        assert first.json()["views"] == 1
        assert second.json()["views"] == 2

    def test_private_snippet_fetchable_by_id(self, client, post_snippet):
        snippet = post_snippet(isPublic=False)
        assert client.get(f"/api/code/{snippet['id']}").status_code == 200

    def test_unknown_and_malformed_ids(self, client):
        missing = client.get(f"/api/code/{uuid.uuid4()}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"
        assert client.get("/api/code/not-a-uuid").status_code == 400


class TestLike:
    def test_like_counts_every_call(self, client, post_snippet):
        snippet = post_snippet()
        client.post(f"/api/code/{snippet['id']}/like")
        response = client.post(f"/api/code/{snippet['id']}/like")

        assert response.status_code == 200
        assert response.json()["likes"] == 2
        assert response.json()["views"] == 0

    def test_like_unknown_snippet(self, client):
        assert client.post(f"/api/code/{uuid.uuid4()}/like").status_code == 404


class TestDelete:
    def test_owner_deletes(self, client, post_snippet, register_user):
        _, headers = register_user()
        snippet = post_snippet(headers=headers)

        response = client.delete(f"/api/code/{snippet['id']}", headers=headers)
        assert response.status_code == 204
        assert client.get(f"/api/code/{snippet['id']}").status_code == 404
        assert client.delete(f"/api/code/{snippet['id']}", headers=headers).status_code == 404

    def test_non_owner_forbidden(self, client, post_snippet, register_user):
        _, alice = register_user()
        _, bob = register_user(email="bob@example.com", username="bob")
        snippet = post_snippet(headers=alice)
        anonymous = post_snippet()

        assert client.delete(f"/api/code/{snippet['id']}", headers=bob).status_code == 403
        assert client.delete(f"/api/code/{anonymous['id']}", headers=bob).status_code == 403
        assert client.get(f"/api/code/{snippet['id']}").status_code == 200

    def test_requires_auth(self, client, post_snippet):
        snippet = post_snippet()
        assert client.delete(f"/api/code/{snippet['id']}").status_code == 401


class TestSearch:
    def test_matches_title_code_and_tags(self, client, post_snippet):
        post_snippet(title="Heap sort", code="pass", tags=[])
        post_snippet(title="Other", code="# merge sort here", tags=[])
        post_snippet(title="Tagged", code="pass", tags=["Sorting"])
        post_snippet(title="Unrelated", code="pass", tags=["graphs"])

        response = client.get("/api/search", params={"q": "SORT"})
        assert response.status_code == 200
        assert sorted(s["title"] for s in response.json()) == ["Heap sort", "Other", "Tagged"]

    def test_private_snippets_excluded(self, client, post_snippet):
        post_snippet(title="secret sort", isPublic=False)
        post_snippet(title="open sort")
        titles = [s["title"] for s in client.get("/api/search", params={"q": "sort"}).json()]
        assert titles == ["open sort"]

    def test_filters(self, client, post_snippet):
        post_snippet(title="py sort")
        post_snippet(title="rust sort", language="rust", category="Systems")

        by_language = client.get("/api/search", params={"q": "sort", "language": "rust"}).json()
        by_category = client.get("/api/search", params={"q": "sort", "category": "Algorithms"}).json()
        empty_filters = client.get(
            "/api/search", params={"q": "sort", "language": "", "date_range": ""}
        ).json()

        assert [s["title"] for s in by_language] == ["rust sort"]
        assert [s["title"] for s in by_category] == ["py sort"]
        assert len(empty_filters) == 2

    def test_date_range(self, client, engine, post_snippet):
        old = post_snippet(title="old sort")
        post_snippet(title="new sort")
        with Session(engine) as db:
            snippet = db.get(CodeSnippet, uuid.UUID(old["id"]))
            snippet.created_at = datetime.utcnow() - timedelta(days=10)
            db.add(snippet)
            db.commit()

        week = client.get("/api/search", params={"q": "sort", "date_range": "week"}).json()
        month = client.get("/api/search", params={"q": "sort", "date_range": "month"}).json()
        assert [s["title"] for s in week] == ["new sort"]
        assert len(month) == 2

    def test_missing_query_and_bad_range(self, client):
        assert client.get("/api/search").status_code == 400
        assert client.get("/api/search", params={"q": "   "}).status_code == 400

        bad_range = client.get("/api/search", params={"q": "sort", "date_range": "decade"})
        assert bad_range.status_code == 400
        assert "date_range" in bad_range.json()["message"]

    def test_tag_with_quote(self, client, post_snippet):
        post_snippet(title="greeting", code="pass", tags=['say"hi'])
        hits = client.get("/api/search", params={"q": 'say"hi'}).json()
        assert [s["title"] for s in hits] == ["greeting"]

    def test_wildcards_are_literal(self, client, post_snippet):
        post_snippet(title="100% done", code="pass", tags=[])
        post_snippet(title="nothing", code="pass", tags=[])
        titles = [s["title"] for s in client.get("/api/search", params={"q": "%"}).json()]
        assert titles == ["100% done"]
