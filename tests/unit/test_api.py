import unittest
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient
from firebase_admin import auth

from cinemalog.auth.models import Identity
from cinemalog.auth.service import AuthService
from cinemalog.core.config import settings
from cinemalog.core.dependencies import get_auth_service, get_identity, get_store
from cinemalog.main import app
from fakes import InMemoryStore

ALICE = Identity(user_id="alice", email="alice@example.com", display_name="Alice")
BOB = Identity(user_id="bob", email="bob@example.com")


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()
        self.identity = ALICE
        self.auth_service = AuthService(firebase_app=object())
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_identity] = lambda: self.identity
        app.dependency_overrides[get_auth_service] = lambda: self.auth_service
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _movie(self, **data):
        response = self.client.post("/catalog/movies", json={"title": "Tampopo", "genre": "Comedy", **data})
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _record(self, movie_id, watched_at="2024-05-01", **data):
        response = self.client.post("/records", json={"movie_id": movie_id, "watched_at": watched_at, **data})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class RecordsApiTests(ApiTestCase):
    def test_root(self):
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_listing_with_year_and_search(self):
        movie = self._movie()
        self._record(movie["id"], "2023-02-01", rating=8)
        self._record(movie["id"], "2024-02-01", rating=6, memo="ramen western")

        body = self.client.get("/records", params={"year": 2024, "search": "RAMEN"}).json()
        self.assertEqual(len(body["records"]), 1)
        self.assertEqual(body["years"], [2024, 2023])
        self.assertEqual(body["stats"]["average_rating_display"], "6.0")
        self.assertEqual(body["stats"]["top_genre_display"], "Comedy")

    def test_unknown_movie_is_a_bad_request(self):
        response = self.client.post("/records", json={"movie_id": 99, "watched_at": "2024-05-01"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(self.store.tables['records']), 0)

    def test_rating_bounds(self):
        movie = self._movie()
        for rating in (1, 10):
            self.assertEqual(self._record(movie["id"], rating=rating)["rating"], rating)
        for rating in (0, 11):
            response = self.client.post("/records", json={"movie_id": movie["id"], "watched_at": "2024-05-01", "rating": rating})
            self.assertEqual(response.status_code, 400, rating)
        self.assertEqual(len(self.store.tables['records']), 2)

    def test_memo_length_bound(self):
        movie = self._movie()
        self.assertEqual(len(self._record(movie["id"], memo="x" * 5000)["memo"]), 5000)
        response = self.client.post("/records", json={"movie_id": movie["id"], "watched_at": "2024-05-01", "memo": "x" * 5001})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(self.store.tables['records']), 1)

    def test_out_of_range_year_filter_is_a_bad_request(self):
        self.assertEqual(self.client.get("/records", params={"year": 10000}).status_code, 400)

    def test_other_users_cannot_edit_or_delete(self):
        movie = self._movie()
        record = self._record(movie["id"], rating=9)

        self.identity = BOB
        update = self.client.put(f"/records/{record['id']}", json={"movie_id": movie["id"], "watched_at": "2020-01-01"})
        self.assertEqual(update.status_code, 404)
        self.assertEqual(self.client.delete(f"/records/{record['id']}").status_code, 404)
        self.assertEqual(self.client.get(f"/records/{record['id']}/edit").status_code, 404)
        self.assertEqual(self.store.tables['records'][record['id']]['rating'], 9)

    def test_owner_edit_flow(self):
        movie = self._movie()
        record = self._record(movie["id"])

        form = self.client.get(f"/records/{record['id']}/edit").json()
        self.assertEqual([m["title"] for m in form["movies"]], ["Tampopo"])

        updated = self.client.put(f"/records/{record['id']}", json={"movie_id": movie["id"], "watched_at": "2024-05-02", "rating": 7})
        self.assertEqual(updated.json()["rating"], 7)
        self.assertEqual(self.client.delete(f"/records/{record['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/records/{record['id']}").status_code, 404)

    def test_dashboard(self):
        movie = self._movie()
        self._record(movie["id"], rating=8)
        body = self.client.get("/dashboard").json()
        self.assertEqual(len(body["recent_records"]), 1)
        self.assertEqual(body["stats"]["count"], 1)


class RecordSharingApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.record = self._record(self._movie()["id"])

    def test_friend_can_read_and_comment(self):
        self.store.add_friendship("bob", "alice")
        self.identity = BOB

        detail = self.client.get(f"/records/{self.record['id']}").json()
        self.assertTrue(detail["can_comment"])
        response = self.client.post(f"/records/{self.record['id']}/comments", json={"content": "Hungry now"})
        self.assertEqual(response.status_code, 201)

        comments = self.client.get(f"/records/{self.record['id']}/comments").json()["comments"]
        self.assertEqual([c["content"] for c in comments], ["Hungry now"])
        share = self.client.get(f"/records/{self.record['id']}/share").json()
        self.assertTrue(share["url"].startswith("https://twitter.com/intent/tweet?"))

    def test_stranger_sees_nothing(self):
        self.identity = BOB
        self.assertEqual(self.client.get(f"/records/{self.record['id']}").status_code, 404)
        response = self.client.post(f"/records/{self.record['id']}/comments", json={"content": "hi"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(len(self.store.tables['comments']), 0)

    def test_comment_length_limit(self):
        too_long = self.client.post(f"/records/{self.record['id']}/comments", json={"content": "x" * 1001})
        self.assertEqual(too_long.status_code, 400)
        just_right = self.client.post(f"/records/{self.record['id']}/comments", json={"content": "x" * 1000})
        self.assertEqual(just_right.status_code, 201)


class AuthApiTests(ApiTestCase):
    def test_protected_routes_need_a_session(self):
        del app.dependency_overrides[get_identity]
        self.assertEqual(self.client.get("/records").status_code, 401)
        self.assertEqual(self.client.get("/dashboard").status_code, 401)

    def test_login_sets_session_cookie(self):
        payload = {"localId": "alice", "email": "alice@example.com", "idToken": "id-token", "expiresIn": "3600"}
        self.auth_service = AuthService(
            firebase_app=object(),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
        )
        with patch.object(auth, 'create_session_cookie', return_value="session-cookie"):
            response = self.client.post("/auth/login", json={"email": "alice@example.com", "password": "secret"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["user_id"], "alice")
        self.assertEqual(response.cookies.get(settings.SESSION_COOKIE_NAME), "session-cookie")
        self.assertEqual(self.store.tables['users']["alice"]["email"], "alice@example.com")

    def test_callback_without_code_redirects_to_dashboard(self):
        response = self.client.get("/auth/callback", follow_redirects=False)
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard")

    def test_my_profile(self):
        self.assertEqual(self.client.get("/users/me").status_code, 404)
        self.store.upsert('users', {'id': "alice", 'email': "alice@example.com"})
        self.assertEqual(self.client.get("/users/me").json()["email"], "alice@example.com")


if __name__ == '__main__':
    unittest.main()
