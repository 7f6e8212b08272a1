import unittest

import mongomock
from fastapi.testclient import TestClient

import database
from main import app


class ApiTestCase(unittest.TestCase):
    """Runs the app against a fresh in-memory MongoDB per test."""

    def setUp(self):
        database.use_database(mongomock.MongoClient()["social_test"])
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def signup(self, username, email=None, password="secret123"):
        return self.client.post(
            "/signup",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )

    def register(self, username, password="secret123"):
        """Sign up and log in, returning (user_id, auth headers)."""
        self.assertEqual(self.signup(username, password=password).status_code, 201)
        response = self.client.post(
            "/login", json={"email": f"{username}@example.com", "password": password}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        return payload["user"]["id"], {"Authorization": f"Bearer {payload['token']}"}

    def create_post(self, headers, content="hello", **extra):
        response = self.client.post("/posts", json={"content": content, **extra}, headers=headers)
        self.assertEqual(response.status_code, 201)
        return response.json()
