import unittest

from bson import ObjectId

import database
from tests.helpers import ApiTestCase


class FriendTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice = self.register("alice")
        self.bob_id, self.bob = self.register("bob")

    def test_adding_same_friend_twice_keeps_one_entry(self):
        for _ in range(2):
            response = self.client.post(
                "/add-friend", json={"userId": self.alice_id, "friendId": self.bob_id}, headers=self.alice
            )
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json(), {"success": True, "message": "Friend Added"})

        stored = database.get_db()["user"].find_one({"_id": ObjectId(self.alice_id)})
        self.assertEqual(stored["friends"], [ObjectId(self.bob_id)])

        # One-directional
        bob = database.get_db()["user"].find_one({"_id": ObjectId(self.bob_id)})
        self.assertEqual(bob["friends"], [])

    def test_friends_list_is_expanded(self):
        self.client.post("/add-friend", json={"friendId": self.bob_id}, headers=self.alice)
        response = self.client.get(f"/user/{self.alice_id}/friends", headers=self.bob)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), [{"id": self.bob_id, "username": "bob", "profilePicture": ""}]
        )

    def test_friends_of_unknown_user_is_404(self):
        response = self.client.get("/user/64b7f0c2a1b2c3d4e5f60718/friends", headers=self.alice)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "User not found")

    def test_cannot_befriend_self(self):
        response = self.client.post("/add-friend", json={"friendId": self.alice_id}, headers=self.alice)
        self.assertEqual(response.status_code, 400)

    def test_unknown_friend_is_404(self):
        response = self.client.post(
            "/add-friend", json={"friendId": "64b7f0c2a1b2c3d4e5f60718"}, headers=self.alice
        )
        self.assertEqual(response.status_code, 404)

    def test_acting_for_another_user_is_forbidden(self):
        response = self.client.post(
            "/add-friend", json={"userId": self.bob_id, "friendId": self.alice_id}, headers=self.alice
        )
        self.assertEqual(response.status_code, 403)


class UserListTests(ApiTestCase):
    def test_single_user_sees_empty_list(self):
        _, alice = self.register("alice")
        response = self.client.get("/users", headers=alice)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_caller_is_excluded(self):
        alice_id, alice = self.register("alice")
        bob_id, _ = self.register("bob")
        carol_id, _ = self.register("carol")

        response = self.client.get("/users", params={"userId": alice_id}, headers=alice)
        self.assertEqual(response.status_code, 200)
        listed = response.json()
        self.assertCountEqual([u["id"] for u in listed], [bob_id, carol_id])
        for user in listed:
            self.assertEqual(set(user), {"id", "username", "profilePicture"})

    def test_query_user_id_must_match_token(self):
        _, alice = self.register("alice")
        bob_id, _ = self.register("bob")
        response = self.client.get("/users", params={"userId": bob_id}, headers=alice)
        self.assertEqual(response.status_code, 403)


class ProfileTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice = self.register("alice")

    def test_update_profile_picture(self):
        response = self.client.put(
            f"/users/{self.alice_id}/profile-picture",
            json={"profilePicture": "/uploads/me.png"},
            headers=self.alice,
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["user"]["profilePicture"], "/uploads/me.png")
        self.assertNotIn("password_hash", payload["user"])

        profile = self.client.get(f"/user/{self.alice_id}", headers=self.alice).json()
        self.assertEqual(profile["profilePicture"], "/uploads/me.png")

    def test_cannot_update_someone_elses_picture(self):
        bob_id, _ = self.register("bob")
        response = self.client.put(
            f"/users/{bob_id}/profile-picture",
            json={"profilePicture": "/uploads/x.png"},
            headers=self.alice,
        )
        self.assertEqual(response.status_code, 403)

    def test_profile_excludes_password(self):
        bob_id, _ = self.register("bob")
        response = self.client.get(f"/user/{bob_id}", headers=self.alice)
        self.assertEqual(response.status_code, 200)
        profile = response.json()
        self.assertEqual(profile["username"], "bob")
        self.assertEqual(profile["email"], "bob@example.com")
        self.assertNotIn("password_hash", profile)

    def test_unknown_profile_is_404(self):
        self.assertEqual(self.client.get("/user/nope", headers=self.alice).status_code, 404)


if __name__ == "__main__":
    unittest.main()
