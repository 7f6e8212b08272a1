"""
User, login and friend operations.
"""

from typing import List

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

import database
from auth import create_access_token, hash_password, verify_password
from errors import (
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UnknownUserError,
)
from logger import get_logger
from schemas import User

logger = get_logger(__name__)

PUBLIC_USER_FIELDS = {"username": 1, "profilePicture": 1}


def _users():
    return database.get_db()["user"]


def _require_user_id(user_id: str) -> ObjectId:
    oid = database.parse_object_id(user_id)
    if oid is None:
        raise NotFoundError("User not found")
    return oid


def register_user(username: str, email: str, password: str) -> dict:
    if _users().find_one({"email": email}, {"_id": 1}):
        raise ConflictError("Email already registered")
    if _users().find_one({"username": username}, {"_id": 1}):
        raise ConflictError("Username already taken")

    user = User(username=username, email=email, password_hash=hash_password(password))
    try:
        uid = database.create_document("user", user)
    except DuplicateKeyError:
        # Lost a race with a concurrent signup for the same email or username
        raise ConflictError("Email or username already taken")
    logger.info("Registered user %s (%s)", username, uid)
    return {"message": "User registered successfully"}


def login(email: str, password: str) -> dict:
    user = _users().find_one({"email": email})
    if not user:
        raise UnknownUserError("User not found")
    if not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError("Invalid credentials")
    token = create_access_token(str(user["_id"]))
    return {"token": token, "user": database.to_public(user)}


def list_users(exclude_user_id: str) -> List[dict]:
    exclude = database.parse_object_id(exclude_user_id)
    users = database.get_documents("user", {"_id": {"$ne": exclude}}, projection=PUBLIC_USER_FIELDS)
    return [database.to_public(u) for u in users]


def add_friend(user_id: str, friend_id: str) -> dict:
    uid = _require_user_id(user_id)
    fid = database.parse_object_id(friend_id)
    if fid is None or _users().find_one({"_id": fid}, {"_id": 1}) is None:
        raise NotFoundError("Friend not found")
    if fid == uid:
        raise BadRequestError("You cannot add yourself as a friend")

    result = _users().update_one(
        {"_id": uid},
        {"$addToSet": {"friends": fid}, "$set": {"updatedAt": database.now()}},
    )
    if result.matched_count == 0:
        raise NotFoundError("User not found")
    return {"success": True, "message": "Friend Added"}


def list_friends(user_id: str) -> List[dict]:
    user = _users().find_one({"_id": _require_user_id(user_id)}, {"friends": 1})
    if not user:
        raise NotFoundError("User not found")
    friend_ids = user.get("friends", [])
    if not friend_ids:
        return []
    found = {
        f["_id"]: f
        for f in database.get_documents("user", {"_id": {"$in": friend_ids}}, projection=PUBLIC_USER_FIELDS)
    }
    # Keep the order in which friends were added
    return [database.to_public(found[fid]) for fid in friend_ids if fid in found]


def update_profile_picture(user_id: str, picture_ref: str) -> dict:
    user = _users().find_one_and_update(
        {"_id": _require_user_id(user_id)},
        {"$set": {"profilePicture": picture_ref, "updatedAt": database.now()}},
        projection={"password_hash": 0},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise NotFoundError("User not found")
    return {
        "success": True,
        "message": "Profile picture updated successfully",
        "user": database.to_public(user),
    }


def get_user_profile(user_id: str) -> dict:
    user = _users().find_one({"_id": _require_user_id(user_id)}, {"password_hash": 0})
    if not user:
        raise NotFoundError("User not found")
    return database.to_public(user)
