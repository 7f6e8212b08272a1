"""
Post operations: create, list, like, comment and delete.

Visibility rules for reads:
    Public  -> everyone
    Friends -> the owner and users the owner has added as friends
    Private -> the owner only
"""

from typing import List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

import database
from errors import ForbiddenError, NotFoundError
from logger import get_logger
from schemas import Comment, Post

logger = get_logger(__name__)

OWNER_FIELDS = {"username": 1, "profilePicture": 1}


def _posts():
    return database.get_db()["post"]


def _viewer_oid(viewer_id: str) -> ObjectId:
    oid = database.parse_object_id(viewer_id)
    if oid is None:
        raise NotFoundError("User not found")
    return oid


def _can_view(post: dict, viewer: ObjectId) -> bool:
    privacy = post.get("privacy", "Public")
    if privacy == "Public" or post["userId"] == viewer:
        return True
    if privacy == "Friends":
        owner = database.get_db()["user"].find_one({"_id": post["userId"], "friends": viewer}, {"_id": 1})
        return owner is not None
    return False


def _visible_post(post_id: str, viewer: ObjectId) -> dict:
    oid = database.parse_object_id(post_id)
    post = _posts().find_one({"_id": oid}) if oid is not None else None
    if post is None or not _can_view(post, viewer):
        raise NotFoundError("Post not found")
    return post


def _expand_owners(posts: List[dict]) -> List[dict]:
    """Render posts with ``userId`` replaced by {id, username, profilePicture}."""
    owner_ids = list({p["userId"] for p in posts})
    owners = {
        u["_id"]: database.to_public(u)
        for u in database.get_documents("user", {"_id": {"$in": owner_ids}}, projection=OWNER_FIELDS)
    } if owner_ids else {}
    rendered = []
    for post in posts:
        public = database.to_public(post)
        public["userId"] = owners.get(post["userId"])
        rendered.append(public)
    return rendered


def _render(post: dict) -> dict:
    return _expand_owners([post])[0]


def create_post(owner_id: str, content: str, image: Optional[str] = None, privacy: Optional[str] = None) -> dict:
    fields = {"userId": _viewer_oid(owner_id), "content": content}
    if image is not None:
        fields["image"] = image
    if privacy is not None:
        fields["privacy"] = privacy
    pid = database.create_document("post", Post(**fields))
    logger.info("User %s created post %s", owner_id, pid)
    return _render(_posts().find_one({"_id": pid}))


def list_posts(viewer_id: str) -> List[dict]:
    viewer = _viewer_oid(viewer_id)
    # Owners whose friends list includes the viewer may show them Friends posts
    befriended_by = [
        u["_id"] for u in database.get_documents("user", {"friends": viewer}, projection={"_id": 1})
    ]
    visible = {
        "$or": [
            {"privacy": "Public"},
            {"userId": viewer},
            {"privacy": "Friends", "userId": {"$in": befriended_by}},
        ]
    }
    posts = database.get_documents("post", visible, sort=[("createdAt", DESCENDING)])
    return _expand_owners(posts)


def get_post(viewer_id: str, post_id: str) -> dict:
    return _render(_visible_post(post_id, _viewer_oid(viewer_id)))


def toggle_like(user_id: str, post_id: str) -> dict:
    """Add the user to the post's likes, or remove them if already present."""
    uid = _viewer_oid(user_id)
    oid = _visible_post(post_id, uid)["_id"]

    updated = _posts().find_one_and_update(
        {"_id": oid, "likes": {"$ne": uid}},
        {"$addToSet": {"likes": uid}, "$set": {"updatedAt": database.now()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        updated = _posts().find_one_and_update(
            {"_id": oid, "likes": uid},
            {"$pull": {"likes": uid}, "$set": {"updatedAt": database.now()}},
            return_document=ReturnDocument.AFTER,
        )
    if updated is None:
        # A concurrent toggle flipped the state between both updates
        updated = _posts().find_one({"_id": oid})
    if updated is None:
        raise NotFoundError("Post not found")
    return _render(updated)


def add_comment(user_id: str, post_id: str, text: str) -> dict:
    uid = _viewer_oid(user_id)
    oid = _visible_post(post_id, uid)["_id"]
    comment = Comment(userId=uid, text=text)
    updated = _posts().find_one_and_update(
        {"_id": oid},
        {"$push": {"comments": comment.model_dump()}, "$set": {"updatedAt": database.now()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFoundError("Post not found")
    return _render(updated)


def delete_post(user_id: str, post_id: str) -> dict:
    uid = _viewer_oid(user_id)
    oid = database.parse_object_id(post_id)
    post = _posts().find_one({"_id": oid}, {"userId": 1}) if oid is not None else None
    if post is None:
        raise NotFoundError("Post not found")
    if post["userId"] != uid:
        logger.warning("User %s tried to delete post %s owned by %s", user_id, post_id, post["userId"])
        raise ForbiddenError("You can only delete your own posts")

    _posts().delete_one({"_id": oid, "userId": uid})
    logger.info("User %s deleted post %s", user_id, post_id)
    return {"message": "Post deleted successfully", "postId": post_id}
