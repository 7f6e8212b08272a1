import os
import shutil
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

import database
import posts
import users
from auth import current_user_id, ensure_actor
from config import get_settings
from errors import ApiError, UnauthorizedError
from logger import get_logger, setup_logging
from schemas import Privacy

settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        database.connect(settings.database_url, settings.database_name)
    database.ensure_indexes()
    os.makedirs(settings.uploads_dir, exist_ok=True)
    if not settings.cors_origins:
        logger.info("CORS_ORIGINS not set, cross-origin requests are refused")
    logger.info("Social API ready")
    yield
    logger.info("Shutting down server...")
    database.close()


app = FastAPI(title="Social API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------- Error handling -----------------
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


@app.get("/")
def read_root():
    return {"message": "Social API is running"}


@app.get("/test")
def test_database():
    """Report whether MongoDB is reachable and which collections it holds."""
    response = {"backend": "running", "database": settings.database_name, "collections": []}
    if database.db is None:
        response["connection_status"] = "Not initialized"
        return response
    try:
        response["collections"] = database.db.list_collection_names()[:10]
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        logger.warning("Database check failed: %s", e)
        response["connection_status"] = f"Error: {str(e)[:50]}"
    return response


class _Body(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


# ----------------- Auth -----------------
class SignupRequest(_Body):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(_Body):
    email: str
    password: str


@app.post("/signup", status_code=201)
def signup(req: SignupRequest):
    return users.register_user(req.username, req.email, req.password)


@app.post("/login")
def login(req: LoginRequest):
    return users.login(req.email, req.password)


# ----------------- Posts -----------------
class CreatePostRequest(_Body):
    content: str = Field(..., min_length=1)
    image: Optional[str] = None
    privacy: Optional[Privacy] = None
    user_id: Optional[str] = Field(None, alias="userId")


class LikeRequest(_Body):
    post_id: str = Field(..., alias="postId")
    user_id: Optional[str] = Field(None, alias="userId")


class CommentRequest(_Body):
    text: str = Field(..., min_length=1)
    user_id: Optional[str] = Field(None, alias="userId")


class DeletePostRequest(_Body):
    user_id: Optional[str] = Field(None, alias="userId")


@app.post("/posts", status_code=201)
def create_post(req: CreatePostRequest, user_id: str = Depends(current_user_id)):
    ensure_actor(req.user_id, user_id)
    return posts.create_post(user_id, req.content, req.image, req.privacy)


@app.get("/posts")
def list_posts(user_id: str = Depends(current_user_id)):
    return posts.list_posts(user_id)


@app.get("/posts/{post_id}")
def get_post(post_id: str, user_id: str = Depends(current_user_id)):
    return posts.get_post(user_id, post_id)


@app.post("/post/like")
def like_post(req: LikeRequest, user_id: str = Depends(current_user_id)):
    ensure_actor(req.user_id, user_id)
    return posts.toggle_like(user_id, req.post_id)


@app.post("/posts/{post_id}/comments", status_code=201)
def comment_post(post_id: str, req: CommentRequest, user_id: str = Depends(current_user_id)):
    ensure_actor(req.user_id, user_id)
    return posts.add_comment(user_id, post_id, req.text)


@app.delete("/posts/{post_id}")
def delete_post(
    post_id: str,
    req: Optional[DeletePostRequest] = Body(None),
    user_id: str = Depends(current_user_id),
):
    ensure_actor(req.user_id if req else None, user_id)
    return posts.delete_post(user_id, post_id)


# ----------------- Users & friends -----------------
class AddFriendRequest(_Body):
    friend_id: str = Field(..., alias="friendId")
    user_id: Optional[str] = Field(None, alias="userId")


class ProfilePictureRequest(_Body):
    profile_picture: str = Field(..., alias="profilePicture")


@app.get("/users")
def list_users(
    claimed_user_id: Optional[str] = Query(None, alias="userId"),
    user_id: str = Depends(current_user_id),
):
    ensure_actor(claimed_user_id, user_id)
    return users.list_users(user_id)


@app.post("/add-friend")
def add_friend(req: AddFriendRequest, user_id: str = Depends(current_user_id)):
    ensure_actor(req.user_id, user_id)
    return users.add_friend(user_id, req.friend_id)


@app.get("/user/{target_id}/friends")
def list_friends(target_id: str, user_id: str = Depends(current_user_id)):
    return users.list_friends(target_id)


@app.put("/users/{target_id}/profile-picture")
def update_profile_picture(target_id: str, req: ProfilePictureRequest, user_id: str = Depends(current_user_id)):
    ensure_actor(target_id, user_id)
    return users.update_profile_picture(user_id, req.profile_picture)


@app.get("/user/{target_id}")
def get_user_profile(target_id: str, user_id: str = Depends(current_user_id)):
    return users.get_user_profile(target_id)


# ----------------- Uploads -----------------
@app.post("/uploads", status_code=201)
def upload_file(file: UploadFile = File(...), user_id: str = Depends(current_user_id)):
    _, ext = os.path.splitext(file.filename or "")
    name = f"{uuid4().hex}{ext.lower()}"
    with open(os.path.join(settings.uploads_dir, name), "wb") as fh:
        shutil.copyfileobj(file.file, fh)
        size = fh.tell()
    logger.info("User %s uploaded %s (%d bytes)", user_id, name, size)
    return {"path": f"/uploads/{name}"}


app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
