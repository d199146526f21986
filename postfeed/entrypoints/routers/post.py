from typing import Annotated

from fastapi import APIRouter, Depends

from postfeed.domain import commands
from postfeed.entrypoints.dependencies import get_bus, get_uow
from postfeed.entrypoints.schemas.post import CommentI, Comment, Like, Post, PostI
from postfeed.security import get_current_user_id
from postfeed.service_layer import unit_of_work
from postfeed.service_layer.messagebus import MessageBus
from postfeed.views import posts as post_views

router = APIRouter(prefix="/api/posts")

CurrentUser = Annotated[str, Depends(get_current_user_id)]
Bus = Annotated[MessageBus, Depends(get_bus)]
UnitOfWork = Annotated[unit_of_work.AbstractUnitOfWork, Depends(get_uow)]


@router.post("", response_model=Post, status_code=201)
def create_post(post: PostI, user_id: CurrentUser, bus: Bus):
    cmd = commands.CreatePost.from_dict({**post.model_dump(), "author_id": user_id})
    [created] = bus.handle(cmd)
    return created


@router.get("", response_model=list[Post])
def get_all_posts(user_id: CurrentUser, uow: UnitOfWork):
    return post_views.list_posts(uow)


@router.get("/user/{author_id}", response_model=list[Post])
def get_posts_by_author(author_id: str, user_id: CurrentUser, uow: UnitOfWork):
    return post_views.list_posts_by_author(author_id, uow)


@router.get("/{post_id}", response_model=Post)
def get_post(post_id: str, user_id: CurrentUser, uow: UnitOfWork):
    return post_views.get_post(post_id, uow)


@router.delete("/{post_id}")
def delete_post(post_id: str, user_id: CurrentUser, bus: Bus):
    bus.handle(commands.DeletePost(post_id=post_id, user_id=user_id))
    return {"detail": "Post removed"}


@router.put("/{post_id}/like", response_model=list[Like])
def like_post(post_id: str, user_id: CurrentUser, bus: Bus):
    [likes] = bus.handle(commands.LikePost(post_id=post_id, user_id=user_id))
    return list(likes)


@router.put("/{post_id}/unlike", response_model=list[Like])
def unlike_post(post_id: str, user_id: CurrentUser, bus: Bus):
    [likes] = bus.handle(commands.UnlikePost(post_id=post_id, user_id=user_id))
    return list(likes)


@router.put("/{post_id}/comments", response_model=list[Comment])
def add_comment(post_id: str, comment: CommentI, user_id: CurrentUser, bus: Bus):
    cmd = commands.AddComment(post_id=post_id, user_id=user_id, text=comment.text)
    [comments] = bus.handle(cmd)
    return list(comments)


@router.delete("/{post_id}/comments/{comment_id}", response_model=list[Comment])
def delete_comment(post_id: str, comment_id: str, user_id: CurrentUser, bus: Bus):
    cmd = commands.DeleteComment(post_id=post_id, comment_id=comment_id, user_id=user_id)
    [comments] = bus.handle(cmd)
    return list(comments)
