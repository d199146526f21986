from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Tuple

from postfeed.domain import commands, events, exceptions, model
from postfeed.service_layer import unit_of_work

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Command handlers ---


def register_user(cmd: commands.RegisterUser, uow: unit_of_work.AbstractUnitOfWork, hash_password: Callable[[str], str]) -> str:
    with uow:
        if uow.users.get_by_email(cmd.email):
            raise exceptions.UserExists(f"User with email {cmd.email} already exists")
        user = model.User(
            id=model.new_id(),
            email=cmd.email,
            name=cmd.name,
            avatar=cmd.avatar,
            password_hash=hash_password(cmd.password),
        )
        uow.users.add(user)
        user.events.append(events.UserRegistered(user_id=user.id, email=user.email, name=user.name))
        uow.commit()
    return user.id


def create_post(cmd: commands.CreatePost, uow: unit_of_work.AbstractUnitOfWork, clock: Clock = utcnow) -> model.Post:
    with uow:
        author = _load_profile(uow, cmd.author_id)
        post = model.Post.create(
            post_id=model.new_id(),
            author=author,
            text=cmd.text,
            created_at=clock(),
        )
        uow.posts.add(post)
        post.events.append(events.PostCreated(post_id=post.id, author_id=post.author_id))
        uow.commit()
    return post


def delete_post(cmd: commands.DeletePost, uow: unit_of_work.AbstractUnitOfWork, max_attempts: int = 3) -> str:
    def delete(post: model.Post) -> model.Post:
        post.ensure_deletable_by(cmd.user_id)
        uow.posts.delete(post)
        post.events.append(events.PostDeleted(post_id=post.id, author_id=post.author_id))
        return post

    _retrying(uow, cmd.post_id, delete, max_attempts)
    return cmd.post_id


def like_post(cmd: commands.LikePost, uow: unit_of_work.AbstractUnitOfWork, max_attempts: int = 3) -> Tuple[model.Like, ...]:
    def like(post: model.Post) -> model.Post:
        saved = uow.posts.save(post.like(cmd.user_id))
        saved.events.append(events.PostLiked(post_id=saved.id, user_id=cmd.user_id))
        return saved

    return _retrying(uow, cmd.post_id, like, max_attempts).likes


def unlike_post(cmd: commands.UnlikePost, uow: unit_of_work.AbstractUnitOfWork, max_attempts: int = 3) -> Tuple[model.Like, ...]:
    def unlike(post: model.Post) -> model.Post:
        saved = uow.posts.save(post.unlike(cmd.user_id))
        saved.events.append(events.PostUnliked(post_id=saved.id, user_id=cmd.user_id))
        return saved

    return _retrying(uow, cmd.post_id, unlike, max_attempts).likes


def add_comment(
    cmd: commands.AddComment,
    uow: unit_of_work.AbstractUnitOfWork,
    clock: Clock = utcnow,
    max_attempts: int = 3,
) -> Tuple[model.Comment, ...]:
    comment_id = model.new_id()

    def comment(post: model.Post) -> model.Post:
        # post, then text, then commenter
        text = model.require_text(cmd.text)
        author = _load_profile(uow, cmd.user_id)
        saved = uow.posts.save(post.add_comment(comment_id, author, text, clock()))
        saved.events.append(
            events.CommentAdded(post_id=saved.id, comment_id=comment_id, user_id=cmd.user_id)
        )
        return saved

    return _retrying(uow, cmd.post_id, comment, max_attempts).comments


def delete_comment(cmd: commands.DeleteComment, uow: unit_of_work.AbstractUnitOfWork, max_attempts: int = 3) -> Tuple[model.Comment, ...]:
    def uncomment(post: model.Post) -> model.Post:
        comment_id = _comment_identifier(cmd.comment_id)
        saved = uow.posts.save(post.remove_comment(comment_id, cmd.user_id))
        saved.events.append(
            events.CommentDeleted(post_id=saved.id, comment_id=comment_id, user_id=cmd.user_id)
        )
        return saved

    return _retrying(uow, cmd.post_id, uncomment, max_attempts).comments


# --- Event handlers ---


def handle_user_registered(event: events.UserRegistered, uow: unit_of_work.AbstractUnitOfWork):
    logger.info("User registered: %s", event.user_id)


def log_post_activity(event: events.Event, uow: unit_of_work.AbstractUnitOfWork):
    logger.info("%s: %s", type(event).__name__, event)


# --- Helpers ---


def load_post(uow: unit_of_work.AbstractUnitOfWork, post_id: str) -> model.Post:
    """Fetch a post, reporting malformed and unknown ids the same way."""
    try:
        post = uow.posts.get(post_id)
    except exceptions.InvalidIdentifier:
        post = None
    if post is None:
        raise exceptions.PostNotFound("Post not found")
    return post


def _comment_identifier(comment_id: str) -> str:
    try:
        return model.validate_identifier(comment_id)
    except exceptions.InvalidIdentifier:
        raise exceptions.CommentNotFound("Comment does not exist") from None


def _load_profile(uow: unit_of_work.AbstractUnitOfWork, user_id: str) -> model.Profile:
    try:
        user = uow.users.get(user_id)
    except exceptions.InvalidIdentifier:
        user = None
    if user is None:
        raise exceptions.UserNotFound(f"User {user_id} not found")
    return user.profile


def _retrying(
    uow: unit_of_work.AbstractUnitOfWork,
    post_id: str,
    apply: Callable[[model.Post], model.Post],
    max_attempts: int,
) -> model.Post:
    """
    Run load -> apply -> commit for one post, starting over when another
    writer saved the same post in between. Domain errors raised by ``apply``
    propagate on the first attempt.
    """
    for attempt in range(1, max_attempts + 1):
        with uow:
            post = load_post(uow, post_id)
            try:
                result = apply(post)
            except exceptions.ConcurrentModification:
                logger.warning(
                    "Concurrent update on post %s (attempt %d/%d)", post_id, attempt, max_attempts
                )
                continue
            uow.commit()
            return result
    raise exceptions.StoreError(f"Post {post_id} is busy, try again")

