from __future__ import annotations

from typing import List

from postfeed.domain import exceptions, model
from postfeed.service_layer import handlers, unit_of_work


def _newest_first(posts) -> List[model.Post]:
    return sorted(posts, key=lambda post: post.created_at, reverse=True)


def list_posts(uow: unit_of_work.AbstractUnitOfWork) -> List[model.Post]:
    with uow:
        return _newest_first(uow.posts.list_all())


def list_posts_by_author(author_id: str, uow: unit_of_work.AbstractUnitOfWork) -> List[model.Post]:
    # Unknown author, malformed id and an author without posts all read the same.
    with uow:
        try:
            author = uow.users.get(author_id)
            posts = uow.posts.list_by_author(author_id) if author else []
        except exceptions.InvalidIdentifier:
            posts = []
        if not posts:
            raise exceptions.NoPostsForUser("Posts not found for this user")
        return _newest_first(posts)


def get_post(post_id: str, uow: unit_of_work.AbstractUnitOfWork) -> model.Post:
    with uow:
        return handlers.load_post(uow, post_id)
