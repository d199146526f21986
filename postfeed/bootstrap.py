from __future__ import annotations

from functools import partial
from typing import Callable, Dict, List, Type

from postfeed.config import config
from postfeed.domain import commands, events
from postfeed.service_layer import handlers, unit_of_work
from postfeed.service_layer.messagebus import MessageBus
from postfeed.service_layer.unit_of_work import SqlAlchemyUnitOfWork
from postfeed import security


def bootstrap(
    uow: unit_of_work.AbstractUnitOfWork | None = None,
    hash_password: Callable[[str], str] | None = None,
    clock: handlers.Clock | None = None,
    max_attempts: int | None = None,
) -> MessageBus:
    """Wire a message bus around one unit of work. Build one per request."""
    uow = uow or SqlAlchemyUnitOfWork()
    hash_password = hash_password or security.get_password_hash
    clock = clock or handlers.utcnow
    max_attempts = max_attempts or config.SAVE_RETRY_ATTEMPTS

    command_handlers: Dict[Type[commands.Command], Callable] = {
        commands.RegisterUser: partial(handlers.register_user, uow=uow, hash_password=hash_password),
        commands.CreatePost: partial(handlers.create_post, uow=uow, clock=clock),
        commands.DeletePost: partial(handlers.delete_post, uow=uow, max_attempts=max_attempts),
        commands.LikePost: partial(handlers.like_post, uow=uow, max_attempts=max_attempts),
        commands.UnlikePost: partial(handlers.unlike_post, uow=uow, max_attempts=max_attempts),
        commands.AddComment: partial(handlers.add_comment, uow=uow, clock=clock, max_attempts=max_attempts),
        commands.DeleteComment: partial(handlers.delete_comment, uow=uow, max_attempts=max_attempts),
    }

    post_activity = [partial(handlers.log_post_activity, uow=uow)]
    event_handlers: Dict[Type[events.Event], List[Callable]] = {
        events.UserRegistered: [partial(handlers.handle_user_registered, uow=uow)],
        events.PostCreated: post_activity,
        events.PostDeleted: post_activity,
        events.PostLiked: post_activity,
        events.PostUnliked: post_activity,
        events.CommentAdded: post_activity,
        events.CommentDeleted: post_activity,
    }

    return MessageBus(uow=uow, event_handlers=event_handlers, command_handlers=command_handlers)
