from typing import Annotated

from fastapi import Depends

from postfeed import bootstrap
from postfeed.service_layer import unit_of_work
from postfeed.service_layer.messagebus import MessageBus


def get_uow() -> unit_of_work.AbstractUnitOfWork:
    return unit_of_work.SqlAlchemyUnitOfWork()


def get_bus(uow: Annotated[unit_of_work.AbstractUnitOfWork, Depends(get_uow)]) -> MessageBus:
    # One bus per request: nothing mutable is shared between requests
    return bootstrap.bootstrap(uow=uow)
