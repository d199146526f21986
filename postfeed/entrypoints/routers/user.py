import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from postfeed.domain import commands
from postfeed.entrypoints.dependencies import get_bus, get_uow
from postfeed.entrypoints.schemas.user import Token, UserLogin, UserRegister
from postfeed.security import authenticate_user, create_access_token
from postfeed.service_layer import unit_of_work
from postfeed.service_layer.messagebus import MessageBus

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/api/users", status_code=201)
def register_user(user: UserRegister, bus: Annotated[MessageBus, Depends(get_bus)]):
    [user_id] = bus.handle(commands.RegisterUser.from_dict(user.model_dump()))
    return {"detail": "User created", "id": user_id}


@router.post("/api/token", response_model=Token)
def login(credentials: UserLogin, uow: Annotated[unit_of_work.AbstractUnitOfWork, Depends(get_uow)]):
    user = authenticate_user(credentials.email, credentials.password, uow)
    logger.info("Issued access token for user_id=%s", user.id)
    return Token(access_token=create_access_token(user.id))
