import datetime
import logging
from typing import Annotated

from fastapi import HTTPException, status, Depends
from fastapi.security import OAuth2PasswordBearer

from passlib.context import CryptContext
from postfeed.config import config
from jose import jwt, ExpiredSignatureError, JWTError

from postfeed.domain import model
from postfeed.service_layer import unit_of_work

logger = logging.getLogger(__name__)

KEY = config.SECRET_KEY
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/token")

pwd_context = CryptContext(schemes=["bcrypt"])

def create_credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def create_access_token(user_id: str) -> str:
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    jwt_data = {"sub": user_id, "exp": expire, "type": TOKEN_TYPE}
    return jwt.encode(jwt_data, KEY, algorithm=ALGORITHM)

def resolve_identity(token: str) -> str:
    """Turn a bearer token into the user id it was issued for."""
    try:
        payload = jwt.decode(token, key=KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise create_credentials_exception("Token has expired") from e
    except JWTError as e:
        raise create_credentials_exception("Invalid token") from e

    user_id = payload.get("sub")
    if user_id is None:
        raise create_credentials_exception("Token is missing 'sub' field")

    if payload.get("type") != TOKEN_TYPE:
        raise create_credentials_exception(
            f"Token has incorrect type, expected '{TOKEN_TYPE}'"
        )

    return user_id

def get_password_hash(password: str) -> str:
    # bcrypt has a 72-byte limit; truncate to prevent errors
    password_bytes = password.encode('utf-8')[:72]
    return pwd_context.hash(password_bytes)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    # bcrypt has a 72-byte limit; truncate to match hashing behavior
    password_bytes = plain_password.encode('utf-8')[:72]
    return pwd_context.verify(password_bytes, hashed_password)

def authenticate_user(email: str, password: str, uow: unit_of_work.AbstractUnitOfWork) -> model.User:
    with uow:
        user = uow.users.get_by_email(email)

    if not user or not user.password_hash:
        logger.info("Login failed for unknown email %s", email)
        raise create_credentials_exception("Invalid email or password")

    if not verify_password(password, user.password_hash):
        logger.info("Login failed for user_id=%s", user.id)
        raise create_credentials_exception("Invalid email or password")

    return user

#Adding the dependency injection to reduce the amount of code related to adding this scheme
def get_current_user_id(token: Annotated[str, Depends(oauth2_scheme)]) -> str:
    return resolve_identity(token)
