import sqlalchemy
from sqlalchemy.orm import sessionmaker

from postfeed.config import config

metadata = sqlalchemy.MetaData()

user_table = sqlalchemy.Table(
    "users",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(36), primary_key=True),
    sqlalchemy.Column("email", sqlalchemy.String, unique=True, nullable=False),
    sqlalchemy.Column("name", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("avatar", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("password", sqlalchemy.String),
    sqlalchemy.Column(
        "created_at",
        sqlalchemy.DateTime(timezone=True),
        server_default=sqlalchemy.text("CURRENT_TIMESTAMP"),
        nullable=False,
    ),
)

post_table = sqlalchemy.Table(
    "posts",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(36), primary_key=True),
    sqlalchemy.Column("author_id", sqlalchemy.String(36), nullable=False, index=True),
    # Display snapshot taken at creation, never re-synced with the user's profile
    sqlalchemy.Column("author_name", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("author_avatar", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("text", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
    sqlalchemy.Column("version", sqlalchemy.Integer, nullable=False, default=0),
)

likes_table = sqlalchemy.Table(
    "likes",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("post_id", sqlalchemy.ForeignKey("posts.id"), nullable=False),
    sqlalchemy.Column("user_id", sqlalchemy.String(36), nullable=False),
    sqlalchemy.Column("position", sqlalchemy.Integer, nullable=False),
    sqlalchemy.UniqueConstraint("post_id", "user_id", name="uq_likes_post_user"),
)

comment_table = sqlalchemy.Table(
    "comments",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(36), primary_key=True),
    sqlalchemy.Column("post_id", sqlalchemy.ForeignKey("posts.id"), nullable=False),
    sqlalchemy.Column("author_id", sqlalchemy.String(36), nullable=False),
    sqlalchemy.Column("author_name", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("author_avatar", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("text", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
    sqlalchemy.Column("position", sqlalchemy.Integer, nullable=False),
)

if not config.DATABASE_URI:
    raise RuntimeError("DATABASE_URI is not configured")

connect_args = {"check_same_thread": False} if "sqlite" in config.DATABASE_URI else {}
engine = sqlalchemy.create_engine(config.DATABASE_URI, connect_args=connect_args)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
