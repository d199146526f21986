from datetime import datetime, timedelta, timezone

import pytest

from postfeed.domain import exceptions
from postfeed.domain.model import Like, Post, Profile, User, new_id, validate_identifier

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

ALICE = Profile(user_id="a", name="Alice", avatar="https://img/alice.png")
BOB = Profile(user_id="b", name="Bob")
CAROL = Profile(user_id="c", name="Carol", avatar="https://img/carol.png")


def make_post(text: str = "hello") -> Post:
    return Post.create(post_id="p1", author=ALICE, text=text, created_at=T0)


def test_create_snapshots_author_and_starts_empty():
    post = make_post()

    assert post.author_id == "a"
    assert post.author_name == "Alice"
    assert post.author_avatar == "https://img/alice.png"
    assert post.likes == ()
    assert post.comments == ()
    assert post.created_at == T0


@pytest.mark.parametrize("text", ["", "   ", None])
def test_create_rejects_empty_text(text):
    with pytest.raises(exceptions.ValidationError):
        make_post(text=text)


def test_like_then_unlike_restores_likes():
    post = make_post().like("x")

    liked = post.like("b")
    assert liked.likes == (Like("b"), Like("x"))

    assert liked.unlike("b").likes == post.likes


def test_like_twice_conflicts_and_keeps_one_like():
    post = make_post().like("b")

    with pytest.raises(exceptions.ConflictError, match="already liked"):
        post.like("b")
    assert [like.user_id for like in post.likes] == ["b"]


def test_unlike_without_like_conflicts():
    with pytest.raises(exceptions.NotYetLiked):
        make_post().unlike("b")


def test_unlike_removes_only_the_matching_like():
    post = make_post().like("x").like("b").like("y")

    assert post.unlike("b").likes == (Like("y"), Like("x"))


def test_transforms_leave_original_untouched():
    post = make_post()

    post.like("b")
    post.add_comment("c1", BOB, "hi", T0)

    assert post.likes == ()
    assert post.comments == ()


def test_comments_are_prepended_newest_first():
    post = make_post()
    for i in range(5):
        post = post.add_comment(f"c{i}", BOB, f"comment {i}", T0 + timedelta(minutes=i))

    assert len(post.comments) == 5
    assert len({c.id for c in post.comments}) == 5
    stamps = [c.created_at for c in post.comments]
    assert stamps == sorted(stamps, reverse=True)
    assert post.comments[0].text == "comment 4"


def test_comment_carries_commenter_snapshot():
    post = make_post().add_comment("c1", CAROL, "nice", T0)

    [comment] = post.comments
    assert comment.author_id == "c"
    assert comment.author_name == "Carol"
    assert comment.author_avatar == "https://img/carol.png"
    assert comment.text == "nice"


def test_add_comment_rejects_empty_text():
    with pytest.raises(exceptions.EmptyText):
        make_post().add_comment("c1", BOB, " ", T0)


def test_remove_comment_by_identity():
    post = (
        make_post()
        .add_comment("c1", BOB, "first", T0)
        .add_comment("c2", CAROL, "second", T0)
        .add_comment("c3", BOB, "third", T0)
    )

    remaining = post.remove_comment("c1", "b")

    assert [c.id for c in remaining.comments] == ["c3", "c2"]


def test_remove_comment_by_non_author_is_refused():
    post = make_post().add_comment("c1", CAROL, "nice", T0)

    with pytest.raises(exceptions.AuthorizationError):
        post.remove_comment("c1", "a")
    assert [c.id for c in post.comments] == ["c1"]


def test_remove_missing_comment_is_not_found():
    with pytest.raises(exceptions.CommentNotFound, match="does not exist"):
        make_post().remove_comment("nope", "a")


def test_only_author_may_delete_post():
    post = make_post()

    post.ensure_deletable_by("a")
    with pytest.raises(exceptions.NotPostAuthor):
        post.ensure_deletable_by("b")


def test_version_and_events_stay_out_of_equality():
    post = make_post()
    post.events.append("something happened")

    assert post == Post.create(post_id="p1", author=ALICE, text="hello", created_at=T0)
    assert post.like("b").events == []


def test_user_profile_snapshot():
    user = User(id="u1", email="u@example.net", name="Una", avatar="https://img/u.png", password_hash="x")

    assert user.profile == Profile(user_id="u1", name="Una", avatar="https://img/u.png")


def test_validate_identifier():
    ident = new_id()

    assert validate_identifier(ident) == ident
    with pytest.raises(exceptions.InvalidIdentifier):
        validate_identifier("not-an-id")
