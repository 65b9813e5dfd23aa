from mm_history.errors import DanglingPostError, InvalidTimestampError
from mm_history.models import Post, PostList
from mm_history.posts.formatter import format_timestamp


def reconcile(post_list: PostList) -> list[Post]:
    """Resolve the server's order against its post map, oldest first.

    The server lists ids newest-first; the transcript reads top to bottom
    like a terminal scrollback, so the sequence is reversed as-is. Order
    is trusted: no timestamp sort happens here.

    Raises DanglingPostError on the first id with no entry in ``posts``,
    InvalidTimestampError on a create_at that cannot be rendered as a time.
    """
    resolved: list[Post] = []
    for post_id in post_list.order:
        post = post_list.posts.get(post_id)
        if post is None:
            raise DanglingPostError(post_id)
        try:
            format_timestamp(post.create_at)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimestampError(post_id, post.create_at) from exc
        resolved.append(post)
    resolved.reverse()
    return resolved
