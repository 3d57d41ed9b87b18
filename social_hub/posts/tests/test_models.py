import pytest

from social_hub.posts.models import Post

pytestmark = pytest.mark.django_db


def test_toggle_like(django_user_model):
    user = django_user_model.objects.create_user(username="u", email="u@example.com")
    post = Post.objects.create(
        user=user,
        caption="c",
        image_url="https://media.example.com/c.png",
    )

    assert post.toggle_like(user) is True
    assert list(post.likes.all()) == [user]
    assert post.toggle_like(user) is False
    assert not post.likes.exists()
