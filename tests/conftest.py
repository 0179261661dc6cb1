"""
Pytest configuration and shared fixtures.
"""
import datetime as dt

import pytest

from app import Profile, Repository, app as flask_app

NOW = dt.datetime(2024, 6, 15, 12, 0, 0, tzinfo=dt.timezone.utc)


def make_repo(
    name="repo",
    stars=0,
    forks=0,
    language="Python",
    created_at=dt.datetime(2024, 1, 10, tzinfo=dt.timezone.utc),
    updated_at=dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc),
    repo_id=1,
):
    return Repository(
        id=repo_id,
        name=name,
        full_name=f"octocat/{name}",
        description=None,
        language=language,
        stargazers_count=stars,
        forks_count=forks,
        created_at=created_at,
        updated_at=updated_at,
        html_url=f"https://github.com/octocat/{name}",
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repo_factory():
    return make_repo


@pytest.fixture
def profile():
    return Profile(
        login="octocat",
        name="The Octocat",
        avatar_url="https://avatars.githubusercontent.com/u/583231",
        bio=None,
        company="@github",
        location="San Francisco",
        blog="https://github.blog",
        public_repos=8,
        followers=100,
        following=9,
        created_at=dt.datetime(2011, 1, 25, 18, 44, 36, tzinfo=dt.timezone.utc),
    )


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as c:
        yield c
