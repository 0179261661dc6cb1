"""
GitHub Profile Analyzer (Flask)

What it does:
- Accepts a GitHub username
- Fetches the public profile and up to 100 repositories (sorted by stars) via the GitHub REST API
- Aggregates the repository list into chart-ready series:
  - Language distribution (top 8 charted as bar + pie)
  - Repositories created / updated per month over the trailing 12 months
  - Cumulative star growth over the 10 most recently created repositories
  - Top 20 repositories by stars
- Serves a single page that renders those series as charts

Setup:
  pip install -e .

Run:
  python app.py
  open http://localhost:5000

Endpoints:
  GET  /                       -> renders templates/index.html (if present), else fallback page
  GET  /api/analyze?username=   -> returns JSON analysis
  POST /api/analyze             -> accepts form-data or JSON { "username": "..." }
  GET  /healthz                 -> liveness probe

No token is sent and nothing is cached. A failed upstream call is reported once,
without retry.
"""

from __future__ import annotations

import calendar
import datetime as dt
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from flask import Flask, jsonify, render_template, request
from jinja2 import TemplateNotFound

logger = logging.getLogger(__name__)

# -----------------------------
# Flask app
# -----------------------------
app = Flask(__name__)

# -----------------------------
# Config
# -----------------------------
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com").rstrip("/")
API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "20"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

REPOS_PER_PAGE = 100
TIMELINE_MONTHS = 12
STAR_GROWTH_LIMIT = 10
TOP_LANGUAGES_LIMIT = 8
TOP_REPOSITORIES_LIMIT = 20

# Username validation (GitHub allows alnum and hyphen; max length 39)
USERNAME_RE = re.compile(r"^[A-Za-z0-9-]{1,39}$")

# Badge colors for the repository list; anything else uses "primary"
LANGUAGE_COLORS = {
    "JavaScript": "github-orange",
    "TypeScript": "github-blue",
    "Python": "github-green",
    "Java": "github-red",
    "C++": "github-purple",
    "Vue": "github-green",
    "Go": "github-blue",
    "Rust": "github-red",
    "Swift": "github-orange",
}


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class Repository:
    """A single repository record as returned by /users/{username}/repos."""

    id: int
    name: str
    full_name: str
    description: Optional[str]
    language: Optional[str]
    stargazers_count: int
    forks_count: int
    created_at: Optional[dt.datetime]
    updated_at: Optional[dt.datetime]
    html_url: Optional[str]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Repository":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "",
            full_name=data.get("full_name") or "",
            description=data.get("description"),
            language=data.get("language"),
            stargazers_count=int(data.get("stargazers_count") or 0),
            forks_count=int(data.get("forks_count") or 0),
            created_at=_dateparse(data.get("created_at")),
            updated_at=_dateparse(data.get("updated_at")),
            html_url=data.get("html_url"),
        )


@dataclass(frozen=True)
class Profile:
    """Account-level record from /users/{username}."""

    login: str
    name: Optional[str]
    avatar_url: Optional[str]
    bio: Optional[str]
    company: Optional[str]
    location: Optional[str]
    blog: Optional[str]
    public_repos: int
    followers: int
    following: int
    created_at: Optional[dt.datetime]

    @property
    def display_name(self) -> str:
        return self.name or self.login

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            login=data.get("login") or "",
            name=data.get("name"),
            avatar_url=data.get("avatar_url"),
            bio=data.get("bio"),
            company=data.get("company"),
            location=data.get("location"),
            blog=data.get("blog"),
            public_repos=int(data.get("public_repos") or 0),
            followers=int(data.get("followers") or 0),
            following=int(data.get("following") or 0),
            created_at=_dateparse(data.get("created_at")),
        )


# -----------------------------
# HTTP helpers
# -----------------------------
class GitHubAPIError(RuntimeError):
    """Upstream failure, carrying the message shown to the user and the status to answer with."""

    def __init__(self, message: str, status: int = 502):
        super().__init__(message)
        self.status = status


def _headers() -> Dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "User-Agent": "github-profile-analyzer-flask",
        "X-GitHub-Api-Version": API_VERSION,
    }


def _get(url: str, *, params: Optional[dict] = None) -> requests.Response:
    try:
        return requests.get(url, headers=_headers(), params=params, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.warning("Network error calling %s: %s", url, e)
        raise GitHubAPIError(f"Network error while contacting GitHub: {e}") from e


def _json(resp: requests.Response, failure: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        logger.warning("Invalid JSON from GitHub: %s", e)
        raise GitHubAPIError(f"{failure} (invalid response)") from e


def fetch_profile(username: str) -> Profile:
    logger.info("Fetching profile for %s", username)
    resp = _get(f"{GITHUB_API_BASE}/users/{username}")

    if resp.status_code == 404:
        raise GitHubAPIError("User not found", status=404)
    if resp.status_code == 403:
        raise GitHubAPIError("GitHub API rate limit exceeded or access forbidden (HTTP 403)")
    if resp.status_code >= 400:
        raise GitHubAPIError(f"Failed to fetch user profile (HTTP {resp.status_code})")

    data = _json(resp, "Failed to fetch user profile")
    if not isinstance(data, dict):
        raise GitHubAPIError("Failed to fetch user profile (invalid response)")
    return Profile.from_api(data)


def fetch_repositories(username: str) -> List[Repository]:
    """
    Single page of the user's public repositories, sorted by stars upstream.
    """
    logger.info("Fetching repositories for %s", username)
    resp = _get(
        f"{GITHUB_API_BASE}/users/{username}/repos",
        params={"sort": "stars", "per_page": REPOS_PER_PAGE},
    )

    if resp.status_code >= 400:
        raise GitHubAPIError(f"Failed to fetch repositories (HTTP {resp.status_code})")

    data = _json(resp, "Failed to fetch repositories")
    if not isinstance(data, list):
        raise GitHubAPIError("Failed to fetch repositories (unexpected response)")
    return [Repository.from_api(r) for r in data]


def fetch_user(username: str) -> Tuple[Profile, List[Repository]]:
    """
    Profile first, then repositories. Either failure aborts the whole analysis.
    """
    profile = fetch_profile(username)
    repos = fetch_repositories(username)
    return profile, repos


# -----------------------------
# Utility helpers
# -----------------------------
def _now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_utc(d: dt.datetime) -> dt.datetime:
    if d.tzinfo is None:
        return d.replace(tzinfo=dt.timezone.utc)
    return d.astimezone(dt.timezone.utc)


def _dateparse(s: Optional[str]) -> Optional[dt.datetime]:
    if not s:
        return None
    try:
        return _as_utc(dt.datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        return None


def _sub_months(d: dt.datetime, months: int) -> dt.datetime:
    """
    Moves back `months` calendar months, clamping the day to the target month's length
    (e.g. Mar 31 minus 1 month -> Feb 28/29).
    """
    index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def _month_bounds(year: int, month: int) -> Tuple[dt.datetime, dt.datetime]:
    """First and last instant of a calendar month, both inclusive (UTC)."""
    start = dt.datetime(year, month, 1, tzinfo=dt.timezone.utc)
    last_day = calendar.monthrange(year, month)[1]
    end = dt.datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=dt.timezone.utc)
    return start, end


def _months_between(start: dt.datetime, end: dt.datetime) -> List[Tuple[int, int]]:
    """Every (year, month) from start's month through end's month, inclusive."""
    months: List[Tuple[int, int]] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def _month_label(d: dt.datetime) -> str:
    return d.strftime("%b %Y")


def _language_color(language: Optional[str]) -> str:
    return LANGUAGE_COLORS.get(language or "", "primary")


# -----------------------------
# Aggregation
# -----------------------------
def monthly_timeline(
    repos: Sequence[Repository],
    now: Optional[dt.datetime] = None,
    months: int = TIMELINE_MONTHS,
) -> List[Dict[str, Any]]:
    """
    Repositories created / updated per calendar month, from the month containing
    `now - months` through the month containing `now`, oldest first.
    """
    now = _as_utc(now) if now else _now_utc()
    start = _sub_months(now, months)

    timeline: List[Dict[str, Any]] = []
    for year, month in _months_between(start, now):
        lo, hi = _month_bounds(year, month)
        created = sum(1 for r in repos if r.created_at and lo <= r.created_at <= hi)
        updated = sum(1 for r in repos if r.updated_at and lo <= r.updated_at <= hi)
        timeline.append({"month": _month_label(lo), "created": created, "updated": updated})
    return timeline


def star_growth(repos: Sequence[Repository], limit: int = STAR_GROWTH_LIMIT) -> List[Dict[str, Any]]:
    """
    Running star total over the `limit` most recently created repositories,
    in creation order.

    The sum restarts inside that slice: the first point is the oldest kept
    repository's own star count, not the running total over every older repository.
    """
    dated = sorted((r for r in repos if r.created_at), key=lambda r: r.created_at)
    recent = dated[-limit:] if limit > 0 else []

    growth: List[Dict[str, Any]] = []
    cumulative = 0
    for r in recent:
        cumulative += r.stargazers_count
        growth.append(
            {
                "repository": r.name,
                "stars": r.stargazers_count,
                "cumulative_stars": cumulative,
                "date": _month_label(r.created_at),
            }
        )
    return growth


def language_distribution(repos: Sequence[Repository]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for r in repos:
        if r.language:
            counts[r.language] = counts.get(r.language, 0) + 1
    # sorted() is stable, so ties keep first-seen order
    return [{"name": k, "count": v} for k, v in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)]


def top_languages(distribution: Sequence[Dict[str, Any]], limit: int = TOP_LANGUAGES_LIMIT) -> List[Dict[str, Any]]:
    top = list(distribution[:limit])
    total = sum(entry["count"] for entry in top)
    return [
        {**entry, "percent": round(100.0 * entry["count"] / total, 1) if total else 0.0}
        for entry in top
    ]


def top_repositories(repos: Sequence[Repository], limit: int = TOP_REPOSITORIES_LIMIT) -> List[Repository]:
    return sorted(repos, key=lambda r: r.stargazers_count, reverse=True)[:limit]


def total_stats(repos: Sequence[Repository]) -> Dict[str, int]:
    return {
        "total_stars": sum(r.stargazers_count for r in repos),
        "total_forks": sum(r.forks_count for r in repos),
    }


# -----------------------------
# Serialization
# -----------------------------
def _iso(d: Optional[dt.datetime]) -> Optional[str]:
    return d.isoformat() if d else None


def _serialize_profile(p: Profile) -> Dict[str, Any]:
    return {
        "login": p.login,
        "name": p.name,
        "display_name": p.display_name,
        "avatar_url": p.avatar_url,
        "bio": p.bio,
        "company": p.company,
        "location": p.location,
        "blog": p.blog,
        "public_repos": p.public_repos,
        "followers": p.followers,
        "following": p.following,
        "created_at": _iso(p.created_at),
        "joined": p.created_at.strftime("%b %d, %Y") if p.created_at else None,
    }


def _serialize_repo(r: Repository) -> Dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "full_name": r.full_name,
        "description": r.description,
        "language": r.language,
        "language_color": _language_color(r.language),
        "stars": r.stargazers_count,
        "forks": r.forks_count,
        "created_at": _iso(r.created_at),
        "updated_at": _iso(r.updated_at),
        "updated": r.updated_at.strftime("%b %d, %Y") if r.updated_at else None,
        "url": r.html_url,
    }


def build_analysis(profile: Profile, repos: Sequence[Repository], now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    now = _as_utc(now) if now else _now_utc()
    distribution = language_distribution(repos)
    totals = total_stats(repos)

    return {
        "profile": _serialize_profile(profile),
        "stats": {
            "public_repos": profile.public_repos,
            "followers": profile.followers,
            "following": profile.following,
            **totals,
        },
        "languages": {
            "distribution": distribution,
            "top": top_languages(distribution),
        },
        "repositories": [_serialize_repo(r) for r in top_repositories(repos)],
        "activity": {
            "timeline": monthly_timeline(repos, now=now),
            "star_growth": star_growth(repos),
        },
        "meta": {
            "generated_at": now.isoformat(),
            "repos_analyzed": len(repos),
        },
    }


# -----------------------------
# Flask routes
# -----------------------------
@app.route("/", methods=["GET"])
def home():
    try:
        return render_template("index.html")
    except TemplateNotFound:
        return (
            """
            <!doctype html>
            <html>
            <head><meta charset="utf-8"><title>GitHub Analyzer</title></head>
            <body style="font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; padding: 24px;">
              <h2>GitHub Analyzer API is running</h2>
              <p>Try: <code>/api/analyze?username=octocat</code></p>
              <p>Add a template at <code>templates/index.html</code> to build the UI.</p>
            </body>
            </html>
            """,
            200,
            {"Content-Type": "text/html; charset=utf-8"},
        )


def _get_username_from_request() -> str:
    if request.method == "GET":
        return (request.args.get("username") or "").strip()
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        return str(payload.get("username") or "").strip()
    return (request.form.get("username") or "").strip()


def _error(title: str, message: str, status: int):
    return jsonify({"title": title, "error": message}), status


@app.route("/api/analyze", methods=["GET", "POST"])
def api_analyze():
    username = _get_username_from_request()

    if not username:
        return _error("Username required", "Please enter a GitHub username to analyze.", 400)

    if not USERNAME_RE.match(username):
        return _error("Invalid username", "Invalid GitHub username format.", 400)

    try:
        profile, repos = fetch_user(username)
        analysis = build_analysis(profile, repos)
    except GitHubAPIError as e:
        logger.warning("Analysis of %s failed: %s", username, e)
        return _error("Analysis failed", str(e), e.status)
    except Exception:
        logger.exception("Unexpected error analyzing %s", username)
        return _error("Analysis failed", "An error occurred", 500)

    logger.info("Analyzed %s (%d repositories)", username, len(repos))
    return jsonify(analysis)


@app.route("/healthz", methods=["GET"])
def healthz():
    return jsonify({"ok": True, "api_base": GITHUB_API_BASE})


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG", "0") == "1")
