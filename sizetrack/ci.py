from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

PULL_REQUEST = "pull_request"
PUSH = "push"


@dataclass(frozen=True, slots=True)
class CiContext:
    ci: str | None = None
    repo: str | None = None
    branch: str | None = None
    sha: str | None = None
    event: str | None = None

    @property
    def in_ci(self) -> bool:
        return bool(self.ci)

    def payload(self) -> dict[str, str | None]:
        return {"ci": self.ci, "repo": self.repo, "branch": self.branch, "sha": self.sha}


def _github(env: Mapping[str, str]) -> CiContext:
    event = env.get("GITHUB_EVENT_NAME")
    if event == "pull_request_target":
        event = PULL_REQUEST
    # GITHUB_HEAD_REF is only set for pull requests.
    branch = env.get("GITHUB_HEAD_REF") or env.get("GITHUB_REF_NAME")
    return CiContext(
        ci="github_actions",
        repo=env.get("GITHUB_REPOSITORY"),
        branch=branch,
        sha=env.get("GITHUB_SHA"),
        event=event,
    )


def _travis(env: Mapping[str, str]) -> CiContext:
    is_pr = env.get("TRAVIS_PULL_REQUEST", "false") != "false"
    return CiContext(
        ci="travis",
        repo=env.get("TRAVIS_REPO_SLUG"),
        branch=env.get("TRAVIS_PULL_REQUEST_BRANCH") if is_pr else env.get("TRAVIS_BRANCH"),
        sha=env.get("TRAVIS_PULL_REQUEST_SHA") if is_pr else env.get("TRAVIS_COMMIT"),
        event=PULL_REQUEST if is_pr else env.get("TRAVIS_EVENT_TYPE"),
    )


def _gitlab(env: Mapping[str, str]) -> CiContext:
    source = env.get("CI_PIPELINE_SOURCE")
    return CiContext(
        ci="gitlab",
        repo=env.get("CI_PROJECT_PATH"),
        branch=env.get("CI_MERGE_REQUEST_SOURCE_BRANCH_NAME") or env.get("CI_COMMIT_REF_NAME"),
        sha=env.get("CI_COMMIT_SHA"),
        event=PULL_REQUEST if source == "merge_request_event" else source,
    )


def _circle(env: Mapping[str, str]) -> CiContext:
    owner = env.get("CIRCLE_PROJECT_USERNAME")
    name = env.get("CIRCLE_PROJECT_REPONAME")
    return CiContext(
        ci="circleci",
        repo=f"{owner}/{name}" if owner and name else None,
        branch=env.get("CIRCLE_BRANCH"),
        sha=env.get("CIRCLE_SHA1"),
        event=PULL_REQUEST if env.get("CIRCLE_PULL_REQUEST") else PUSH,
    )


_DETECTORS = (
    ("GITHUB_ACTIONS", _github),
    ("TRAVIS", _travis),
    ("GITLAB_CI", _gitlab),
    ("CIRCLECI", _circle),
)


def detect_ci(environ: Mapping[str, str] | None = None) -> CiContext:
    """Build a CiContext from a CI provider's environment variables."""
    env = os.environ if environ is None else environ
    for marker, detector in _DETECTORS:
        if env.get(marker, "").lower() == "true":
            return detector(env)
    return CiContext()
