"""Detection of continuous-integration environments.

Interactive logins need a person in front of a browser, which a CI runner
never has. :func:`is_ci` looks for the variables the common CI services
export.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

CI_ENV_VARS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_NUMBER",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "TRAVIS",
    "CIRCLECI",
    "JENKINS_URL",
    "TF_BUILD",
    "BUILDKITE",
    "TEAMCITY_VERSION",
    "CODEBUILD_BUILD_ID",
    "BITBUCKET_BUILD_NUMBER",
)
"""Variables whose presence marks a CI run."""

_FALSE_VALUES = ("", "0", "false", "no", "off")


def is_ci(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when the process runs under a CI service.

    A variable set to an explicit false value (``CI=false``, ``CI=0``) does
    not count.

    Args:
        environ: Mapping to inspect instead of ``os.environ``.
    """
    env = os.environ if environ is None else environ
    for name in CI_ENV_VARS:
        value = env.get(name)
        if value is not None and value.strip().lower() not in _FALSE_VALUES:
            return True
    return False
