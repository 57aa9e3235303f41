# directives.py
# Micro-syntaxes in the build message that change what the pipeline does:
#
#   "Roll back to #482"   re-deploy the artifacts of build 482
#   "Deploy to staging"   deploy this build only to staging
#   "Deploy #17 to prod"  deploy the artifacts of build 17 only to prod
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ROLLBACK_PATTERN = re.compile(r"^[Rr]oll\s*back\s+(to\s+)?#?(\d+)")
DEPLOY_OVERRIDE_PATTERN = re.compile(r"^[Dd]eploy\s*(#?(\d+)\s*)?(to\s+)?(\S+)")


@dataclass(frozen=True)
class Directive:
    artifacts_from_build_number: Optional[str] = None
    override_deploy_environment: Optional[str] = None

    @property
    def kind(self) -> str:
        if self.override_deploy_environment:
            return "deploy"
        if self.artifacts_from_build_number:
            return "rollback"
        return "none"

    def __bool__(self) -> bool:
        return self.kind != "none"


NO_DIRECTIVE = Directive()


def parse_directive(message: str) -> Directive:
    """
    Match the build message against the known directives, in order.

    A message matching neither is the normal case and gives NO_DIRECTIVE.
    """
    m = ROLLBACK_PATTERN.match(message or "")
    if m:
        return Directive(artifacts_from_build_number=m.group(2))

    m = DEPLOY_OVERRIDE_PATTERN.match(message or "")
    if m:
        return Directive(
            artifacts_from_build_number=m.group(2),
            override_deploy_environment=m.group(4),
        )

    return NO_DIRECTIVE
