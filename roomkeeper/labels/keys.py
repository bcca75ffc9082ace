"""Label key naming rules and the room label schema."""

from __future__ import annotations

import re
from dataclasses import dataclass

_LABEL_KEY_RE = re.compile(r"^[a-z0-9.-]+$")

USER_DEFINED_MARKER = "x-"


def check_label_key(name: str) -> bool:
    """Whether ``name`` is a valid label key fragment (^[a-z0-9.-]+$)."""
    return _LABEL_KEY_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class LabelKeys:
    """Concrete label keys for one pair of namespaces."""

    namespace: str
    orchestrator_namespace: str

    def _ns(self, suffix: str) -> str:
        return f"{self.namespace}.{suffix}"

    def _orch(self, suffix: str) -> str:
        return f"{self.orchestrator_namespace}.{suffix}"

    @property
    def name(self) -> str:
        return self._ns("name")

    @property
    def url(self) -> str:
        return self._ns("url")

    @property
    def instance(self) -> str:
        return self._ns("instance")

    @property
    def mux(self) -> str:
        return self._ns("mux")

    @property
    def epr_min(self) -> str:
        return self._ns("epr.min")

    @property
    def epr_max(self) -> str:
        return self._ns("epr.max")

    @property
    def image(self) -> str:
        return self._ns("neko_image")

    @property
    def api_version(self) -> str:
        return self._ns("api_version")

    @property
    def browser_policy(self) -> str:
        return self._ns("browser_policy")

    @property
    def browser_policy_type(self) -> str:
        return self._ns("browser_policy.type")

    @property
    def browser_policy_path(self) -> str:
        return self._ns("browser_policy.path")

    @property
    def user_defined_prefix(self) -> str:
        return self._ns(USER_DEFINED_MARKER)

    def user_defined(self, key: str) -> str:
        return self.user_defined_prefix + key

    @property
    def cotester_url(self) -> str:
        return self._orch("url")

    @property
    def deadline(self) -> str:
        return self._orch("deadline")

    @property
    def api_endpoint(self) -> str:
        return self._orch("api-endpoint")

    @property
    def session_id(self) -> str:
        return self._orch("session-id")

    @property
    def api_key(self) -> str:
        return self._orch("api-key")
