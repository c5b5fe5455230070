"""Season pass validation.

A viewer holds a season pass when their identity (an ENS-style name) is the
creator's pass domain or a subdomain of it: with domain ``pass.eth``,
``pass.eth`` and ``alice.pass.eth`` qualify, ``alicepass.eth`` does not.
"""

from __future__ import annotations

import structlog

_log = structlog.get_logger(__name__)


def _normalize(name: str | None) -> str | None:
    if name is None:
        return None
    text = name.strip().lower()
    return text or None


def matches_pass_domain(viewer_identity: str | None, pass_domain: str | None) -> bool:
    """Pure matching rule; absent inputs never match."""
    viewer = _normalize(viewer_identity)
    domain = _normalize(pass_domain)
    if viewer is None or domain is None:
        return False
    return viewer == domain or viewer.endswith("." + domain)


class SeasonPassValidator:
    """Caches the pass decision for the current pair of inputs."""

    def __init__(self) -> None:
        self._inputs: tuple[str | None, str | None] | None = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def validate(self, viewer_identity: str | None, pass_domain: str | None) -> bool:
        """Return whether the viewer holds a pass, recomputing on input change."""
        inputs = (_normalize(viewer_identity), _normalize(pass_domain))
        if inputs == self._inputs:
            return self._active
        self._inputs = inputs
        self._active = matches_pass_domain(*inputs)
        _log.debug("season_pass_evaluated", active=self._active, pass_domain=inputs[1])
        return self._active

    def revoke(self) -> None:
        self._inputs = None
        self._active = False
