"""Pytest configuration for proxy session tests."""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from networking.models import RoutingState  # noqa: E402


class FakeSocket:
    def __init__(self, target: Tuple[str, int]):
        self.target = target
        self.closed = False

    def close(self) -> None:
        self.closed = True


def make_fake_factory(error: Optional[Exception] = None):
    """
    Build a ConnectionFactory stand-in recording every instantiation and call.

    ``error`` is raised from ``create`` when set; tests may reassign
    ``FakeFactory.error`` between calls.
    """

    class FakeFactory:
        instances: List["FakeFactory"] = []
        calls: List[dict] = []
        sockets: List[FakeSocket] = []

        def __init__(self, routing: Optional[RoutingState] = None, *, timeout: float = 10.0):
            self.routing = routing or RoutingState.direct()
            self.timeout = timeout
            FakeFactory.instances.append(self)

        def create(self, target_host, target_port, local_bind=None, *, timeout=None):
            FakeFactory.calls.append(
                {
                    "target": (target_host, target_port),
                    "routing": self.routing,
                    "timeout": self.timeout if timeout is None else timeout,
                    "local_bind": local_bind,
                }
            )
            if FakeFactory.error is not None:
                raise FakeFactory.error
            sock = FakeSocket((target_host, target_port))
            FakeFactory.sockets.append(sock)
            return sock

    FakeFactory.error = error
    return FakeFactory


@pytest.fixture
def factory():
    """Fresh recording ConnectionFactory stand-in."""
    return make_fake_factory()
