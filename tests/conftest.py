"""Pytest configuration for targetio tests.

Ensures the project root is in sys.path so imports work correctly.
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from targetio.context import TargetContext  # noqa: E402
from tests.fakes.session import FakeSession  # noqa: E402

PASSWD = (
    "root:x:0:0:root:/root:/bin/bash\n"
    "# service accounts\n"
    "alice:x:1000:1000:Alice:/home/alice:/bin/sh\n"
    "bob:x:1001:1001::/home/bob:/bin/bash\n"
)
GROUP = "root:x:0:\nalice:x:1000:\nwheel:x:10:alice,bob\n"
SHADOW = "root:!:19000:0:99999:7:::\nalice:$6$salt$hash:19500:0:99999:7:::\n"


@pytest.fixture
def session():
    """Fake target session seeded with identity files."""
    return FakeSession(
        files={
            "/etc/passwd": PASSWD.encode(),
            "/etc/group": GROUP.encode(),
            "/etc/shadow": SHADOW.encode(),
        }
    )


@pytest.fixture
def remote(session):
    """Remote-mode context bound to the fake session."""
    return TargetContext.remote(session)


@pytest.fixture
def local():
    """Local-mode context."""
    return TargetContext.local()
